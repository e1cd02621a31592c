"""
modules/smc/test_config.py

SMCConfig schema tests
"""

import pytest
from pydantic import ValidationError

from modules.smc import InvalidConfigurationError, SMCConfig


def test_defaults():
    config = SMCConfig.create()

    assert config.swing_length == 50
    assert config.internal_length == 5
    assert config.equal_tolerance == 0.001
    assert config.order_block_lookback == 20
    assert config.enable_order_blocks and config.enable_fvg and config.enable_equal_hl


def test_camel_case_keys():
    config = SMCConfig.create({
        'swingLength': 30,
        'internalLength': 4,
        'equalTolerance': 0.002,
        'showOrderBlocks': False,
        'enableFVG': False,
    })

    assert config.swing_length == 30
    assert config.internal_length == 4
    assert config.equal_tolerance == 0.002
    assert config.enable_order_blocks is False
    assert config.enable_fvg is False
    assert config.enable_equal_hl is True


def test_overrides_on_existing_config():
    base = SMCConfig.create({'swing_length': 30})
    config = SMCConfig.create(base, internal_length=7)

    assert config.swing_length == 30
    assert config.internal_length == 7
    assert base.internal_length == 5


def test_frozen():
    config = SMCConfig.create()
    with pytest.raises(ValidationError):
        config.swing_length = 10


def test_invalid_value_names_parameter():
    with pytest.raises(InvalidConfigurationError) as exc_info:
        SMCConfig.create({'equal_tolerance': 1.0})

    error = exc_info.value
    assert error.param_name == 'equal_tolerance'
    assert error.param_value == 1.0
    assert error.component == 'SMCConfig'
    assert 'equal_tolerance' in str(error)


def test_zero_tolerance_allowed():
    assert SMCConfig.create(equal_tolerance=0.0).equal_tolerance == 0.0
