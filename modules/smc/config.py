"""
modules/smc/config.py

SMC engine configuration (pydantic schema)

Accepts the snake_case field names as well as the camelCase keys used by
chart front-ends (swingLength, enableFVG, showOrderBlocks, ...).
"""

from typing import Any, Dict, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .exceptions import InvalidConfigurationError


DEFAULT_SWING_LENGTH = 50
DEFAULT_INTERNAL_LENGTH = 5
# 0.1% relative distance between two pivot prices
DEFAULT_EQUAL_TOLERANCE = 0.001
# Bars scanned backward from a structure break for the order block candle
DEFAULT_ORDER_BLOCK_LOOKBACK = 20


class SMCConfig(BaseModel):
    """
    Engine configuration

    Attributes:
        swing_length: Pivot width of the swing (primary) timescale
        internal_length: Pivot width of the internal (short-term) timescale
        equal_tolerance: Max relative price distance for EQH/EQL, in [0, 1)
        order_block_lookback: Bars searched backward for an order block candle
        enable_order_blocks: Run the order block tracker
        enable_fvg: Run the fair value gap tracker
        enable_equal_hl: Run the equal high/low detector
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    swing_length: int = Field(
        DEFAULT_SWING_LENGTH, ge=1,
        validation_alias=AliasChoices("swing_length", "swingLength"),
    )
    internal_length: int = Field(
        DEFAULT_INTERNAL_LENGTH, ge=1,
        validation_alias=AliasChoices("internal_length", "internalLength"),
    )
    equal_tolerance: float = Field(
        DEFAULT_EQUAL_TOLERANCE, ge=0.0, lt=1.0,
        validation_alias=AliasChoices("equal_tolerance", "equalTolerance"),
    )
    order_block_lookback: int = Field(
        DEFAULT_ORDER_BLOCK_LOOKBACK, ge=1,
        validation_alias=AliasChoices("order_block_lookback", "orderBlockLookback"),
    )
    enable_order_blocks: bool = Field(
        True,
        validation_alias=AliasChoices("enable_order_blocks", "enableOrderBlocks", "showOrderBlocks"),
    )
    enable_fvg: bool = Field(
        True,
        validation_alias=AliasChoices("enable_fvg", "enableFVG", "showFVG"),
    )
    enable_equal_hl: bool = Field(
        True,
        validation_alias=AliasChoices("enable_equal_hl", "enableEqualHL", "showEqualHL"),
    )

    @classmethod
    def create(
        cls,
        config: Optional[Union["SMCConfig", Dict[str, Any]]] = None,
        **overrides: Any,
    ) -> "SMCConfig":
        """
        Build a validated config.

        Args:
            config: Existing SMCConfig, a dict, or None for defaults
            **overrides: Field values applied on top

        Raises:
            InvalidConfigurationError: First failing field
        """
        if isinstance(config, SMCConfig):
            data = config.model_dump()
        else:
            data = dict(config or {})
        data.update(overrides)

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            error = e.errors()[0]
            param_name = ".".join(str(x) for x in error['loc']) or "config"
            raise InvalidConfigurationError(param_name, error.get('input'), error['msg']) from e
