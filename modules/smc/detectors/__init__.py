"""
modules/smc/detectors - SMC detectors
"""

from .base_detector import BarContext, BaseDetector
from .pivot_detector import PivotDetector, detect_pivots
from .structure_detector import StructureDetector
from .order_block_detector import OrderBlockDetector
from .fvg_detector import FVGDetector, detect_fvgs
from .equal_levels_detector import EqualLevelDetector, is_equal_level
from .premium_discount import calculate_premium_discount
from .strong_weak import classify_levels

__all__ = [
    'BarContext',
    'BaseDetector',
    'PivotDetector',
    'detect_pivots',
    'StructureDetector',
    'OrderBlockDetector',
    'FVGDetector',
    'detect_fvgs',
    'EqualLevelDetector',
    'is_equal_level',
    'calculate_premium_discount',
    'classify_levels',
]
