"""
modules/smc/detectors/base_detector.py

Abstract base class for all SMC detectors
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from ..models.formations import Candle, StructureEvent, SwingPoint


@dataclass
class BarContext:
    """
    Inputs of one pipeline step.

    Attributes:
        candles: Candle history (the bar at `index` is the newest one)
        index: Bar being processed
        new_pivots: Pivots confirmed on this bar (filled by the pivot detectors)
        new_events: Structure events of this bar (filled by the structure detectors)
    """
    candles: Sequence[Candle]
    index: int
    new_pivots: List[SwingPoint] = field(default_factory=list)
    new_events: List[StructureEvent] = field(default_factory=list)

    @property
    def candle(self) -> Candle:
        return self.candles[self.index]


def _copy_state(value: Any) -> Any:
    # Records are frozen, so copying the containers is enough
    if isinstance(value, list):
        return [_copy_state(v) for v in value]
    if isinstance(value, dict):
        return {k: _copy_state(v) for k, v in value.items()}
    if isinstance(value, set):
        return set(value)
    return value


class BaseDetector(ABC):
    """
    This is the base class for all detectors.

    Her detector:
    1. update(ctx) - processes one bar, returns the records it created
    2. get_active() - Active (unmitigated/unfilled) records
    3. get_history() - Every record, in creation order
    4. checkpoint() / restore() - state copy used to re-derive the last bar
    5. reset() - Clears the state
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Args:
            config: Detector-specific configuration
        """
        self.config = config or {}
        self._history: List[Any] = []
        self._active: List[int] = []  # positions in _history

    @property
    def name(self) -> str:
        """Detector name"""
        return self.__class__.__name__

    @abstractmethod
    def update(self, ctx: BarContext) -> List[Any]:
        """
        Incremental update - process the newest bar of ctx.

        Args:
            ctx: Bar context

        Returns:
            Records created on this bar (may be empty)
        """

    def get_active(self) -> List[Any]:
        """Active (unmitigated/unfilled) records"""
        return [self._history[pos] for pos in self._active]

    def get_history(self) -> List[Any]:
        """All records (including mitigated/filled)"""
        return self._history.copy()

    def reset(self) -> None:
        """Clear state"""
        self._history = []
        self._active = []

    def checkpoint(self) -> Dict[str, Any]:
        """Copy of the mutable state (config excluded)"""
        return {
            name: _copy_state(value)
            for name, value in vars(self).items()
            if name != 'config'
        }

    def restore(self, state: Dict[str, Any]) -> None:
        """Restore a checkpoint; the checkpoint itself stays reusable"""
        for name, value in state.items():
            setattr(self, name, _copy_state(value))

    def _add_formation(self, formation: Any, active: bool = True) -> None:
        """
        Add a record

        Args:
            formation: New record
            active: Also track it in the active list
        """
        self._history.append(formation)
        if active:
            self._active.append(len(self._history) - 1)

    def _replace_formation(self, position: int, formation: Any) -> None:
        """Swap in the flipped copy of a frozen record"""
        self._history[position] = formation

    def _deactivate_formation(self, position: int) -> None:
        """Remove the record from the active list"""
        self._active = [pos for pos in self._active if pos != position]
