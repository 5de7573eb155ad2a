"""Undo/Redo history over immutable state snapshots."""

from __future__ import annotations

import logging
from typing import Callable, Generic, Hashable, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


class History(Generic[T]):
    """
    Linear undo/redo history of immutable values.

    Every committed value becomes one history entry. Committing a value
    equal to the present one is a no-op, so callers can push freely
    without creating empty undo steps.

    Values must be immutable and compare by value (tuples of frozen
    dataclasses work well).
    """

    def __init__(self, initial: T, max_history: Optional[int] = None) -> None:
        """
        Initialize the history.

        Args:
            initial: Initial present value
            max_history: Maximum number of past entries to keep, or None
                for an unbounded history
        """
        self._past: List[T] = []
        self._present: T = initial
        self._future: List[T] = []
        self._max_history = max_history
        self._last_coalesce_key: Optional[Hashable] = None

    @property
    def present(self) -> T:
        return self._present

    @property
    def past(self) -> List[T]:
        """Past snapshots, oldest first."""
        return list(self._past)

    @property
    def future(self) -> List[T]:
        """Future snapshots, the next redo target first."""
        return list(self._future)

    def set_state(
        self,
        action: Union[T, Callable[[T], T]],
        coalesce_key: Optional[Hashable] = None
    ) -> bool:
        """
        Commit a new present value.

        Args:
            action: The new value, or a function mapping the present value
                to the new one
            coalesce_key: When given and equal to the key of the previous
                commit, the new value replaces the present one instead of
                creating another history entry

        Returns:
            True if the history changed
        """
        candidate = action(self._present) if callable(action) else action

        if candidate == self._present:
            logger.debug("Discarded no-op state change")
            return False

        if coalesce_key is not None and coalesce_key == self._last_coalesce_key and self._past:
            self._present = candidate
            self._future.clear()
            # Merged entry collapsed back onto the state before it
            if self._present == self._past[-1]:
                self._past.pop()
                self._last_coalesce_key = None
                logger.debug("Coalesced change reverted to previous state")
            return True

        self._past.append(self._present)
        self._present = candidate
        self._future.clear()
        self._last_coalesce_key = coalesce_key
        self._trim()

        logger.debug(f"Committed state ({len(self._past)} undo steps)")
        return True

    def undo(self) -> bool:
        """
        Step back to the previous value.

        Returns:
            True if a value was undone
        """
        if not self._past:
            return False

        self._future.insert(0, self._present)
        self._present = self._past.pop()
        self._last_coalesce_key = None

        logger.debug(f"Undone ({len(self._past)} undo steps left)")
        return True

    def redo(self) -> bool:
        """
        Step forward to the next undone value.

        Returns:
            True if a value was redone
        """
        if not self._future:
            return False

        self._past.append(self._present)
        self._present = self._future.pop(0)
        self._last_coalesce_key = None

        logger.debug(f"Redone ({len(self._future)} redo steps left)")
        return True

    def reset(self, value: T) -> None:
        """Discard all history and set the present value directly."""
        self._past.clear()
        self._future.clear()
        self._present = value
        self._last_coalesce_key = None

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self._past) > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self._future) > 0

    @property
    def undo_count(self) -> int:
        """Get the number of values that can be undone."""
        return len(self._past)

    @property
    def redo_count(self) -> int:
        """Get the number of values that can be redone."""
        return len(self._future)

    def _trim(self) -> None:
        if self._max_history is None:
            return
        while len(self._past) > self._max_history:
            self._past.pop(0)
