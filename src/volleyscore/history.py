"""Bounded undo stack of full engine snapshots."""

from copy import deepcopy
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_UNDO_DEPTH = 10
MAX_UNDO_DEPTH = 50


class UndoStack(Generic[T]):
    """Stack of full state copies; the top entry is the current state.

    Restoring a whole snapshot replaces keeping an inverse for every kind of
    mutation. The oldest entries are evicted once ``max_depth`` is exceeded.
    """

    def __init__(self, initial: T, max_depth: int = DEFAULT_UNDO_DEPTH):
        if not 1 < max_depth <= MAX_UNDO_DEPTH:
            raise ValueError(f"max_depth must be between 2 and {MAX_UNDO_DEPTH}, got {max_depth}")
        self.max_depth = max_depth
        self._entries: list[T] = [deepcopy(initial)]

    @property
    def depth(self) -> int:
        return len(self._entries)

    @property
    def can_undo(self) -> bool:
        return len(self._entries) > 1

    @property
    def entries(self) -> list[T]:
        """All entries, oldest first; the last one is the current state."""
        return list(self._entries)

    @property
    def current(self) -> T:
        """Copy of the top entry."""
        return deepcopy(self._entries[-1])

    def push(self, snapshot: T) -> None:
        self._entries.append(deepcopy(snapshot))
        if len(self._entries) > self.max_depth:
            del self._entries[0]

    def undo(self) -> T:
        """Drop the current entry and return the one below it.

        With only one entry left nothing is dropped and that entry is returned.
        """
        if self.can_undo:
            self._entries.pop()
        return self.current

    def reset(self, snapshot: T) -> None:
        """Clear the stack down to a single entry."""
        self._entries = [deepcopy(snapshot)]
