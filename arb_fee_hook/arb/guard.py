"""Two-state guard against the pipeline re-entering itself."""

from contextlib import contextmanager
from enum import Enum
from typing import Iterator


class GuardState(Enum):
    IDLE = "idle"
    EXECUTING = "executing"


class ReentrancyGuard:
    """Idle/Executing state machine with guaranteed release.

    Usage:
        with guard.enter() as entered:
            if not entered:
                return  # nested entry: skip the guarded work
            ...
    """

    def __init__(self) -> None:
        self.state = GuardState.IDLE
        self.nested_entries = 0

    @property
    def executing(self) -> bool:
        return self.state is GuardState.EXECUTING

    @contextmanager
    def enter(self) -> Iterator[bool]:
        """Yield True for the outermost entry, False for nested ones."""
        if self.state is GuardState.EXECUTING:
            self.nested_entries += 1
            yield False
            return

        self.state = GuardState.EXECUTING
        try:
            yield True
        finally:
            self.state = GuardState.IDLE
