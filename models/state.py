"""
Mutable state owned by a single AutoRefreshCoordinator.
Never shared between coordinators.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto


class RefreshPhase(Enum):
    IDLE = auto()
    SCHEDULED = auto()   # debounce timer pending
    RUNNING = auto()     # reload in flight


@dataclass(slots=True)
class RefreshStats:
    """Counters for logging. Not used for any decision."""
    runs: int = 0
    succeeded: int = 0
    failed: int = 0
    timed_out: int = 0
    dropped: int = 0     # events received while RUNNING
    coalesced: int = 0   # events that restarted a pending timer

    def as_dict(self) -> dict[str, int]:
        return {
            "runs": self.runs,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "timed_out": self.timed_out,
            "dropped": self.dropped,
            "coalesced": self.coalesced,
        }
