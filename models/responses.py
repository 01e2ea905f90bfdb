from __future__ import annotations
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """
    Normalized result of one remote API call.
    Exactly one of data/error is meaningful: error is None on success.
    status is 0 when no HTTP response was received at all.
    """
    status: int
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
