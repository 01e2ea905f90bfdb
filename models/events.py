"""
Update events broadcast to every connected view after an admin write.

UpdateEvent is frozen: once published it crosses subscriber boundaries and
must look the same to every one of them.
"""

from __future__ import annotations
import copy
import time
import uuid
from dataclasses import dataclass
from typing import Any, Literal, get_args

EntityType = Literal["match", "league", "video", "featured", "highlight"]
Action = Literal["create", "update", "delete"]

ENTITY_TYPES: tuple[str, ...] = get_args(EntityType)
ACTIONS: tuple[str, ...] = get_args(Action)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True, slots=True)
class UpdateEvent:
    """
    One entity mutation.

    data carries the saved entity for create/update and {"id": ...} for delete.
    Subscribers never inspect it; they reload from the remote store instead.
    event_id is unique per publish so a bridged copy of the same event can be
    recognised and dropped.
    """
    type: EntityType
    action: Action
    data: Any
    timestamp: int         # epoch ms, observability only
    event_id: str

    @staticmethod
    def make(
        type: str,
        action: str,
        data: Any = None,
        timestamp: int | None = None,
        event_id: str | None = None,
    ) -> "UpdateEvent":
        if type not in ENTITY_TYPES:
            raise ValueError(f"Unknown entity type {type!r}; expected one of {ENTITY_TYPES}")
        if action not in ACTIONS:
            raise ValueError(f"Unknown action {action!r}; expected one of {ACTIONS}")
        return UpdateEvent(
            type=type,  # type: ignore[arg-type]
            action=action,  # type: ignore[arg-type]
            data=copy.deepcopy(data),
            timestamp=timestamp if timestamp is not None else now_ms(),
            event_id=event_id or uuid.uuid4().hex,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "action": self.action,
            "data": self.data,
            "timestamp": self.timestamp,
            "eventId": self.event_id,
        }

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "UpdateEvent":
        """Rebuild an event received from another process. Raises ValueError/KeyError on bad input."""
        return UpdateEvent.make(
            type=raw["type"],
            action=raw["action"],
            data=raw.get("data"),
            timestamp=int(raw["timestamp"]) if raw.get("timestamp") is not None else None,
            event_id=raw.get("eventId"),
        )
