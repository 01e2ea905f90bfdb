import dataclasses

import pytest

from models.events import ACTIONS, ENTITY_TYPES, UpdateEvent
from models.responses import ApiResponse


def test_make_fills_timestamp_and_unique_id():
    a = UpdateEvent.make("highlight", "create", {"title": "X"})
    b = UpdateEvent.make("highlight", "create", {"title": "X"})
    assert a.timestamp > 0
    assert a.event_id and b.event_id
    assert a.event_id != b.event_id


@pytest.mark.parametrize("kind, action", [("team", "create"), ("match", "upsert")])
def test_make_rejects_unknown_type_or_action(kind, action):
    with pytest.raises(ValueError):
        UpdateEvent.make(kind, action, {})


def test_all_entity_types_and_actions_are_accepted():
    assert set(ENTITY_TYPES) == {"match", "league", "video", "featured", "highlight"}
    assert set(ACTIONS) == {"create", "update", "delete"}
    for kind in ENTITY_TYPES:
        for action in ACTIONS:
            assert UpdateEvent.make(kind, action).type == kind


def test_event_is_immutable_and_detached_from_caller_data():
    payload = {"id": "42", "tags": ["a"]}
    event = UpdateEvent.make("match", "update", payload)
    payload["tags"].append("b")
    assert event.data == {"id": "42", "tags": ["a"]}
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.action = "delete"  # type: ignore[misc]


def test_wire_shape_keeps_event_id():
    event = UpdateEvent.make("league", "delete", {"id": "7"}, timestamp=1_700_000_000_000)
    raw = event.to_dict()
    assert raw == {
        "type": "league",
        "action": "delete",
        "data": {"id": "7"},
        "timestamp": 1_700_000_000_000,
        "eventId": event.event_id,
    }
    assert UpdateEvent.from_dict(raw) == event


def test_from_dict_requires_type():
    with pytest.raises(KeyError):
        UpdateEvent.from_dict({"action": "create", "timestamp": 1})


def test_api_response_ok_tracks_error():
    assert ApiResponse(status=200, data=[]).ok
    assert ApiResponse(status=204).ok
    assert not ApiResponse(status=0, error="Network error occurred").ok
