"""Translate authored puzzle conditions and actions into the runtime DSL.

Authored shape is ``{type, ...fields}``; the playback engine expects one key
per entry naming the kind, e.g. ``{"hasItem": "key"}`` or
``{"changeRoom": {"room": "hall", "spawnX": 40}}``.
"""

from __future__ import annotations

from typing import Any, assert_never

from roomforge.models.puzzle import (
    Action,
    AddItemAction,
    ChangeRoomAction,
    Condition,
    HasFlagCondition,
    HasItemCondition,
    HideHotspotAction,
    NotFlagCondition,
    NotItemCondition,
    PlaySoundAction,
    RemoveFlagAction,
    RemoveItemAction,
    SayAction,
    SetFlagAction,
    ShowHotspotAction,
    WalkToAction,
)


def translate_condition(condition: Condition) -> dict[str, Any]:
    match condition:
        case HasItemCondition(value=value):
            return {"hasItem": value}
        case NotItemCondition(value=value):
            return {"notItem": value}
        case HasFlagCondition(value=value):
            return {"hasFlag": value}
        case NotFlagCondition(value=value):
            return {"notFlag": value}
        case _:
            assert_never(condition)


def translate_action(action: Action) -> dict[str, Any]:
    """Translate one action. Optional spawn coordinates are omitted when unset."""
    match action:
        case SayAction(text=text):
            return {"say": text}
        case AddItemAction(item_id=item_id):
            return {"addItem": item_id}
        case RemoveItemAction(item_id=item_id):
            return {"removeItem": item_id}
        case SetFlagAction(flag=flag):
            return {"setFlag": flag}
        case RemoveFlagAction(flag=flag):
            return {"removeFlag": flag}
        case WalkToAction(x=x, y=y):
            return {"walkTo": {"x": x, "y": y}}
        case ChangeRoomAction(room_id=room_id, spawn_x=spawn_x, spawn_y=spawn_y):
            target: dict[str, Any] = {"room": room_id}
            if spawn_x is not None:
                target["spawnX"] = spawn_x
            if spawn_y is not None:
                target["spawnY"] = spawn_y
            return {"changeRoom": target}
        case ShowHotspotAction(hotspot_id=hotspot_id):
            return {"showHotspot": {"id": hotspot_id}}
        case HideHotspotAction(hotspot_id=hotspot_id):
            return {"hideHotspot": {"id": hotspot_id}}
        case PlaySoundAction(sound=sound):
            return {"playSound": sound}
        case _:
            assert_never(action)
