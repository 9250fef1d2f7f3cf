"""Project a content store onto the flat object the playback engine loads.

Unlike the persisted bundle, the runtime payload has no ``game`` wrapper,
rooms/items/dialogues are id-keyed mappings, hotspot and exit rectangles are
flattened onto their owner, and puzzle conditions/actions use the keyed DSL.
Every collection key is always present, empty or not.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from roomforge.bundle.projector import dialogue_tree
from roomforge.models.content import DEFAULT_RESPONSES, DEFAULT_VERBS, Exit, Hotspot, Room
from roomforge.models.puzzle import Puzzle, trigger_key
from roomforge.observability.logging import get_logger
from roomforge.runtime.dsl import translate_action, translate_condition

if TYPE_CHECKING:
    from roomforge.store.content_store import ContentStore

log = get_logger(__name__)

# Verb ids exposed as direct fields on runtime hotspots, keyed by field name.
HOTSPOT_VERB_FIELDS: dict[str, str] = {
    "lookAt": "look_at",
    "pickUp": "pick_up",
    "use": "use",
    "open": "open",
    "close": "close",
    "push": "push",
    "pull": "pull",
}

_BASE_PROTAGONIST: dict[str, str] = {
    "bodyType": "average",
    "skinTone": "fair",
    "hairStyle": "short",
    "hairColor": "brown",
    "clothingColor": "#4a86c8",
    "facial": "none",
}

_OUTFITS: dict[str, dict[str, str]] = {
    "scifi": {"clothing": "jumpsuit", "footwear": "boots", "accessory": "none"},
    "contemporary": {"clothing": "jacket", "footwear": "sneakers", "accessory": "none"},
    "eighties": {"clothing": "neon_jacket", "footwear": "high_tops", "accessory": "sunglasses"},
}
_DEFAULT_OUTFIT = {"clothing": "tunic", "footwear": "boots", "accessory": "none"}


def build_protagonist(setting: str | None) -> dict[str, str]:
    """Default protagonist traits for a setting; unknown settings get the fantasy outfit."""
    return {**_BASE_PROTAGONIST, **_OUTFITS.get(setting or "", _DEFAULT_OUTFIT)}


def _hotspot_entry(hotspot: Hotspot) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": hotspot.id, "name": hotspot.name, **hotspot.rect.to_tree()}
    if hotspot.walk_to is not None:
        entry["walkToX"] = hotspot.walk_to.x
        entry["walkToY"] = hotspot.walk_to.y
    if not hotspot.visible:
        entry["visible"] = False
    for field_name, verb_id in HOTSPOT_VERB_FIELDS.items():
        entry[field_name] = hotspot.responses.get(verb_id) or None
    entry["_responses"] = dict(hotspot.responses)
    return entry


def _exit_entry(exit_: Exit) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": exit_.id, **exit_.rect.to_tree(), "target": exit_.target}
    if exit_.spawn_at is not None:
        entry["spawnX"] = exit_.spawn_at.x
        entry["spawnY"] = exit_.spawn_at.y
    entry["name"] = exit_.name
    entry["lookAt"] = exit_.look_at or None
    return entry


def _room_entry(room: Room) -> dict[str, Any]:
    return {
        "id": room.id,
        "name": room.name,
        "description": room.description,
        "background": copy.deepcopy(room.background),
        "lighting": copy.deepcopy(room.lighting),
        "walkableArea": {"rects": [rect.to_tree() for rect in room.walkable_area.rects]},
        "visuals": copy.deepcopy(room.visuals),
        "npcs": [],
        "hotspots": [_hotspot_entry(h) for h in room.hotspots],
        "exits": [_exit_entry(e) for e in room.exits],
    }


def _puzzle_entry(puzzle: Puzzle) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": puzzle.id,
        "trigger": puzzle.trigger.to_tree(),
        "_key": trigger_key(puzzle.trigger),
    }
    if puzzle.conditions:
        entry["conditions"] = [translate_condition(c) for c in puzzle.conditions]
    if puzzle.actions:
        entry["actions"] = [translate_action(a) for a in puzzle.actions]
    if puzzle.fail_text:
        entry["failText"] = puzzle.fail_text
    return entry


def _puzzle_entries(puzzles: list[Puzzle]) -> list[dict[str, Any]]:
    entries = []
    seen: dict[str, str] = {}
    for puzzle in puzzles:
        entry = _puzzle_entry(puzzle)
        key = entry["_key"]
        if key in seen:
            log.warning("duplicate_trigger_key", key=key, puzzle=puzzle.id, first=seen[key])
        else:
            seen[key] = puzzle.id
        entries.append(entry)
    return entries


def default_runtime_payload() -> dict[str, Any]:
    """Minimal playable payload used when there is no content to test."""
    return {
        "title": "Empty Playtest Game",
        "setting": None,
        "version": "1.0",
        "resolution": {"width": 320, "height": 200},
        "viewportHeight": 140,
        "startRoom": "default_room",
        "startPosition": {"x": 160, "y": 120},
        "verbs": [{"id": verb_id, "label": label} for verb_id, label in DEFAULT_VERBS],
        "defaultResponses": dict(DEFAULT_RESPONSES),
        "protagonist": build_protagonist(None),
        "items": {},
        "npcs": [],
        "puzzles": [],
        "rooms": {
            "default_room": {
                "id": "default_room",
                "name": "Empty Room",
                "description": "",
                "background": {},
                "lighting": None,
                "walkableArea": {"rects": [{"x": 20, "y": 80, "width": 280, "height": 60}]},
                "hotspots": [],
                "exits": [],
                "visuals": [],
                "npcs": [],
            }
        },
        "dialogues": {},
        "music": None,
    }


def build_runtime_payload(store: ContentStore | None) -> dict[str, Any]:
    """Build the runtime payload for *store*.

    Args:
        store: Store to project, or None for the default payload.

    Returns:
        A JSON-serializable mapping in the playback engine's load shape.
    """
    if store is None:
        return default_runtime_payload()

    g = store.game
    start_room = g.start_room or (store.rooms[0].id if store.rooms else "")
    payload = {
        "title": g.title,
        "setting": g.setting,
        "version": g.version,
        "resolution": g.resolution.to_tree(),
        "viewportHeight": g.viewport_height,
        "startRoom": start_room,
        "startPosition": g.start_position.to_tree(),
        "verbs": [{"id": v.id, "label": v.label} for v in g.verbs],
        "defaultResponses": dict(g.default_responses),
        "protagonist": build_protagonist(g.setting),
        "items": {item.id: item.model_dump(by_alias=True) for item in store.items},
        "npcs": [npc.model_dump(by_alias=True) for npc in store.npcs],
        "puzzles": _puzzle_entries(store.puzzles),
        "rooms": {room.id: _room_entry(room) for room in store.rooms},
        "dialogues": {
            dialogue_id: dialogue_tree(dialogue_id, tree)["dialogue"]
            for dialogue_id, tree in store.dialogues.items()
        },
        "music": None,
    }
    log.debug(
        "runtime_payload_built",
        rooms=len(store.rooms),
        puzzles=len(store.puzzles),
        start_room=start_room,
    )
    return payload
