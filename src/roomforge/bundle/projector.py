"""Project a content store onto the persisted multi-file schema.

The bundle is an ordered list of ``(path, tree)`` pairs:

- ``game.<ext>``: always present, references every other file by path
- ``rooms/<id>.<ext>``: one per room
- ``npcs.<ext>``, ``items.<ext>``, ``puzzles.<ext>``: only when non-empty
- ``dialogues/<id>.<ext>``: one per dialogue tree

Fields equal to their default and empty collections are left out of entity
trees entirely; rehydration restores them from the same defaults. Geometry
(``rect``, ``walkTo``, ``spawnAt``) stays nested exactly as authored.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from roomforge.models.content import (
    DEFAULT_USE_TEXT,
    Exit,
    Hotspot,
    Item,
    Npc,
    Placement,
    Room,
)
from roomforge.models.dialogue import Choice, DialogueNode, DialogueTree
from roomforge.models.puzzle import Puzzle

if TYPE_CHECKING:
    from pydantic import BaseModel

    from roomforge.store.content_store import ContentStore

DEFAULT_EXTENSION = "yaml"

# Room and item defaults compared against when deciding what to omit.
_DEFAULT_ROOM = Room(id="_")
_DEFAULT_ITEM = Item(id="_")


@dataclass(frozen=True)
class BundleFile:
    """One file of an export bundle: a relative path and its declarative tree."""

    path: str
    tree: dict[str, Any]


def game_path(extension: str = DEFAULT_EXTENSION) -> str:
    return f"game.{extension}"


def room_path(room_id: str, extension: str = DEFAULT_EXTENSION) -> str:
    return f"rooms/{room_id}.{extension}"


def collection_path(name: str, extension: str = DEFAULT_EXTENSION) -> str:
    return f"{name}.{extension}"


def dialogue_path(dialogue_id: str, extension: str = DEFAULT_EXTENSION) -> str:
    return f"dialogues/{dialogue_id}.{extension}"


def _extras(model: BaseModel) -> dict[str, Any]:
    return copy.deepcopy(model.model_extra or {})


# -----------------------------------------------------------------------------
# Game
# -----------------------------------------------------------------------------


def game_tree(store: ContentStore, extension: str = DEFAULT_EXTENSION) -> dict[str, Any]:
    """Build the ``game`` tree.

    The playback loader reads the metadata fields and the ``rooms`` and
    ``dialogues`` path lists without fallbacks, so those are always present.
    """
    g = store.game
    game: dict[str, Any] = {"title": g.title}
    if g.setting is not None:
        game["setting"] = g.setting
    game.update(
        {
            "version": g.version,
            "resolution": g.resolution.to_tree(),
            "viewportHeight": g.viewport_height,
            "startRoom": g.start_room,
            "startPosition": g.start_position.to_tree(),
            "verbs": [{"id": v.id, "label": v.label} for v in g.verbs],
            "defaultResponses": dict(g.default_responses),
        }
    )
    for name, collection in (("items", store.items), ("npcs", store.npcs), ("puzzles", store.puzzles)):
        if collection:
            game[name] = collection_path(name, extension)
    game["rooms"] = [room_path(room.id, extension) for room in store.rooms]
    game["dialogues"] = [dialogue_path(dialogue_id, extension) for dialogue_id in store.dialogues]
    return {"game": game}


# -----------------------------------------------------------------------------
# Rooms
# -----------------------------------------------------------------------------


def _hotspot_tree(hotspot: Hotspot) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "id": hotspot.id,
        "name": hotspot.name,
        "rect": hotspot.rect.to_tree(),
    }
    if hotspot.walk_to is not None:
        obj["walkTo"] = hotspot.walk_to.to_tree()
    if not hotspot.visible:
        obj["visible"] = False
    if hotspot.responses:
        obj["responses"] = dict(hotspot.responses)
    return obj


def _exit_tree(exit_: Exit) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "id": exit_.id,
        "rect": exit_.rect.to_tree(),
        "target": exit_.target,
        "name": exit_.name,
    }
    if exit_.walk_to is not None:
        obj["walkTo"] = exit_.walk_to.to_tree()
    if exit_.spawn_at is not None:
        obj["spawnAt"] = exit_.spawn_at.to_tree()
    if exit_.look_at is not None:
        obj["lookAt"] = exit_.look_at
    return obj


def room_tree(room: Room) -> dict[str, Any]:
    """Build a ``room`` tree for ``rooms/<id>``."""
    out: dict[str, Any] = {"id": room.id, "name": room.name}
    if room.description:
        out["description"] = room.description
    if room.background != _DEFAULT_ROOM.background:
        out["background"] = copy.deepcopy(room.background)
    if room.lighting is not None:
        out["lighting"] = copy.deepcopy(room.lighting)
    if room.visuals:
        out["visuals"] = copy.deepcopy(room.visuals)
    if room.walkable_area.rects:
        out["walkableArea"] = {"rects": [rect.to_tree() for rect in room.walkable_area.rects]}
    if room.hotspots:
        out["hotspots"] = [_hotspot_tree(h) for h in room.hotspots]
    if room.exits:
        out["exits"] = [_exit_tree(e) for e in room.exits]
    return {"room": out}


# -----------------------------------------------------------------------------
# NPCs, items, puzzles
# -----------------------------------------------------------------------------


def _placement_tree(placement: Placement) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "room": placement.room,
        "position": placement.position.to_tree(),
        "size": placement.size.to_tree(),
    }
    if placement.walk_to is not None:
        obj["walkTo"] = placement.walk_to.to_tree()
    if placement.facing is not None:
        obj["facing"] = placement.facing
    return obj


def npc_tree(npc: Npc) -> dict[str, Any]:
    obj: dict[str, Any] = {"id": npc.id, "name": npc.name}
    if npc.traits:
        obj["traits"] = copy.deepcopy(npc.traits)
    if npc.placements:
        obj["placements"] = [_placement_tree(p) for p in npc.placements]
    if npc.dialogue is not None:
        obj["dialogue"] = npc.dialogue
    if npc.dialogue_overrides:
        obj["dialogueOverrides"] = copy.deepcopy(npc.dialogue_overrides)
    if npc.barks:
        obj["barks"] = list(npc.barks)
    if npc.responses:
        obj["responses"] = dict(npc.responses)
    return obj


def item_tree(item: Item) -> dict[str, Any]:
    obj: dict[str, Any] = {"id": item.id, "name": item.name}
    if item.description:
        obj["description"] = item.description
    if item.icon != _DEFAULT_ITEM.icon:
        obj["icon"] = copy.deepcopy(item.icon)
    if item.use_on:
        obj["useOn"] = dict(item.use_on)
    if item.use_default != DEFAULT_USE_TEXT:
        obj["useDefault"] = item.use_default
    if item.responses:
        obj["responses"] = dict(item.responses)
    return obj


def puzzle_tree(puzzle: Puzzle) -> dict[str, Any]:
    """Build a puzzle entry; conditions and actions keep their ``{type, ...}`` shape."""
    obj: dict[str, Any] = {"id": puzzle.id, "trigger": puzzle.trigger.to_tree()}
    if puzzle.conditions:
        obj["conditions"] = [c.model_dump(by_alias=True, exclude_none=True) for c in puzzle.conditions]
    if puzzle.actions:
        obj["actions"] = [a.model_dump(by_alias=True, exclude_none=True) for a in puzzle.actions]
    if puzzle.fail_text is not None:
        obj["failText"] = puzzle.fail_text
    return obj


# -----------------------------------------------------------------------------
# Dialogues
# -----------------------------------------------------------------------------


def _choice_tree(choice: Choice) -> dict[str, Any]:
    obj: dict[str, Any] = {"text": choice.text}
    if choice.next is not None:
        obj["next"] = choice.next
    if choice.condition is not None:
        obj["condition"] = copy.deepcopy(choice.condition)
    if choice.action is not None:
        obj["action"] = copy.deepcopy(choice.action)
    obj.update(_extras(choice))
    return obj


def _node_tree(node: DialogueNode) -> dict[str, Any]:
    obj: dict[str, Any] = {"text": node.text}
    if node.speaker:
        obj["speaker"] = node.speaker
    if node.choices:
        obj["choices"] = [_choice_tree(c) for c in node.choices]
    if node.next is not None:
        obj["next"] = node.next
    if node.action is not None:
        obj["action"] = copy.deepcopy(node.action)
    obj.update(_extras(node))
    return obj


def dialogue_tree(dialogue_id: str, tree: DialogueTree) -> dict[str, Any]:
    """Build a ``dialogue`` tree for ``dialogues/<id>``."""
    out: dict[str, Any] = {"id": dialogue_id}
    if tree.start_node is not None:
        out["startNode"] = tree.start_node
    out["nodes"] = {key: _node_tree(node) for key, node in tree.nodes.items()}
    if tree.idle_lines:
        out["idleLines"] = list(tree.idle_lines)
    out.update(_extras(tree))
    return {"dialogue": out}


# -----------------------------------------------------------------------------
# Bundle
# -----------------------------------------------------------------------------


def build_bundle(store: ContentStore, extension: str = DEFAULT_EXTENSION) -> list[BundleFile]:
    """Project *store* onto the persisted schema.

    Args:
        store: Store to export.
        extension: File extension used in every path (``yaml`` or ``json``).

    Returns:
        Bundle files in canonical order: game, rooms, npcs, items, puzzles,
        dialogues.
    """
    files = [BundleFile(game_path(extension), game_tree(store, extension))]
    files.extend(BundleFile(room_path(room.id, extension), room_tree(room)) for room in store.rooms)
    if store.npcs:
        files.append(
            BundleFile(collection_path("npcs", extension), {"npcs": [npc_tree(n) for n in store.npcs]})
        )
    if store.items:
        files.append(
            BundleFile(
                collection_path("items", extension), {"items": [item_tree(i) for i in store.items]}
            )
        )
    if store.puzzles:
        files.append(
            BundleFile(
                collection_path("puzzles", extension),
                {"puzzles": [puzzle_tree(p) for p in store.puzzles]},
            )
        )
    files.extend(
        BundleFile(dialogue_path(dialogue_id, extension), dialogue_tree(dialogue_id, tree))
        for dialogue_id, tree in store.dialogues.items()
    )
    return files
