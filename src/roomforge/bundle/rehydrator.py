"""Rebuild a content store from a parsed persisted bundle.

This is the inverse of :func:`roomforge.bundle.projector.build_bundle`.
Fields absent from the bundle take the same model defaults an Add operation
applies, so ``rehydrate(parse_bundle(build_bundle(store)))`` reproduces
``store``.

Only the game section is required. Missing optional sections (npcs, items,
puzzles, dialogues) default to empty. Structurally unusable input (no game
section, a list where a mapping is required, entity payloads that fail
validation, duplicate ids) raises :class:`MalformedImportError`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import ValidationError

from roomforge.bundle.projector import BundleFile
from roomforge.models.base import ContentModel
from roomforge.models.content import GameMetadata, Item, Npc, Room
from roomforge.models.dialogue import DialogueTree
from roomforge.models.puzzle import Puzzle
from roomforge.observability.logging import get_logger
from roomforge.store import dialogue as integrity
from roomforge.store.content_store import ContentStore
from roomforge.store.errors import MalformedImportError

log = get_logger(__name__)

M = TypeVar("M", bound=ContentModel)

# Keys of the game tree that reference other files rather than hold metadata.
_REFERENCE_KEYS = frozenset({"rooms", "npcs", "items", "puzzles", "dialogues", "protagonist", "music"})


@dataclass
class ParsedBundle:
    """Parsed (not yet validated) bundle sections.

    Each section may be wrapped (``{"room": {...}}``) or bare.

    Attributes:
        game: Parsed game tree. Required.
        rooms: Parsed room trees, in bundle order.
        npcs: Parsed npcs tree or list, if the bundle had one.
        items: Parsed items tree or list, if the bundle had one.
        puzzles: Parsed puzzles tree or list, if the bundle had one.
        dialogues: Parsed dialogue trees keyed by dialogue id.
    """

    game: Any
    rooms: list[Any] = field(default_factory=list)
    npcs: Any = None
    items: Any = None
    puzzles: Any = None
    dialogues: Any = field(default_factory=dict)

    def present_sections(self) -> list[str]:
        sections = ["game"] if self.game is not None else []
        if self.rooms:
            sections.append("rooms")
        sections.extend(
            name for name in ("npcs", "items", "puzzles") if getattr(self, name) is not None
        )
        if self.dialogues:
            sections.append("dialogues")
        return sections


def split_bundle_path(path: str) -> tuple[str, str]:
    """Split ``rooms/r1.yaml`` into (``rooms``, ``r1``) and ``npcs.yaml`` into (``npcs``, "")."""
    head, _, tail = path.partition("/")
    if tail:
        return head, tail.rsplit(".", 1)[0]
    return head.rsplit(".", 1)[0], ""


def parse_bundle(files: Iterable[BundleFile]) -> ParsedBundle:
    """Sort bundle files into sections by path.

    Unrecognised paths are logged and skipped.
    """
    bundle = ParsedBundle(game=None)
    for file in files:
        section, name = split_bundle_path(file.path)
        if section == "game" and not name:
            bundle.game = file.tree
        elif section == "rooms" and name:
            bundle.rooms.append(file.tree)
        elif section in ("npcs", "items", "puzzles") and not name:
            setattr(bundle, section, file.tree)
        elif section == "dialogues" and name:
            bundle.dialogues[name] = file.tree
        else:
            log.warning("unknown_bundle_path", path=file.path)
    return bundle


def _unwrap(tree: Any, key: str, section: str) -> Mapping[str, Any]:
    if isinstance(tree, Mapping) and isinstance(tree.get(key), Mapping):
        tree = tree[key]
    if not isinstance(tree, Mapping):
        raise MalformedImportError(section, f"expected a mapping, got {type(tree).__name__}")
    return tree


def _collection(raw: Any, key: str) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        raw = raw.get(key, [])
    if not isinstance(raw, list):
        raise MalformedImportError(key, f"expected a list, got {type(raw).__name__}")
    return raw


def _validate(model: type[M], data: Mapping[str, Any], section: str) -> M:
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise MalformedImportError(section, str(e)) from e


def _unique(entities: list[M], section: str) -> list[M]:
    seen: set[str] = set()
    for entity in entities:
        entity_id = entity.id  # type: ignore[attr-defined]
        if entity_id in seen:
            raise MalformedImportError(section, f"duplicate id '{entity_id}'")
        seen.add(entity_id)
    return entities


def parse_dialogue(dialogue_id: str, raw: Any) -> DialogueTree:
    """Validate one dialogue tree as stored, without pruning dangling references.

    The tree's ``id`` is set from *dialogue_id*, which is authoritative.
    """
    section = f"dialogues.{dialogue_id}"
    tree = _validate(DialogueTree, _unwrap(raw, "dialogue", section), section)
    tree.id = dialogue_id
    return tree


def rehydrate(bundle: ParsedBundle) -> ContentStore:
    """Reconstruct a content store from *bundle*.

    Raises:
        MalformedImportError: If the game section is missing or any section
            is structurally invalid.
    """
    if bundle.game is None:
        raise MalformedImportError(
            "game", "bundle has no game section", available=bundle.present_sections()
        )

    game_data = _unwrap(bundle.game, "game", "game")
    game = _validate(
        GameMetadata,
        {k: v for k, v in game_data.items() if k not in _REFERENCE_KEYS},
        "game",
    )

    if not isinstance(bundle.rooms, list):
        raise MalformedImportError("rooms", f"expected a list, got {type(bundle.rooms).__name__}")
    rooms = _unique(
        [
            _validate(Room, _unwrap(tree, "room", f"rooms[{i}]"), f"rooms[{i}]")
            for i, tree in enumerate(bundle.rooms)
        ],
        "rooms",
    )
    npcs = _unique(
        [
            _validate(Npc, _unwrap(tree, "npc", f"npcs[{i}]"), f"npcs[{i}]")
            for i, tree in enumerate(_collection(bundle.npcs, "npcs"))
        ],
        "npcs",
    )
    items = _unique(
        [
            _validate(Item, _unwrap(tree, "item", f"items[{i}]"), f"items[{i}]")
            for i, tree in enumerate(_collection(bundle.items, "items"))
        ],
        "items",
    )
    puzzles = _unique(
        [
            _validate(Puzzle, _unwrap(tree, "puzzle", f"puzzles[{i}]"), f"puzzles[{i}]")
            for i, tree in enumerate(_collection(bundle.puzzles, "puzzles"))
        ],
        "puzzles",
    )

    if not isinstance(bundle.dialogues, Mapping):
        raise MalformedImportError(
            "dialogues", f"expected a mapping, got {type(bundle.dialogues).__name__}"
        )
    dialogues: dict[str, DialogueTree] = {}
    for dialogue_id, raw in bundle.dialogues.items():
        tree, cleared = integrity.prune_dangling(parse_dialogue(dialogue_id, raw))
        for ref in cleared:
            log.warning(
                "dangling_reference_cleared", id=dialogue_id, node=ref.node_key, target=ref.target
            )
        dialogues[dialogue_id] = tree

    room_ids = {room.id for room in rooms}
    if game.start_room is not None and game.start_room not in room_ids:
        repaired = rooms[0].id if rooms else None
        log.warning("start_room_repaired", start_room=game.start_room, replacement=repaired)
        game.start_room = repaired

    log.debug(
        "bundle_rehydrated",
        rooms=len(rooms),
        npcs=len(npcs),
        items=len(items),
        puzzles=len(puzzles),
        dialogues=len(dialogues),
    )
    return ContentStore.from_content(
        game=game,
        rooms=rooms,
        npcs=npcs,
        items=items,
        puzzles=puzzles,
        dialogues=dialogues,
    )
