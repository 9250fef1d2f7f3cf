"""Canonical authoring content store.

The store is the single source of truth for authored content: game metadata,
rooms, NPCs, items, puzzles, and dialogue trees. Every successful mutation
notifies registered observers exactly once, synchronously, before returning.

CRUD misses are part of the contract, not errors:
- Update/remove of an unknown id logs a warning and returns without
  mutating or notifying.
- Adding an entity whose id is already taken logs a warning and is a no-op.

Cross-references owned by the store are repaired on removal: removing the
start room reassigns ``game.start_room`` to the first remaining room (or
clears it), and dialogue node renames/deletions rewrite every reference in
the tree (see :mod:`roomforge.store.dialogue`).
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from roomforge.models.base import ContentModel
from roomforge.models.content import GameMetadata, Item, Npc, Room
from roomforge.models.dialogue import DialogueNode, DialogueTree
from roomforge.models.patches import (
    GameMetadataPatch,
    ItemPatch,
    NpcPatch,
    Patch,
    PuzzlePatch,
    RoomPatch,
)
from roomforge.models.puzzle import Puzzle
from roomforge.observability.logging import get_logger
from roomforge.store import dialogue as integrity
from roomforge.store.observers import ChangeNotifier

log = get_logger(__name__)

M = TypeVar("M", bound=ContentModel)
P = TypeVar("P", bound=Patch)


def clone_entity(model: type[M], payload: M | Mapping[str, Any]) -> M:
    """Build a detached entity from a model instance or a raw mapping.

    Raw mappings are deep-copied before validation so nested containers are
    never shared with the caller; missing fields take the model's defaults.

    Raises:
        TypeError: If *payload* is neither a *model* instance nor a mapping.
        pydantic.ValidationError: If the payload does not fit the model.
    """
    if isinstance(payload, model):
        return payload.model_copy(deep=True)
    if isinstance(payload, Mapping):
        return model.model_validate(copy.deepcopy(dict(payload)))
    raise TypeError(f"Expected {model.__name__} or mapping, got {type(payload).__name__}")


def _coerce_patch(patch_model: type[P], changes: P | Mapping[str, Any]) -> P:
    if isinstance(changes, patch_model):
        return changes
    return patch_model.model_validate(dict(changes))


class ContentStore:
    """In-memory store of everything an author has created.

    Attributes:
        game: Game metadata.
        rooms: Rooms in authoring order; the first is the default start room.
        npcs: NPC definitions.
        items: Item definitions.
        puzzles: Puzzle definitions.
        dialogues: Dialogue trees keyed by dialogue id.
    """

    def __init__(self, game: GameMetadata | None = None) -> None:
        self.game: GameMetadata = game if game is not None else GameMetadata()
        self.rooms: list[Room] = []
        self.npcs: list[Npc] = []
        self.items: list[Item] = []
        self.puzzles: list[Puzzle] = []
        self.dialogues: dict[str, DialogueTree] = {}
        self._notifier: ChangeNotifier[ContentStore] = ChangeNotifier()

    @classmethod
    def from_content(
        cls,
        *,
        game: GameMetadata,
        rooms: list[Room] | None = None,
        npcs: list[Npc] | None = None,
        items: list[Item] | None = None,
        puzzles: list[Puzzle] | None = None,
        dialogues: dict[str, DialogueTree] | None = None,
    ) -> ContentStore:
        """Create a populated store without firing notifications.

        The caller is responsible for id uniqueness and for ``start_room``
        naming one of *rooms* (the rehydrator checks both).
        """
        store = cls(game)
        store.rooms = list(rooms or [])
        store.npcs = list(npcs or [])
        store.items = list(items or [])
        store.puzzles = list(puzzles or [])
        store.dialogues = dict(dialogues or {})
        return store

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, observer: Callable[[ContentStore], None]) -> Callable[[], None]:
        """Register an observer called with the store after each mutation.

        Returns:
            A function that unregisters the observer.
        """
        return self._notifier.subscribe(observer)

    def _notify(self) -> None:
        self._notifier.notify(self)

    # -------------------------------------------------------------------------
    # Shared CRUD helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _find(collection: list[M], entity_id: str) -> M | None:
        for entity in collection:
            if entity.id == entity_id:  # type: ignore[attr-defined]
                return entity
        return None

    def _add(self, kind: str, collection: list[M], model: type[M], payload: Any) -> M | None:
        entity = clone_entity(model, payload)
        entity_id = entity.id  # type: ignore[attr-defined]
        if self._find(collection, entity_id) is not None:
            log.warning("duplicate_id", kind=kind, id=entity_id, operation=f"add_{kind}")
            return None
        collection.append(entity)
        return entity

    def _update(
        self,
        kind: str,
        collection: list[M],
        patch_model: type[Patch],
        entity_id: str,
        changes: Any,
    ) -> M | None:
        entity = self._find(collection, entity_id)
        if entity is None:
            log.warning(f"{kind}_not_found", id=entity_id, operation=f"update_{kind}")
            return None
        _coerce_patch(patch_model, changes).apply_to(entity)
        self._notify()
        return entity

    def _remove(self, kind: str, collection: list[M], entity_id: str) -> M | None:
        for index, entity in enumerate(collection):
            if entity.id == entity_id:  # type: ignore[attr-defined]
                return collection.pop(index)
        log.warning(f"{kind}_not_found", id=entity_id, operation=f"remove_{kind}")
        return None

    # -------------------------------------------------------------------------
    # Game metadata
    # -------------------------------------------------------------------------

    def update_game_meta(
        self, changes: GameMetadataPatch | Mapping[str, Any]
    ) -> GameMetadata | None:
        """Shallow-merge *changes* into the game metadata.

        A ``startRoom`` that names no existing room rejects the whole update.

        Returns:
            The updated metadata, or None if the update was rejected.

        Raises:
            pydantic.ValidationError: If *changes* has unknown or mistyped fields.
        """
        patch = _coerce_patch(GameMetadataPatch, changes)
        if (
            "start_room" in patch.model_fields_set
            and patch.start_room is not None
            and self.get_room(patch.start_room) is None
        ):
            log.warning("room_not_found", id=patch.start_room, operation="update_game_meta")
            return None
        patch.apply_to(self.game)
        self._notify()
        return self.game

    def set_setting(self, setting_id: str | None) -> None:
        """Set the game setting (e.g. ``fantasy``, ``scifi``)."""
        self.game.setting = setting_id
        self._notify()

    # -------------------------------------------------------------------------
    # Rooms
    # -------------------------------------------------------------------------

    def add_room(self, room: Room | Mapping[str, Any]) -> Room | None:
        """Add a room; the first room added to an empty store becomes the start room."""
        added = self._add("room", self.rooms, Room, room)
        if added is None:
            return None
        if len(self.rooms) == 1:
            self.game.start_room = added.id
        self._notify()
        return added

    def update_room(self, room_id: str, changes: RoomPatch | Mapping[str, Any]) -> Room | None:
        return self._update("room", self.rooms, RoomPatch, room_id, changes)

    def remove_room(self, room_id: str) -> Room | None:
        """Remove a room, repairing ``game.start_room`` if it pointed here."""
        removed = self._remove("room", self.rooms, room_id)
        if removed is None:
            return None
        if self.game.start_room == room_id:
            self.game.start_room = self.rooms[0].id if self.rooms else None
            log.debug("start_room_reassigned", removed=room_id, start_room=self.game.start_room)
        self._notify()
        return removed

    def get_room(self, room_id: str) -> Room | None:
        return self._find(self.rooms, room_id)

    # -------------------------------------------------------------------------
    # NPCs
    # -------------------------------------------------------------------------

    def add_npc(self, npc: Npc | Mapping[str, Any]) -> Npc | None:
        added = self._add("npc", self.npcs, Npc, npc)
        if added is not None:
            self._notify()
        return added

    def update_npc(self, npc_id: str, changes: NpcPatch | Mapping[str, Any]) -> Npc | None:
        return self._update("npc", self.npcs, NpcPatch, npc_id, changes)

    def remove_npc(self, npc_id: str) -> Npc | None:
        removed = self._remove("npc", self.npcs, npc_id)
        if removed is not None:
            self._notify()
        return removed

    def get_npc(self, npc_id: str) -> Npc | None:
        return self._find(self.npcs, npc_id)

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def add_item(self, item: Item | Mapping[str, Any]) -> Item | None:
        added = self._add("item", self.items, Item, item)
        if added is not None:
            self._notify()
        return added

    def update_item(self, item_id: str, changes: ItemPatch | Mapping[str, Any]) -> Item | None:
        return self._update("item", self.items, ItemPatch, item_id, changes)

    def remove_item(self, item_id: str) -> Item | None:
        removed = self._remove("item", self.items, item_id)
        if removed is not None:
            self._notify()
        return removed

    def get_item(self, item_id: str) -> Item | None:
        return self._find(self.items, item_id)

    # -------------------------------------------------------------------------
    # Puzzles
    # -------------------------------------------------------------------------

    def add_puzzle(self, puzzle: Puzzle | Mapping[str, Any]) -> Puzzle | None:
        added = self._add("puzzle", self.puzzles, Puzzle, puzzle)
        if added is not None:
            self._notify()
        return added

    def update_puzzle(
        self, puzzle_id: str, changes: PuzzlePatch | Mapping[str, Any]
    ) -> Puzzle | None:
        return self._update("puzzle", self.puzzles, PuzzlePatch, puzzle_id, changes)

    def remove_puzzle(self, puzzle_id: str) -> Puzzle | None:
        removed = self._remove("puzzle", self.puzzles, puzzle_id)
        if removed is not None:
            self._notify()
        return removed

    def get_puzzle(self, puzzle_id: str) -> Puzzle | None:
        return self._find(self.puzzles, puzzle_id)

    # -------------------------------------------------------------------------
    # Dialogue trees
    # -------------------------------------------------------------------------

    def set_dialogue(
        self, dialogue_id: str, tree: DialogueTree | Mapping[str, Any]
    ) -> DialogueTree:
        """Add or replace a dialogue tree.

        The tree is copied, its ``id`` is set to *dialogue_id*, and any
        reference that names no node of the tree is cleared (and logged).
        """
        stored = self._resolved_copy(dialogue_id, clone_entity(DialogueTree, tree))
        stored.id = dialogue_id
        self.dialogues[dialogue_id] = stored
        self._notify()
        return stored

    def get_dialogue(self, dialogue_id: str) -> DialogueTree | None:
        return self.dialogues.get(dialogue_id)

    def remove_dialogue(self, dialogue_id: str) -> DialogueTree | None:
        removed = self.dialogues.pop(dialogue_id, None)
        if removed is None:
            log.warning("dialogue_not_found", id=dialogue_id, operation="remove_dialogue")
            return None
        self._notify()
        return removed

    def add_dialogue_node(
        self,
        dialogue_id: str,
        key: str | None = None,
        node: DialogueNode | Mapping[str, Any] | None = None,
    ) -> str | None:
        """Append a node to a tree.

        Args:
            dialogue_id: Tree to extend.
            key: Node key; generated as ``node_<n>`` when omitted.
            node: Node content; an empty node when omitted.

        Returns:
            The key of the new node, or None if the tree is unknown or the
            key is already taken.
        """
        tree = self._tree_or_log(dialogue_id, "add_dialogue_node")
        if tree is None:
            return None
        node_key = key or integrity.next_node_key(tree)
        if node_key in tree.nodes:
            log.warning(
                "dialogue_node_conflict", id=dialogue_id, key=node_key, operation="add_dialogue_node"
            )
            return None
        new_node = clone_entity(DialogueNode, node) if node is not None else DialogueNode()
        candidate = tree.model_copy(deep=True)
        candidate.nodes[node_key] = new_node
        self._swap_tree(tree, self._resolved_copy(dialogue_id, candidate))
        self._notify()
        return node_key

    def rename_dialogue_node(self, dialogue_id: str, old_key: str, new_key: str) -> bool:
        """Rename a node and rewrite every reference to it in the same tree.

        Returns:
            True if the tree changed. Unknown trees or keys, empty keys, and
            renames onto an existing key are logged and return False.
        """
        tree = self._tree_or_log(dialogue_id, "rename_dialogue_node")
        if tree is None or old_key == new_key:
            return False
        try:
            renamed = integrity.rename_node(tree, old_key, new_key)
        except KeyError:
            log.warning(
                "dialogue_node_not_found",
                id=dialogue_id,
                key=old_key,
                operation="rename_dialogue_node",
            )
            return False
        except ValueError as e:
            log.warning(
                "dialogue_node_conflict",
                id=dialogue_id,
                key=new_key,
                reason=str(e),
                operation="rename_dialogue_node",
            )
            return False
        self._swap_tree(tree, renamed)
        self._notify()
        return True

    def delete_dialogue_node(self, dialogue_id: str, key: str) -> bool:
        """Delete a node and null every reference to it in the same tree."""
        tree = self._tree_or_log(dialogue_id, "delete_dialogue_node")
        if tree is None:
            return False
        try:
            pruned = integrity.delete_node(tree, key)
        except KeyError:
            log.warning(
                "dialogue_node_not_found", id=dialogue_id, key=key, operation="delete_dialogue_node"
            )
            return False
        self._swap_tree(tree, pruned)
        self._notify()
        return True

    def persist_dialogue(self, dialogue_id: str) -> bool:
        """Commit direct edits made to a live tree returned by :meth:`get_dialogue`.

        References the edits left unresolved are cleared before notifying.
        """
        tree = self._tree_or_log(dialogue_id, "persist_dialogue")
        if tree is None:
            return False
        self._swap_tree(tree, self._resolved_copy(dialogue_id, tree))
        self._notify()
        return True

    def _tree_or_log(self, dialogue_id: str, operation: str) -> DialogueTree | None:
        tree = self.dialogues.get(dialogue_id)
        if tree is None:
            log.warning("dialogue_not_found", id=dialogue_id, operation=operation)
        return tree

    @staticmethod
    def _resolved_copy(dialogue_id: str, tree: DialogueTree) -> DialogueTree:
        pruned, cleared = integrity.prune_dangling(tree)
        for ref in cleared:
            log.warning(
                "dangling_reference_cleared",
                id=dialogue_id,
                node=ref.node_key,
                choice=ref.choice_index,
                target=ref.target,
            )
        return pruned

    @staticmethod
    def _swap_tree(live: DialogueTree, updated: DialogueTree) -> None:
        # Keep the live object so references handed out by get_dialogue stay valid.
        live.nodes = updated.nodes
        live.start_node = updated.start_node

    # -------------------------------------------------------------------------
    # Read surface
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Return a detached plain-data copy of the whole store."""
        return {
            "game": self.game.model_dump(by_alias=True),
            "rooms": [room.model_dump(by_alias=True) for room in self.rooms],
            "npcs": [npc.model_dump(by_alias=True) for npc in self.npcs],
            "items": [item.model_dump(by_alias=True) for item in self.items],
            "puzzles": [puzzle.model_dump(by_alias=True) for puzzle in self.puzzles],
            "dialogues": {
                dialogue_id: tree.model_dump(by_alias=True)
                for dialogue_id, tree in self.dialogues.items()
            },
        }

    def is_empty(self) -> bool:
        return not (self.rooms or self.npcs or self.items or self.puzzles or self.dialogues)
