"""Tests for ContentStore CRUD, start-room handling and notifications."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from roomforge.models import Item, Room, RoomPatch
from roomforge.store import ContentStore


class TestRooms:
    """Room CRUD and the start-room invariant."""

    def test_first_room_becomes_start_room(self, store: ContentStore) -> None:
        """Adding a room to an empty store makes it the start room."""
        store.add_room({"id": "r1"})

        assert store.game.start_room == "r1"

    def test_second_room_does_not_replace_start_room(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})
        store.add_room({"id": "r2"})

        assert store.game.start_room == "r1"

    def test_removing_start_room_reassigns_to_first_remaining(self, store: ContentStore) -> None:
        """Removing the start room hands the role to the first remaining room."""
        store.add_room({"id": "r1"})
        store.add_room({"id": "r2"})

        store.remove_room("r1")

        assert store.game.start_room == "r2"

    def test_removing_last_room_clears_start_room(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})

        store.remove_room("r1")

        assert store.game.start_room is None
        assert store.rooms == []

    def test_removing_other_room_keeps_start_room(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})
        store.add_room({"id": "r2"})

        store.remove_room("r2")

        assert store.game.start_room == "r1"

    def test_start_room_invariant_over_sequence(self, store: ContentStore) -> None:
        """startRoom is None only when no rooms exist, else names an existing room."""
        ops = [
            ("add", "a"),
            ("add", "b"),
            ("add", "c"),
            ("remove", "b"),
            ("remove", "a"),
            ("add", "d"),
            ("remove", "c"),
            ("remove", "d"),
            ("add", "e"),
        ]
        for op, room_id in ops:
            if op == "add":
                store.add_room({"id": room_id})
            else:
                store.remove_room(room_id)
            room_ids = {room.id for room in store.rooms}
            if room_ids:
                assert store.game.start_room in room_ids
            else:
                assert store.game.start_room is None

    def test_add_applies_defaults(self, store: ContentStore) -> None:
        room = store.add_room({"id": "r1"})

        assert room is not None
        assert room.name == "Untitled Room"
        assert room.hotspots == []
        assert room.background["type"] == "procedural"

    def test_add_generates_id_when_missing(self, store: ContentStore) -> None:
        room = store.add_room({})

        assert room is not None
        assert room.id.startswith("room_")

    def test_add_copies_input(self, store: ContentStore) -> None:
        """Later edits to the caller's object don't leak into the store."""
        original = Room(id="r1", name="Hall")
        store.add_room(original)

        original.name = "Changed"

        assert store.get_room("r1").name == "Hall"

    def test_duplicate_id_is_rejected(
        self, store: ContentStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        store.add_room({"id": "r1", "name": "First"})

        with caplog.at_level(logging.WARNING):
            result = store.add_room({"id": "r1", "name": "Second"})

        assert result is None
        assert len(store.rooms) == 1
        assert store.get_room("r1").name == "First"
        assert "duplicate_id" in caplog.text

    def test_update_merges_supplied_fields(self, store: ContentStore) -> None:
        store.add_room({"id": "r1", "name": "Hall", "description": "Dusty."})

        store.update_room("r1", {"name": "Great Hall"})

        room = store.get_room("r1")
        assert room.name == "Great Hall"
        assert room.description == "Dusty."

    def test_update_accepts_camel_case_keys(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})

        store.update_room("r1", {"walkableArea": {"rects": [{"x": 0, "y": 100, "width": 320}]}})

        rect = store.get_room("r1").walkable_area.rects[0]
        assert rect.width == 320
        assert rect.height == 10

    def test_update_accepts_patch_model(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})

        store.update_room("r1", RoomPatch(description="Cold."))

        assert store.get_room("r1").description == "Cold."

    def test_update_rejects_unknown_field(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})

        with pytest.raises(ValidationError):
            store.update_room("r1", {"colour": "red"})

    def test_update_rejects_id_change(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})

        with pytest.raises(ValidationError):
            store.update_room("r1", {"id": "r2"})

        assert store.get_room("r1") is not None


class TestNotFound:
    """CRUD on missing ids is a logged no-op."""

    def test_update_missing_room(self, store: ContentStore, caplog: pytest.LogCaptureFixture) -> None:
        calls: list[ContentStore] = []
        store.subscribe(calls.append)

        with caplog.at_level(logging.WARNING):
            result = store.update_room("nope", {"name": "x"})

        assert result is None
        assert calls == []
        assert "room_not_found" in caplog.text

    def test_remove_missing_item(self, store: ContentStore, caplog: pytest.LogCaptureFixture) -> None:
        calls: list[ContentStore] = []
        store.subscribe(calls.append)

        with caplog.at_level(logging.WARNING):
            result = store.remove_item("nope")

        assert result is None
        assert calls == []
        assert "item_not_found" in caplog.text

    def test_remove_missing_dialogue(self, store: ContentStore) -> None:
        calls: list[ContentStore] = []
        store.subscribe(calls.append)

        assert store.remove_dialogue("nope") is None
        assert calls == []

    def test_getters_return_none(self, store: ContentStore) -> None:
        assert store.get_room("x") is None
        assert store.get_npc("x") is None
        assert store.get_item("x") is None
        assert store.get_puzzle("x") is None
        assert store.get_dialogue("x") is None


class TestGameMetadata:
    """Game metadata updates."""

    def test_defaults(self, store: ContentStore) -> None:
        game = store.game
        assert game.title == "My Adventure"
        assert game.setting is None
        assert game.resolution.width == 320
        assert game.viewport_height == 140
        assert game.start_room is None
        assert [v.id for v in game.verbs][:3] == ["give", "open", "close"]
        assert game.default_responses["push"] == "It won't budge."

    def test_update_title(self, store: ContentStore) -> None:
        store.update_game_meta({"title": "Night Shift"})

        assert store.game.title == "Night Shift"
        assert store.game.version == "1.0"

    def test_start_room_must_exist(
        self, store: ContentStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        store.add_room({"id": "r1"})

        with caplog.at_level(logging.WARNING):
            result = store.update_game_meta({"startRoom": "ghost", "title": "Ignored"})

        assert result is None
        assert store.game.start_room == "r1"
        assert store.game.title == "My Adventure"
        assert "room_not_found" in caplog.text

    def test_start_room_can_be_switched(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})
        store.add_room({"id": "r2"})

        store.update_game_meta({"startRoom": "r2"})

        assert store.game.start_room == "r2"

    def test_set_setting(self, store: ContentStore) -> None:
        calls: list[ContentStore] = []
        store.subscribe(calls.append)

        store.set_setting("scifi")

        assert store.game.setting == "scifi"
        assert len(calls) == 1


class TestOtherEntities:
    """NPC, item and puzzle CRUD."""

    def test_npc_defaults(self, store: ContentStore) -> None:
        npc = store.add_npc({"id": "n1", "placements": [{"room": "r1"}]})

        assert npc.name == "Unnamed NPC"
        placement = npc.placements[0]
        assert (placement.position.x, placement.position.y) == (160, 100)
        assert (placement.size.width, placement.size.height) == (24, 40)

    def test_item_defaults(self, store: ContentStore) -> None:
        item = store.add_item(Item(id="i1"))

        assert item.name == "Unnamed Item"
        assert item.use_default == "I can't use that here."
        assert item.icon == {"generator": None}

    def test_update_and_remove_item(self, store: ContentStore) -> None:
        store.add_item({"id": "i1"})

        store.update_item("i1", {"useOn": {"door": "Click."}})
        assert store.get_item("i1").use_on == {"door": "Click."}

        removed = store.remove_item("i1")
        assert removed is not None
        assert store.items == []

    def test_puzzle_from_mapping(self, store: ContentStore) -> None:
        puzzle = store.add_puzzle(
            {
                "id": "p1",
                "trigger": {"verb": "use", "target": "door", "item": "key"},
                "conditions": [{"type": "!hasFlag", "value": "doorOpen"}],
                "actions": [{"type": "setFlag", "flag": "doorOpen"}],
            }
        )

        assert puzzle.key == "use:key:door"
        assert puzzle.conditions[0].type == "!hasFlag"

    def test_puzzle_rejects_unknown_action_type(self, store: ContentStore) -> None:
        with pytest.raises(ValidationError):
            store.add_puzzle({"id": "p1", "actions": [{"type": "explode"}]})

    def test_update_puzzle_trigger(self, store: ContentStore) -> None:
        store.add_puzzle({"id": "p1", "trigger": {"verb": "open", "target": "door"}})

        store.update_puzzle("p1", {"trigger": {"verb": "push", "target": "door"}})

        assert store.get_puzzle("p1").key == "push:door"

    def test_remove_npc(self, store: ContentStore) -> None:
        store.add_npc({"id": "n1"})

        assert store.remove_npc("n1") is not None
        assert store.get_npc("n1") is None


class TestNotifications:
    """Observers are notified exactly once per successful mutation."""

    def test_each_mutation_notifies_once(self, store: ContentStore) -> None:
        calls: list[ContentStore] = []
        store.subscribe(calls.append)

        store.add_room({"id": "r1"})
        store.update_room("r1", {"name": "Hall"})
        store.add_item({"id": "i1"})
        store.remove_room("r1")

        assert len(calls) == 4
        assert all(c is store for c in calls)

    def test_rejected_add_does_not_notify(self, store: ContentStore) -> None:
        store.add_room({"id": "r1"})
        calls: list[ContentStore] = []
        store.subscribe(calls.append)

        store.add_room({"id": "r1"})

        assert calls == []

    def test_unsubscribe(self, store: ContentStore) -> None:
        calls: list[ContentStore] = []
        unsubscribe = store.subscribe(calls.append)

        unsubscribe()
        store.add_room({"id": "r1"})

        assert calls == []

    def test_failing_observer_does_not_block_others(
        self, store: ContentStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        calls: list[ContentStore] = []

        def broken(_: ContentStore) -> None:
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(calls.append)

        with caplog.at_level(logging.ERROR):
            store.add_room({"id": "r1"})

        assert len(calls) == 1
        assert store.get_room("r1") is not None
        assert "observer_failed" in caplog.text

    def test_observers_are_per_store(self) -> None:
        first, second = ContentStore(), ContentStore()
        calls: list[ContentStore] = []
        first.subscribe(calls.append)

        second.add_room({"id": "r1"})

        assert calls == []


class TestSnapshot:
    """Plain-data snapshot of the store."""

    def test_snapshot_is_detached(self, populated_store: ContentStore) -> None:
        snap = populated_store.snapshot()
        snap["rooms"][0]["name"] = "Mutated"

        assert populated_store.get_room("dock").name == "Dock"

    def test_snapshot_uses_camel_case(self, populated_store: ContentStore) -> None:
        snap = populated_store.snapshot()

        assert snap["game"]["startRoom"] == "dock"
        assert snap["dialogues"]["keeper_talk"]["startNode"] == "start"

    def test_is_empty(self, store: ContentStore, populated_store: ContentStore) -> None:
        assert store.is_empty()
        assert not populated_store.is_empty()
