"""Tests for dialogue graph integrity: rename, delete, dangling references."""

from __future__ import annotations

import logging

import pytest

from roomforge.models import DialogueTree
from roomforge.store import (
    ContentStore,
    DanglingReference,
    dangling_references,
    delete_node,
    next_node_key,
    prune_dangling,
    rename_node,
)


def _tree(nodes: dict, start: str | None = None) -> DialogueTree:
    return DialogueTree.model_validate({"startNode": start, "nodes": nodes})


def _assert_resolved(tree: DialogueTree) -> None:
    for node in tree.nodes.values():
        assert node.next is None or node.next in tree.nodes
        for choice in node.choices:
            assert choice.next is None or choice.next in tree.nodes


class TestRenameNode:
    """Pure rename_node function."""

    def test_rename_unreferenced_node(self) -> None:
        """Renaming a node nothing points at only changes its key."""
        tree = _tree({"start": {"next": "end"}, "end": {}})

        renamed = rename_node(tree, "start", "intro")

        assert list(renamed.nodes) == ["intro", "end"]
        assert "start" not in renamed.nodes
        assert renamed.nodes["intro"].next == "end"

    def test_rename_rewrites_next_and_choices(self) -> None:
        tree = _tree(
            {
                "a": {"next": "b"},
                "b": {"choices": [{"text": "again", "next": "b"}, {"text": "stop"}]},
                "c": {"choices": [{"text": "go", "next": "b"}]},
            }
        )

        renamed = rename_node(tree, "b", "middle")

        assert renamed.nodes["a"].next == "middle"
        assert renamed.nodes["middle"].choices[0].next == "middle"
        assert renamed.nodes["middle"].choices[1].next is None
        assert renamed.nodes["c"].choices[0].next == "middle"
        _assert_resolved(renamed)

    def test_rename_rewrites_start_node(self) -> None:
        tree = _tree({"start": {}}, start="start")

        renamed = rename_node(tree, "start", "intro")

        assert renamed.start_node == "intro"

    def test_rename_preserves_order(self) -> None:
        tree = _tree({"a": {}, "b": {}, "c": {}})

        renamed = rename_node(tree, "b", "z")

        assert list(renamed.nodes) == ["a", "z", "c"]

    def test_rename_leaves_input_untouched(self) -> None:
        tree = _tree({"a": {"next": "b"}, "b": {}})

        rename_node(tree, "b", "c")

        assert list(tree.nodes) == ["a", "b"]
        assert tree.nodes["a"].next == "b"

    def test_rename_missing_key(self) -> None:
        with pytest.raises(KeyError):
            rename_node(_tree({"a": {}}), "nope", "b")

    def test_rename_onto_existing_key(self) -> None:
        with pytest.raises(ValueError, match="already exists"):
            rename_node(_tree({"a": {}, "b": {}}), "a", "b")

    def test_rename_to_empty_key(self) -> None:
        with pytest.raises(ValueError):
            rename_node(_tree({"a": {}}), "a", "")


class TestDeleteNode:
    """Pure delete_node function."""

    def test_delete_nulls_next(self) -> None:
        tree = _tree({"a": {"next": "b"}, "b": {}})

        pruned = delete_node(tree, "b")

        assert list(pruned.nodes) == ["a"]
        assert pruned.nodes["a"].next is None

    def test_delete_nulls_choices_and_start(self) -> None:
        tree = _tree(
            {"a": {"choices": [{"text": "x", "next": "b"}, {"text": "y", "next": "a"}]}, "b": {}},
            start="b",
        )

        pruned = delete_node(tree, "b")

        assert pruned.nodes["a"].choices[0].next is None
        assert pruned.nodes["a"].choices[1].next == "a"
        assert pruned.start_node is None

    def test_delete_missing_key(self) -> None:
        with pytest.raises(KeyError):
            delete_node(_tree({"a": {}}), "b")


class TestDanglingReferences:
    """Detection and pruning of unresolved references."""

    def test_detects_all_kinds(self) -> None:
        tree = _tree(
            {"a": {"next": "ghost", "choices": [{"text": "x", "next": "phantom"}]}},
            start="missing",
        )

        refs = dangling_references(tree)

        assert refs == [
            DanglingReference(None, None, "missing"),
            DanglingReference("a", None, "ghost"),
            DanglingReference("a", 0, "phantom"),
        ]

    def test_resolved_tree_has_none(self) -> None:
        assert dangling_references(_tree({"a": {"next": "a"}}, start="a")) == []

    def test_prune_clears_only_dangling(self) -> None:
        tree = _tree({"a": {"next": "ghost", "choices": [{"text": "x", "next": "a"}]}})

        pruned, cleared = prune_dangling(tree)

        assert pruned.nodes["a"].next is None
        assert pruned.nodes["a"].choices[0].next == "a"
        assert [ref.target for ref in cleared] == ["ghost"]
        assert tree.nodes["a"].next == "ghost"


class TestNextNodeKey:
    def test_counts_from_node_total(self) -> None:
        assert next_node_key(_tree({"a": {}, "b": {}})) == "node_3"

    def test_skips_taken_keys(self) -> None:
        assert next_node_key(_tree({"start": {}, "node_2": {}})) == "node_3"


class TestStoreDialogueOperations:
    """Node operations through the store, with integrity after each step."""

    @pytest.fixture
    def talk_store(self, store: ContentStore) -> ContentStore:
        store.set_dialogue(
            "talk",
            {
                "startNode": "start",
                "nodes": {
                    "start": {"text": "Hi", "choices": [{"text": "More", "next": "more"}]},
                    "more": {"text": "Well...", "next": "end"},
                    "end": {"text": "Bye"},
                },
            },
        )
        return store

    def test_set_dialogue_sets_id(self, talk_store: ContentStore) -> None:
        assert talk_store.get_dialogue("talk").id == "talk"

    def test_set_dialogue_clears_dangling(
        self, store: ContentStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            tree = store.set_dialogue("t", {"nodes": {"a": {"next": "nowhere"}}})

        assert tree.nodes["a"].next is None
        assert "dangling_reference_cleared" in caplog.text

    def test_rename_through_store(self, talk_store: ContentStore) -> None:
        calls: list[ContentStore] = []
        talk_store.subscribe(calls.append)

        assert talk_store.rename_dialogue_node("talk", "more", "explain")

        tree = talk_store.get_dialogue("talk")
        assert tree.nodes["start"].choices[0].next == "explain"
        assert tree.nodes["explain"].next == "end"
        assert len(calls) == 1

    def test_rename_conflict_is_rejected(
        self, talk_store: ContentStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        calls: list[ContentStore] = []
        talk_store.subscribe(calls.append)

        with caplog.at_level(logging.WARNING):
            assert not talk_store.rename_dialogue_node("talk", "more", "end")

        assert list(talk_store.get_dialogue("talk").nodes) == ["start", "more", "end"]
        assert calls == []
        assert "dialogue_node_conflict" in caplog.text

    def test_rename_to_same_key_is_noop(self, talk_store: ContentStore) -> None:
        assert not talk_store.rename_dialogue_node("talk", "more", "more")

    def test_delete_through_store(self, talk_store: ContentStore) -> None:
        assert talk_store.delete_dialogue_node("talk", "end")

        assert talk_store.get_dialogue("talk").nodes["more"].next is None

    def test_delete_missing_node(self, talk_store: ContentStore) -> None:
        assert not talk_store.delete_dialogue_node("talk", "ghost")

    def test_add_node_generates_key(self, talk_store: ContentStore) -> None:
        key = talk_store.add_dialogue_node("talk")

        assert key == "node_4"
        assert talk_store.get_dialogue("talk").nodes[key].text == ""

    def test_add_node_with_taken_key(self, talk_store: ContentStore) -> None:
        assert talk_store.add_dialogue_node("talk", "start", {"text": "dup"}) is None
        assert talk_store.get_dialogue("talk").nodes["start"].text == "Hi"

    def test_add_node_to_missing_tree(self, store: ContentStore) -> None:
        assert store.add_dialogue_node("ghost") is None

    def test_live_tree_survives_operations(self, talk_store: ContentStore) -> None:
        """A tree handed out by get_dialogue reflects later node operations."""
        live = talk_store.get_dialogue("talk")

        talk_store.rename_dialogue_node("talk", "start", "hello")

        assert live.start_node == "hello"
        assert "hello" in live.nodes

    def test_persist_dialogue_after_direct_edit(self, talk_store: ContentStore) -> None:
        calls: list[ContentStore] = []
        talk_store.subscribe(calls.append)
        live = talk_store.get_dialogue("talk")
        live.nodes["end"].next = "nowhere"

        assert talk_store.persist_dialogue("talk")

        assert live.nodes["end"].next is None
        assert len(calls) == 1

    def test_integrity_over_operation_sequence(self, talk_store: ContentStore) -> None:
        """Every next resolves after each add/rename/delete step."""
        steps = [
            lambda s: s.add_dialogue_node("talk", "side", {"text": "?", "next": "start"}),
            lambda s: s.rename_dialogue_node("talk", "start", "opening"),
            lambda s: s.delete_dialogue_node("talk", "more"),
            lambda s: s.add_dialogue_node("talk", None, {"next": "side"}),
            lambda s: s.rename_dialogue_node("talk", "side", "detour"),
            lambda s: s.delete_dialogue_node("talk", "opening"),
        ]
        for step in steps:
            step(talk_store)
            tree = talk_store.get_dialogue("talk")
            _assert_resolved(tree)
            assert tree.start_node is None or tree.start_node in tree.nodes
