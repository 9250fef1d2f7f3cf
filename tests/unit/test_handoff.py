"""Tests for the playtest hand-off slot and the game.json writer."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from roomforge.runtime import STORAGE_KEY, PlaytestHandoff, build_runtime_payload, write_runtime_payload

if TYPE_CHECKING:
    from pathlib import Path

    from roomforge.store import ContentStore


class TestPlaytestHandoff:
    def test_take_returns_payload_once(self, populated_store: ContentStore) -> None:
        handoff = PlaytestHandoff()
        payload = build_runtime_payload(populated_store)

        handoff.put(payload)

        assert handoff.pending()
        assert handoff.take() == payload
        assert handoff.take() is None
        assert not handoff.pending()

    def test_take_without_put(self) -> None:
        assert PlaytestHandoff().take() is None

    def test_put_replaces_untaken_payload(self) -> None:
        handoff = PlaytestHandoff()

        handoff.put({"title": "first"})
        handoff.put({"title": "second"})

        assert handoff.take() == {"title": "second"}

    def test_uses_shared_storage_key(self) -> None:
        storage: dict[str, str] = {}

        PlaytestHandoff(storage).put({"title": "x"})

        assert json.loads(storage[STORAGE_KEY]) == {"title": "x"}

    def test_unreadable_data_is_cleared(self) -> None:
        storage = {STORAGE_KEY: "{not json"}
        handoff = PlaytestHandoff(storage)

        assert handoff.take() is None
        assert STORAGE_KEY not in storage

    def test_non_object_data_is_rejected(self) -> None:
        handoff = PlaytestHandoff({STORAGE_KEY: "[1, 2]"})

        assert handoff.take() is None


class TestWriteRuntimePayload:
    def test_writes_game_json(self, tmp_path: Path, populated_store: ContentStore) -> None:
        payload = build_runtime_payload(populated_store)

        path = write_runtime_payload(payload, tmp_path / "build")

        assert path == tmp_path / "build" / "game.json"
        assert json.loads(path.read_text()) == payload
