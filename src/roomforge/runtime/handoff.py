"""Hand a runtime payload to the playback engine.

:class:`PlaytestHandoff` is a keyed, process-local slot: the authoring side
``put``s a JSON-encoded payload and the playback side ``take``s it exactly
once. :func:`write_runtime_payload` writes the same payload to disk for an
engine launched in another process.
"""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from roomforge.bundle.writer import BundleWriteError
from roomforge.observability.logging import get_logger

log = get_logger(__name__)

STORAGE_KEY = "creator_playtest_data"
RUNTIME_FILENAME = "game.json"


class PlaytestHandoff:
    """At-most-once delivery of a runtime payload."""

    def __init__(self, storage: dict[str, str] | None = None, key: str = STORAGE_KEY) -> None:
        self._storage: dict[str, str] = storage if storage is not None else {}
        self.key = key

    def put(self, payload: dict[str, Any]) -> None:
        """Store *payload*, replacing any payload not yet taken."""
        self._storage[self.key] = json.dumps(payload)
        log.debug("playtest_payload_stored", key=self.key)

    def pending(self) -> bool:
        return self.key in self._storage

    def take(self) -> dict[str, Any] | None:
        """Return the stored payload and clear the slot.

        Returns None when nothing is stored or the stored text isn't a JSON
        object; unreadable data is discarded either way.
        """
        raw = self._storage.pop(self.key, None)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("playtest_payload_unreadable", key=self.key, error=str(e))
            return None
        if not isinstance(data, dict):
            log.warning("playtest_payload_unreadable", key=self.key, error="not an object")
            return None
        return data


def write_runtime_payload(payload: dict[str, Any], out_dir: Path) -> Path:
    """Write *payload* as ``game.json`` under *out_dir*.

    Raises:
        BundleWriteError: If the file can't be written.
    """
    path = out_dir / RUNTIME_FILENAME
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as e:
        raise BundleWriteError(path, str(e)) from e
    log.info("runtime_payload_written", path=str(path))
    return path
