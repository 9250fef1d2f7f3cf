"""Bundle reading from YAML or JSON files."""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

from roomforge.bundle.projector import game_path
from roomforge.bundle.rehydrator import ParsedBundle, split_bundle_path
from roomforge.bundle.writer import BundleFormat
from roomforge.observability.logging import get_logger

log = get_logger(__name__)


class BundleNotFoundError(Exception):
    """Raised when a bundle file doesn't exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Bundle file not found: {path}")


class BundleParseError(Exception):
    """Raised when a bundle file can't be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse bundle file at {path}: {reason}")


class BundleReader:
    """Read a persisted bundle starting from its game file."""

    def __init__(self, root: Path, fmt: BundleFormat = "yaml") -> None:
        """Initialize reader.

        Args:
            root: Bundle directory containing ``game.<ext>``.
            fmt: Serialization format, ``yaml`` or ``json``.
        """
        self.root = root
        self.format: BundleFormat = fmt
        self._yaml = YAML(typ="safe")

    def exists(self) -> bool:
        return (self.root / game_path(self.format)).exists()

    def load(self, rel_path: str) -> Any:
        """Parse one bundle file.

        Raises:
            BundleNotFoundError: If the file doesn't exist.
            BundleParseError: If the file is empty or can't be parsed.
        """
        path = self.root / rel_path
        if not path.exists():
            raise BundleNotFoundError(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f) if self.format == "json" else self._yaml.load(f)
        except Exception as e:
            raise BundleParseError(path, str(e)) from e
        if data is None:
            raise BundleParseError(path, "Empty file")
        return data

    def _references(self, meta: dict[str, Any], key: str) -> list[str]:
        refs = meta.get(key) or []
        if not isinstance(refs, list) or not all(isinstance(ref, str) for ref in refs):
            raise BundleParseError(
                self.root / game_path(self.format), f"'{key}' must be a list of file paths"
            )
        return refs

    def read(self) -> ParsedBundle:
        """Load the game file and every file it references.

        Room and dialogue files are taken from the path lists in the game
        tree. A collection file is loaded only when the game tree names it;
        stale files left by an earlier export are ignored.
        """
        game = self.load(game_path(self.format))
        bundle = ParsedBundle(game=game)
        meta = game.get("game", game) if isinstance(game, dict) else {}
        if not isinstance(meta, dict):
            return bundle

        for rel_path in self._references(meta, "rooms"):
            bundle.rooms.append(self.load(rel_path))
        for rel_path in self._references(meta, "dialogues"):
            _, dialogue_id = split_bundle_path(rel_path)
            bundle.dialogues[dialogue_id] = self.load(rel_path)
        for name in ("npcs", "items", "puzzles"):
            rel_path = meta.get(name)
            if rel_path is None:
                continue
            if not isinstance(rel_path, str):
                raise BundleParseError(
                    self.root / game_path(self.format), f"'{name}' must be a file path"
                )
            setattr(bundle, name, self.load(rel_path))

        log.debug("bundle_read", root=str(self.root), sections=bundle.present_sections())
        return bundle
