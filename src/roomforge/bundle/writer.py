"""Bundle writing to YAML or JSON files."""

from __future__ import annotations

import io
import json
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import TYPE_CHECKING, Any, Literal

from ruamel.yaml import YAML

from roomforge.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from roomforge.bundle.projector import BundleFile

log = get_logger(__name__)

BundleFormat = Literal["yaml", "json"]

LINE_WIDTH = 120


class BundleWriteError(Exception):
    """Raised when a bundle file can't be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write bundle file at {path}: {reason}")


class BundleWriter:
    """Serialize bundle files and write them under an output directory."""

    def __init__(self, out_dir: Path, fmt: BundleFormat = "yaml") -> None:
        """Initialize writer.

        Args:
            out_dir: Directory receiving the bundle. Created on first write.
            fmt: Serialization format, ``yaml`` or ``json``.
        """
        if fmt not in ("yaml", "json"):
            raise ValueError(f"Unsupported bundle format: {fmt}")
        self.out_dir = out_dir
        self.format: BundleFormat = fmt
        self._yaml = YAML()
        self._yaml.default_flow_style = False
        self._yaml.width = LINE_WIDTH
        self._yaml.indent(mapping=2, sequence=4, offset=2)

    def serialize(self, tree: dict[str, Any]) -> str:
        if self.format == "json":
            return json.dumps(tree, indent=2, ensure_ascii=False) + "\n"
        buf = io.StringIO()
        self._yaml.dump(tree, buf)
        return buf.getvalue()

    def render(self, files: Iterable[BundleFile]) -> list[tuple[str, str]]:
        """Serialize every file without touching disk.

        Returns:
            ``(relative path, text)`` pairs in bundle order.
        """
        return [(file.path, self.serialize(file.tree)) for file in files]

    def write(self, files: Iterable[BundleFile]) -> list[Path]:
        """Write every bundle file to disk.

        Returns:
            Paths of the written files, in bundle order.

        Raises:
            BundleWriteError: If a file can't be written.
        """
        written: list[Path] = []
        for rel_path, text in self.render(files):
            path = self.out_dir / rel_path
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(text, encoding="utf-8")
            except OSError as e:
                raise BundleWriteError(path, str(e)) from e
            written.append(path)
        log.info("bundle_written", out_dir=str(self.out_dir), files=len(written), format=self.format)
        return written
