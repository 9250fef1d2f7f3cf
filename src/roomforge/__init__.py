"""RoomForge: authoring content store for point-and-click adventures."""

from roomforge.bundle import build_bundle, parse_bundle, rehydrate
from roomforge.runtime import build_runtime_payload
from roomforge.store import ContentStore, MalformedImportError

__version__ = "0.1.0"

__all__ = [
    "ContentStore",
    "MalformedImportError",
    "__version__",
    "build_bundle",
    "build_runtime_payload",
    "parse_bundle",
    "rehydrate",
]
