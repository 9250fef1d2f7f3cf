"""Persisted multi-file bundle: projection, rehydration and file I/O."""

from roomforge.bundle.projector import BundleFile, build_bundle
from roomforge.bundle.reader import BundleNotFoundError, BundleParseError, BundleReader
from roomforge.bundle.rehydrator import ParsedBundle, parse_bundle, parse_dialogue, rehydrate
from roomforge.bundle.writer import BundleFormat, BundleWriteError, BundleWriter

__all__ = [
    "BundleFile",
    "BundleFormat",
    "BundleNotFoundError",
    "BundleParseError",
    "BundleReader",
    "BundleWriteError",
    "BundleWriter",
    "ParsedBundle",
    "build_bundle",
    "parse_bundle",
    "parse_dialogue",
    "rehydrate",
]
