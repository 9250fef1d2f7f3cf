"""Authoring content store and dialogue-graph integrity."""

from roomforge.store.content_store import ContentStore, clone_entity
from roomforge.store.dialogue import (
    DanglingReference,
    dangling_references,
    delete_node,
    next_node_key,
    prune_dangling,
    rename_node,
)
from roomforge.store.errors import ContentStoreError, MalformedImportError
from roomforge.store.observers import ChangeNotifier

__all__ = [
    "ChangeNotifier",
    "ContentStore",
    "ContentStoreError",
    "DanglingReference",
    "MalformedImportError",
    "clone_entity",
    "dangling_references",
    "delete_node",
    "next_node_key",
    "prune_dangling",
    "rename_node",
]
