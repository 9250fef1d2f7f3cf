"""Referential integrity for dialogue trees.

Every ``next`` reference in a tree (node ``next``, ``choice.next``, and the
tree's ``startNode``) must be None or name a key of the same tree. Renames
and deletions rewrite those references in one pass so no dangling pointer
survives the operation. All functions here are pure: they return a new tree
and leave the input untouched. The store applies the result and notifies
once.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from roomforge.models.dialogue import DialogueTree


@dataclass(frozen=True)
class DanglingReference:
    """A reference that names no node of its tree.

    ``node_key`` is None for the tree-level start node; ``choice_index`` is
    None for a node's own ``next``.
    """

    node_key: str | None
    choice_index: int | None
    target: str


def _iter_references(tree: DialogueTree) -> Iterator[tuple[str, int | None, str]]:
    for key, node in tree.nodes.items():
        if node.next is not None:
            yield key, None, node.next
        for index, choice in enumerate(node.choices):
            if choice.next is not None:
                yield key, index, choice.next


def _retarget(tree: DialogueTree, old_key: str, new_key: str | None) -> None:
    """Point every reference to *old_key* at *new_key* (None clears it)."""
    if tree.start_node == old_key:
        tree.start_node = new_key
    for node in tree.nodes.values():
        if node.next == old_key:
            node.next = new_key
        for choice in node.choices:
            if choice.next == old_key:
                choice.next = new_key


def rename_node(tree: DialogueTree, old_key: str, new_key: str) -> DialogueTree:
    """Return a copy of *tree* with node *old_key* moved to *new_key*.

    Node order is preserved. Every reference to *old_key* is rewritten to
    *new_key*; nothing else changes.

    Raises:
        KeyError: If *old_key* is not a node of the tree.
        ValueError: If *new_key* is empty or already names another node.
    """
    if old_key not in tree.nodes:
        raise KeyError(old_key)
    if not new_key:
        raise ValueError("New node key must be a non-empty string")
    if new_key != old_key and new_key in tree.nodes:
        raise ValueError(f"A node with key '{new_key}' already exists")

    renamed = tree.model_copy(deep=True)
    renamed.nodes = {
        (new_key if key == old_key else key): node for key, node in renamed.nodes.items()
    }
    _retarget(renamed, old_key, new_key)
    return renamed


def delete_node(tree: DialogueTree, key: str) -> DialogueTree:
    """Return a copy of *tree* without node *key*, nulling references to it.

    Raises:
        KeyError: If *key* is not a node of the tree.
    """
    if key not in tree.nodes:
        raise KeyError(key)

    pruned = tree.model_copy(deep=True)
    del pruned.nodes[key]
    _retarget(pruned, key, None)
    return pruned


def next_node_key(tree: DialogueTree) -> str:
    """Generate an unused ``node_<n>`` key, starting after the node count."""
    n = len(tree.nodes) + 1
    while f"node_{n}" in tree.nodes:
        n += 1
    return f"node_{n}"


def dangling_references(tree: DialogueTree) -> list[DanglingReference]:
    """List every reference in *tree* that does not resolve."""
    dangling = [
        DanglingReference(node_key=key, choice_index=index, target=target)
        for key, index, target in _iter_references(tree)
        if target not in tree.nodes
    ]
    if tree.start_node is not None and tree.start_node not in tree.nodes:
        dangling.insert(0, DanglingReference(None, None, tree.start_node))
    return dangling


def prune_dangling(tree: DialogueTree) -> tuple[DialogueTree, list[DanglingReference]]:
    """Return a copy of *tree* with unresolved references set to None.

    Returns:
        The pruned tree and the references that were cleared.
    """
    dangling = dangling_references(tree)
    if not dangling:
        return tree.model_copy(deep=True), []

    pruned = tree.model_copy(deep=True)
    for target in {ref.target for ref in dangling}:
        _retarget(pruned, target, None)
    return pruned, dangling
