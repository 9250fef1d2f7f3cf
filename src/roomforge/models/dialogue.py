"""Dialogue tree models.

A tree's ``nodes`` maps node keys to nodes. Keys are unique within one tree
only. ``DialogueNode.next`` and ``Choice.next`` reference keys of the same
tree and are kept resolvable by :mod:`roomforge.store.dialogue`.

Dialogue content is open-ended (speaker portraits, per-choice conditions,
scripted actions), so these models keep unknown keys instead of dropping them.
"""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from roomforge.models.base import ContentModel


class Choice(ContentModel):
    """A player-selectable line that optionally jumps to another node."""

    model_config = ConfigDict(extra="allow")

    text: str = ""
    next: str | None = None
    condition: dict[str, Any] | None = None
    action: dict[str, Any] | None = None


class DialogueNode(ContentModel):
    """One line of NPC dialogue with optional choices or a follow-up node."""

    model_config = ConfigDict(extra="allow")

    text: str = ""
    speaker: str = ""
    choices: list[Choice] = Field(default_factory=list)
    next: str | None = None
    action: dict[str, Any] | None = None


class DialogueTree(ContentModel):
    """A conversation graph."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    start_node: str | None = None
    nodes: dict[str, DialogueNode] = Field(default_factory=dict)
    idle_lines: list[str] = Field(default_factory=list)
