"""Typed partial updates for store entities.

An update payload is validated into one of these models before anything is
merged, so a typo'd field name or a wrongly typed value fails loudly instead
of silently landing on the entity. Only fields the caller actually supplied
(``model_fields_set``) are merged; ids are not patchable.
"""

from __future__ import annotations

import copy
from typing import Any, TypeVar

from pydantic import ConfigDict, Field

from roomforge.models.base import ContentModel, Point, Size
from roomforge.models.content import Exit, Hotspot, Placement, Verb, WalkableArea
from roomforge.models.puzzle import Action, Condition, Trigger

E = TypeVar("E", bound=ContentModel)


class Patch(ContentModel):
    """Base class for partial updates."""

    model_config = ConfigDict(extra="forbid")

    def changed_fields(self) -> list[str]:
        """Names of the fields the caller supplied, in declaration order."""
        return [name for name in type(self).model_fields if name in self.model_fields_set]

    def apply_to(self, entity: E) -> E:
        """Shallow-merge the supplied fields into *entity* in place."""
        for name in self.changed_fields():
            setattr(entity, name, copy.deepcopy(getattr(self, name)))
        return entity


class GameMetadataPatch(Patch):
    title: str = ""
    setting: str | None = None
    version: str = ""
    resolution: Size = Field(default_factory=Size)
    viewport_height: int = 0
    start_room: str | None = None
    start_position: Point = Field(default_factory=Point)
    verbs: list[Verb] = Field(default_factory=list)
    default_responses: dict[str, str] = Field(default_factory=dict)


class RoomPatch(Patch):
    name: str = ""
    description: str = ""
    background: dict[str, Any] = Field(default_factory=dict)
    lighting: dict[str, Any] | None = None
    walkable_area: WalkableArea = Field(default_factory=WalkableArea)
    hotspots: list[Hotspot] = Field(default_factory=list)
    exits: list[Exit] = Field(default_factory=list)
    visuals: list[dict[str, Any]] = Field(default_factory=list)


class NpcPatch(Patch):
    name: str = ""
    traits: dict[str, Any] = Field(default_factory=dict)
    placements: list[Placement] = Field(default_factory=list)
    dialogue: str | None = None
    dialogue_overrides: list[dict[str, Any]] = Field(default_factory=list)
    barks: list[str] = Field(default_factory=list)
    responses: dict[str, str] = Field(default_factory=dict)


class ItemPatch(Patch):
    name: str = ""
    description: str = ""
    icon: dict[str, Any] = Field(default_factory=dict)
    use_on: dict[str, str] = Field(default_factory=dict)
    use_default: str = ""
    responses: dict[str, str] = Field(default_factory=dict)


class PuzzlePatch(Patch):
    trigger: Trigger = Field(default_factory=Trigger)
    conditions: list[Condition] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    fail_text: str | None = None
