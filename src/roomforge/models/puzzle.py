"""Puzzle models: triggers, conditions, and actions.

Conditions and actions are closed sum types discriminated on ``type``. The
authoring shape is ``{type, ...fields}``; translation into the runtime DSL
lives in :mod:`roomforge.runtime.dsl` and matches on these classes
exhaustively, so a new kind must be added in both places.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field

from roomforge.models.base import ContentModel, Coord, new_id


class Trigger(ContentModel):
    """The verb/target (and optional held item) that fires a puzzle."""

    verb: str | None = None
    target: str | None = None
    item: str | None = None

    @property
    def key(self) -> str:
        return trigger_key(self)

    def to_tree(self) -> dict[str, Any]:
        tree: dict[str, Any] = {"verb": self.verb, "target": self.target}
        if self.item is not None:
            tree["item"] = self.item
        return tree


def trigger_key(trigger: Trigger) -> str:
    """Derive the runtime lookup key for a trigger.

    ``verb:target`` without a secondary item, ``verb:item:target`` with one.
    Unset parts render as the empty string. Both the authoring side and the
    runtime projection call this function, so their keys are identical.

    A playback engine that derives keys itself from the exported trigger must
    do the same: a JavaScript template literal renders ``verb: null`` as
    ``"null"``, which would never match the key computed here.
    """
    verb = trigger.verb or ""
    target = trigger.target or ""
    if trigger.item:
        return f"{verb}:{trigger.item}:{target}"
    return f"{verb}:{target}"


# -- Conditions ----------------------------------------------------------------


class HasItemCondition(ContentModel):
    type: Literal["hasItem"] = "hasItem"
    value: str = ""


class NotItemCondition(ContentModel):
    type: Literal["!hasItem"] = "!hasItem"
    value: str = ""


class HasFlagCondition(ContentModel):
    type: Literal["hasFlag"] = "hasFlag"
    value: str = ""


class NotFlagCondition(ContentModel):
    type: Literal["!hasFlag"] = "!hasFlag"
    value: str = ""


Condition = Annotated[
    HasItemCondition | NotItemCondition | HasFlagCondition | NotFlagCondition,
    Field(discriminator="type"),
]


# -- Actions -------------------------------------------------------------------


class SayAction(ContentModel):
    type: Literal["say"] = "say"
    text: str = ""
    speaker: str | None = None


class AddItemAction(ContentModel):
    type: Literal["addItem"] = "addItem"
    item_id: str = ""


class RemoveItemAction(ContentModel):
    type: Literal["removeItem"] = "removeItem"
    item_id: str = ""


class SetFlagAction(ContentModel):
    type: Literal["setFlag"] = "setFlag"
    flag: str = ""


class RemoveFlagAction(ContentModel):
    type: Literal["removeFlag"] = "removeFlag"
    flag: str = ""


class WalkToAction(ContentModel):
    type: Literal["walkTo"] = "walkTo"
    x: Coord = 0
    y: Coord = 0


class ChangeRoomAction(ContentModel):
    type: Literal["changeRoom"] = "changeRoom"
    room_id: str = ""
    spawn_x: Coord | None = None
    spawn_y: Coord | None = None


class ShowHotspotAction(ContentModel):
    type: Literal["showHotspot"] = "showHotspot"
    hotspot_id: str = ""


class HideHotspotAction(ContentModel):
    type: Literal["hideHotspot"] = "hideHotspot"
    hotspot_id: str = ""


class PlaySoundAction(ContentModel):
    type: Literal["playSound"] = "playSound"
    sound: str = ""


Action = Annotated[
    SayAction
    | AddItemAction
    | RemoveItemAction
    | SetFlagAction
    | RemoveFlagAction
    | WalkToAction
    | ChangeRoomAction
    | ShowHotspotAction
    | HideHotspotAction
    | PlaySoundAction,
    Field(discriminator="type"),
]


class Puzzle(ContentModel):
    """A verb/target interaction guarded by conditions that runs actions."""

    id: str = Field(default_factory=lambda: new_id("puzzle"))
    trigger: Trigger = Field(default_factory=Trigger)
    conditions: list[Condition] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    fail_text: str | None = None

    @property
    def key(self) -> str:
        return trigger_key(self.trigger)
