"""Pydantic models for authored game content.

Each model's field defaults are the default shape an Add operation merges the
caller's payload over. Rehydration relies on the same defaults, so a field
absent from a persisted bundle comes back exactly as a freshly added entity
would have it.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from roomforge.models.base import ContentModel, Point, Rect, Size, new_id


class Verb(ContentModel):
    """A verb offered by the playback engine's verb bar."""

    id: str
    label: str


DEFAULT_VERBS: tuple[tuple[str, str], ...] = (
    ("give", "Give"),
    ("open", "Open"),
    ("close", "Close"),
    ("pick_up", "Pick up"),
    ("look_at", "Look at"),
    ("talk_to", "Talk to"),
    ("use", "Use"),
    ("push", "Push"),
    ("pull", "Pull"),
)

DEFAULT_RESPONSES: dict[str, str] = {
    "look_at": "Nothing special about it.",
    "pick_up": "I can't pick that up.",
    "use": "I can't use that.",
    "open": "It doesn't open.",
    "close": "It's not open.",
    "push": "It won't budge.",
    "pull": "Nothing happens.",
    "give": "I don't think they want that.",
    "talk_to": "I don't think talking to that will help.",
}


def _default_verbs() -> list[Verb]:
    return [Verb(id=verb_id, label=label) for verb_id, label in DEFAULT_VERBS]


class GameMetadata(ContentModel):
    """Top-level game settings.

    ``start_room`` is either None or the id of an existing room; the store
    keeps that invariant when rooms are added or removed.
    """

    title: str = "My Adventure"
    setting: str | None = None
    version: str = "1.0"
    resolution: Size = Field(default_factory=lambda: Size(width=320, height=200))
    viewport_height: int = 140
    start_room: str | None = None
    start_position: Point = Field(default_factory=lambda: Point(x=160, y=120))
    verbs: list[Verb] = Field(default_factory=_default_verbs)
    default_responses: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_RESPONSES))


# -- Rooms ---------------------------------------------------------------------


def _default_background() -> dict[str, Any]:
    return {"type": "procedural", "generator": None, "palette": None, "paletteOverrides": {}}


class WalkableArea(ContentModel):
    """Union of rectangles the protagonist may walk on."""

    rects: list[Rect] = Field(default_factory=list)


class Hotspot(ContentModel):
    """An interactive region of a room."""

    id: str
    name: str = ""
    rect: Rect = Field(default_factory=Rect)
    walk_to: Point | None = None
    visible: bool = True
    responses: dict[str, str] = Field(default_factory=dict)


class Exit(ContentModel):
    """A region of a room that leads to another room."""

    id: str
    name: str = ""
    rect: Rect = Field(default_factory=Rect)
    target: str = ""
    walk_to: Point | None = None
    spawn_at: Point | None = None
    look_at: str | None = None


class Room(ContentModel):
    """A single scene."""

    id: str = Field(default_factory=lambda: new_id("room"))
    name: str = "Untitled Room"
    description: str = ""
    background: dict[str, Any] = Field(default_factory=_default_background)
    lighting: dict[str, Any] | None = None
    walkable_area: WalkableArea = Field(default_factory=WalkableArea)
    hotspots: list[Hotspot] = Field(default_factory=list)
    exits: list[Exit] = Field(default_factory=list)
    visuals: list[dict[str, Any]] = Field(default_factory=list)


# -- NPCs and items ------------------------------------------------------------


class Placement(ContentModel):
    """Where an NPC stands in a given room."""

    room: str = ""
    position: Point = Field(default_factory=lambda: Point(x=160, y=100))
    size: Size = Field(default_factory=lambda: Size(width=24, height=40))
    walk_to: Point | None = None
    facing: str | None = None


class Npc(ContentModel):
    """A non-player character."""

    id: str = Field(default_factory=lambda: new_id("npc"))
    name: str = "Unnamed NPC"
    traits: dict[str, Any] = Field(default_factory=dict)
    placements: list[Placement] = Field(default_factory=list)
    dialogue: str | None = None
    dialogue_overrides: list[dict[str, Any]] = Field(default_factory=list)
    barks: list[str] = Field(default_factory=list)
    responses: dict[str, str] = Field(default_factory=dict)


DEFAULT_USE_TEXT = "I can't use that here."


class Item(ContentModel):
    """An inventory item."""

    id: str = Field(default_factory=lambda: new_id("item"))
    name: str = "Unnamed Item"
    description: str = ""
    icon: dict[str, Any] = Field(default_factory=lambda: {"generator": None})
    use_on: dict[str, str] = Field(default_factory=dict)
    use_default: str = DEFAULT_USE_TEXT
    responses: dict[str, str] = Field(default_factory=dict)
