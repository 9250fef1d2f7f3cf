"""Shared model configuration and geometry primitives.

Authoring entities use snake_case attributes in Python and camelCase names in
every external representation (persisted bundle, runtime payload). Models
accept either spelling on input.
"""

from __future__ import annotations

import secrets

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Pixel coordinates are integral in authored content, but hand-edited bundles
# occasionally carry fractional values.
Coord = int | float


def new_id(prefix: str) -> str:
    """Generate a short pseudo-random identifier (``<prefix>_<8 hex>``)."""
    return f"{prefix}_{secrets.token_hex(4)}"


class ContentModel(BaseModel):
    """Base class for authoring entities.

    Unknown keys are ignored so transient editor state never reaches the
    store. Models with open-ended shapes (dialogue trees) override ``extra``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Point(ContentModel):
    """A position in room pixel space."""

    x: Coord = 0
    y: Coord = 0

    def to_tree(self) -> dict[str, Coord]:
        return {"x": self.x, "y": self.y}


class Size(ContentModel):
    """Width and height in pixels."""

    width: Coord = 0
    height: Coord = 0

    def to_tree(self) -> dict[str, Coord]:
        return {"width": self.width, "height": self.height}


class Rect(ContentModel):
    """Axis-aligned rectangle used for hotspots, exits, and walkable areas."""

    x: Coord = 0
    y: Coord = 0
    width: Coord = 10
    height: Coord = 10

    def to_tree(self) -> dict[str, Coord]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}
