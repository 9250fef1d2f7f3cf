"""Pydantic models for authored adventure content."""

from roomforge.models.base import ContentModel, Point, Rect, Size, new_id
from roomforge.models.content import (
    DEFAULT_RESPONSES,
    DEFAULT_USE_TEXT,
    DEFAULT_VERBS,
    Exit,
    GameMetadata,
    Hotspot,
    Item,
    Npc,
    Placement,
    Room,
    Verb,
    WalkableArea,
)
from roomforge.models.dialogue import Choice, DialogueNode, DialogueTree
from roomforge.models.patches import (
    GameMetadataPatch,
    ItemPatch,
    NpcPatch,
    Patch,
    PuzzlePatch,
    RoomPatch,
)
from roomforge.models.puzzle import (
    Action,
    AddItemAction,
    ChangeRoomAction,
    Condition,
    HasFlagCondition,
    HasItemCondition,
    HideHotspotAction,
    NotFlagCondition,
    NotItemCondition,
    PlaySoundAction,
    Puzzle,
    RemoveFlagAction,
    RemoveItemAction,
    SayAction,
    SetFlagAction,
    ShowHotspotAction,
    Trigger,
    WalkToAction,
    trigger_key,
)

__all__ = [
    "DEFAULT_RESPONSES",
    "DEFAULT_USE_TEXT",
    "DEFAULT_VERBS",
    "Action",
    "AddItemAction",
    "ChangeRoomAction",
    "Choice",
    "Condition",
    "ContentModel",
    "DialogueNode",
    "DialogueTree",
    "Exit",
    "GameMetadata",
    "GameMetadataPatch",
    "HasFlagCondition",
    "HasItemCondition",
    "HideHotspotAction",
    "Hotspot",
    "Item",
    "ItemPatch",
    "NotFlagCondition",
    "NotItemCondition",
    "Npc",
    "NpcPatch",
    "Patch",
    "PlaySoundAction",
    "Placement",
    "Point",
    "Puzzle",
    "PuzzlePatch",
    "Rect",
    "RemoveFlagAction",
    "RemoveItemAction",
    "Room",
    "RoomPatch",
    "SayAction",
    "SetFlagAction",
    "ShowHotspotAction",
    "Size",
    "Trigger",
    "Verb",
    "WalkToAction",
    "WalkableArea",
    "new_id",
    "trigger_key",
]
