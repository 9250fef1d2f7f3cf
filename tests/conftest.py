"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from roomforge.models import DialogueNode, DialogueTree, Hotspot, Item, Npc, Puzzle, Rect, Room
from roomforge.store import ContentStore


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def store() -> ContentStore:
    """Return an empty content store."""
    return ContentStore()


@pytest.fixture
def populated_store() -> ContentStore:
    """Return a store with one of everything, built through the public API."""
    s = ContentStore()
    s.update_game_meta({"title": "The Lighthouse", "setting": "contemporary"})
    s.add_room(
        Room(
            id="dock",
            name="Dock",
            description="Salt spray and rotten planks.",
            hotspots=[
                Hotspot(
                    id="crate",
                    name="Crate",
                    rect=Rect(x=40, y=90, width=30, height=20),
                    responses={"look_at": "A battered crate."},
                )
            ],
        )
    )
    s.add_room({"id": "tower", "name": "Tower"})
    s.add_npc(Npc(id="keeper", name="Keeper", dialogue="keeper_talk"))
    s.add_item(Item(id="key", name="Brass Key", description="Small and cold."))
    s.add_puzzle(
        Puzzle.model_validate(
            {
                "id": "open_door",
                "trigger": {"verb": "use", "target": "door", "item": "key"},
                "conditions": [{"type": "hasItem", "value": "key"}],
                "actions": [
                    {"type": "say", "text": "It creaks open."},
                    {"type": "changeRoom", "roomId": "tower", "spawnX": 40},
                ],
                "failText": "It's locked.",
            }
        )
    )
    s.set_dialogue(
        "keeper_talk",
        DialogueTree(
            start_node="start",
            nodes={
                "start": DialogueNode.model_validate(
                    {
                        "text": "Storm's coming.",
                        "speaker": "keeper",
                        "choices": [
                            {"text": "Let me in.", "next": "refuse"},
                            {"text": "Bye."},
                        ],
                    }
                ),
                "refuse": DialogueNode(text="Not a chance."),
            },
        ),
    )
    return s
