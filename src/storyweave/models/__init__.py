"""Storyline data models."""

from storyweave.models.storyline import (
    CONTENT_KINDS,
    NODE_TYPES,
    BattleBranch,
    BattleContent,
    ContentKind,
    DecisionContent,
    EndContent,
    EventContent,
    NodeType,
    StoryContent,
    StoryEvent,
    Storyline,
    StorylineListItem,
    StoryOption,
    default_enemy,
    generate_id,
)

__all__ = [
    "CONTENT_KINDS",
    "NODE_TYPES",
    "BattleBranch",
    "BattleContent",
    "ContentKind",
    "DecisionContent",
    "EndContent",
    "EventContent",
    "NodeType",
    "StoryContent",
    "StoryEvent",
    "StoryOption",
    "Storyline",
    "StorylineListItem",
    "default_enemy",
    "generate_id",
]
