"""Storyline domain models.

A storyline is an ordered list of events. Each event owns a content payload
tagged by ``type``; the payload carries the event's outgoing transition
targets (``next_event_id`` slots).

Content kinds:
- decision: N options, each with its own target and optional condition
- battle: an enemy snapshot plus win/lose branches
- story: text, rewards, and a single continuation target
- end: terminal text, no outgoing target

Conditions, rewards, and enemy snapshots are opaque payloads. They are stored
and forwarded unchanged; nothing in this package interprets them.
"""

from __future__ import annotations

import uuid
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator

NodeType = Literal["start", "middle", "end"]
ContentKind = Literal["decision", "battle", "story", "end"]

CONTENT_KINDS: tuple[ContentKind, ...] = ("decision", "battle", "story", "end")
NODE_TYPES: tuple[NodeType, ...] = ("start", "middle", "end")


def generate_id() -> str:
    """Generate a collision-resistant identifier for events and options."""
    return uuid.uuid4().hex


def default_enemy() -> dict[str, Any]:
    """Return the placeholder enemy snapshot used by new battle events."""
    return {
        "name": "Enemy",
        "three_d": {"comprehension": 0, "bone_structure": 0, "physique": 0},
        "traits": [],
        "internal": None,
        "attack_skill": None,
        "defense_skill": None,
        "max_qi": None,
        "qi": None,
        "martial_arts_attainment": None,
    }


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


# ---------------------------------------------------------------------------
# Transition slots
# ---------------------------------------------------------------------------


class StoryOption(BaseModel):
    """One choice of a decision event.

    The id is assigned once (at creation or on first load when missing)
    and is what the diagram handle ``opt:<id>`` refers to.
    """

    id: str = Field(default_factory=generate_id)
    text: str = ""
    next_event_id: str = ""
    condition: Any = None

    @field_validator("id", mode="before")
    @classmethod
    def assign_missing_id(cls, v: Any) -> Any:
        """Give options loaded without an id a fresh one."""
        return v or generate_id()

    @field_validator("text", "next_event_id", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)


class BattleBranch(BaseModel):
    """Win or lose outcome of a battle event."""

    next_event_id: str = ""
    rewards: list[Any] = Field(default_factory=list)

    @field_validator("next_event_id", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("rewards", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


# ---------------------------------------------------------------------------
# Content variants
# ---------------------------------------------------------------------------


class DecisionContent(BaseModel):
    """Multi-way decision. Each option is its own outgoing slot."""

    type: Literal["decision"] = "decision"
    text: str = ""
    options: list[StoryOption] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("options", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class BattleContent(BaseModel):
    """Battle against a catalog enemy with win/lose branches."""

    type: Literal["battle"] = "battle"
    text: str = ""
    enemy_id: str = ""
    enemy: dict[str, Any] = Field(default_factory=default_enemy)
    win: BattleBranch = Field(default_factory=BattleBranch)
    lose: BattleBranch = Field(default_factory=BattleBranch)

    @field_validator("text", "enemy_id", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("enemy", mode="before")
    @classmethod
    def none_to_default_enemy(cls, v: Any) -> Any:
        return default_enemy() if v is None else v

    @field_validator("win", "lose", mode="before")
    @classmethod
    def none_to_default_branch(cls, v: Any) -> Any:
        return BattleBranch() if v is None else v


class StoryContent(BaseModel):
    """Narrative beat with rewards and a single continuation."""

    type: Literal["story"] = "story"
    text: str = ""
    rewards: list[Any] = Field(default_factory=list)
    next_event_id: str = ""

    @field_validator("text", "next_event_id", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("rewards", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class EndContent(BaseModel):
    """Terminal ending text. Has no outgoing transitions."""

    type: Literal["end"] = "end"
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)


EventContent = Annotated[
    DecisionContent | BattleContent | StoryContent | EndContent,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Events and storylines
# ---------------------------------------------------------------------------


class StoryEvent(BaseModel):
    """A node of the storyline graph."""

    id: str = Field(default_factory=generate_id, min_length=1)
    name: str = ""
    node_type: NodeType = "middle"
    action_points: int = Field(default=0, ge=0)
    content: EventContent = Field(default_factory=DecisionContent)

    @field_validator("name", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("action_points", mode="before")
    @classmethod
    def none_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class Storyline(BaseModel):
    """A branching narrative graph.

    ``events`` order is meaningful: it is the authoring order and the
    within-level tie-break for layout.

    Attributes:
        id: Storyline identifier used by the persistence collaborator.
        name: Display name. Must be non-blank to save.
        start_event_id: Id of the entry event, or "" when unset.
        events: Ordered events.
    """

    id: str = Field(default_factory=generate_id)
    name: str = ""
    start_event_id: str = ""
    events: list[StoryEvent] = Field(default_factory=list)

    @field_validator("name", "start_event_id", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("events", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)

    def event_ids(self) -> list[str]:
        """Event ids in authoring order."""
        return [event.id for event in self.events]

    def get_event(self, event_id: str) -> StoryEvent | None:
        """Return the event with *event_id*, or None."""
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def has_event(self, event_id: str) -> bool:
        return any(event.id == event_id for event in self.events)


class StorylineListItem(BaseModel):
    """Summary row returned by storyline listings."""

    id: str
    name: str
