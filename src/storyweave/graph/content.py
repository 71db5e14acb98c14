"""Uniform view over event content transition slots.

Every content kind stores its outgoing targets differently (a single
continuation, one per option, win/lose branches, nothing). The helpers here
flatten that into a list of slots so the validator, layout, and edge
synchronizer never branch on content kind themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, assert_never

from storyweave.models.storyline import (
    BattleContent,
    DecisionContent,
    EndContent,
    StoryContent,
    StoryEvent,
    Storyline,
    StoryOption,
    generate_id,
)

if TYPE_CHECKING:
    from storyweave.models.storyline import ContentKind, EventContent

HandleKind = Literal["next", "decision", "win", "lose"]

HANDLE_NEXT = "next"
HANDLE_WIN = "win"
HANDLE_LOSE = "lose"
OPTION_HANDLE_PREFIX = "opt:"

NEXT_LABEL = "Next"
WIN_LABEL = "Win"
LOSE_LABEL = "Lose"


@dataclass(frozen=True)
class TransitionSlot:
    """One outgoing transition slot of an event.

    Attributes:
        handle_id: Diagram handle that addresses this slot.
        kind: Handle kind (next, decision, win, lose).
        label: Human-readable slot name for validation messages.
        target: Target event id, or "" when the slot is empty.
    """

    handle_id: str
    kind: HandleKind
    label: str
    target: str


@dataclass(frozen=True)
class HandleItem:
    """An outgoing handle shown on a diagram node."""

    id: str
    label: str
    kind: HandleKind


def option_handle(option_id: str) -> str:
    """Build the handle id for a decision option."""
    return f"{OPTION_HANDLE_PREFIX}{option_id}"


def parse_option_handle(handle_id: str) -> str | None:
    """Return the option id encoded in *handle_id*, or None for other handles."""
    if handle_id.startswith(OPTION_HANDLE_PREFIX):
        return handle_id.removeprefix(OPTION_HANDLE_PREFIX)
    return None


def option_label(option: StoryOption, index: int) -> str:
    """Display label for an option: its text, else ``Option <n>``."""
    return option.text or f"Option {index + 1}"


def slots_of(event: StoryEvent) -> list[TransitionSlot]:
    """List every transition slot of an event, including empty ones.

    Order is stable: options in option order, battle win before lose.
    """
    content = event.content
    if isinstance(content, StoryContent):
        return [TransitionSlot(HANDLE_NEXT, "next", "Next event", content.next_event_id)]
    if isinstance(content, DecisionContent):
        return [
            TransitionSlot(
                option_handle(option.id), "decision", f"Option {index + 1}", option.next_event_id
            )
            for index, option in enumerate(content.options)
        ]
    if isinstance(content, BattleContent):
        return [
            TransitionSlot(HANDLE_WIN, "win", "Win branch", content.win.next_event_id),
            TransitionSlot(HANDLE_LOSE, "lose", "Lose branch", content.lose.next_event_id),
        ]
    if isinstance(content, EndContent):
        return []
    assert_never(content)


def targets_of(event: StoryEvent) -> list[str]:
    """Return every non-empty transition target of an event.

    One for story, 0..N for decision options, up to two for battle, none for end.
    """
    return [slot.target for slot in slots_of(event) if slot.target]


def with_slot_target(event: StoryEvent, handle_id: str, target: str) -> StoryEvent | None:
    """Return a copy of *event* with the slot behind *handle_id* set to *target*.

    Only the slot's target changes; options and branches are never added or
    removed. Returns None when the handle does not address a slot of this
    event's content kind (e.g. ``"win"`` on a story event, or an unknown
    option id).
    """
    content = event.content
    new_content: EventContent | None = None
    if isinstance(content, StoryContent):
        if handle_id == HANDLE_NEXT:
            new_content = content.model_copy(update={"next_event_id": target})
    elif isinstance(content, BattleContent):
        if handle_id in (HANDLE_WIN, HANDLE_LOSE):
            branch = content.win if handle_id == HANDLE_WIN else content.lose
            new_branch = branch.model_copy(update={"next_event_id": target})
            new_content = content.model_copy(update={handle_id: new_branch})
    elif isinstance(content, DecisionContent):
        option_id = parse_option_handle(handle_id)
        if option_id is not None and any(o.id == option_id for o in content.options):
            options = [
                o.model_copy(update={"next_event_id": target}) if o.id == option_id else o
                for o in content.options
            ]
            new_content = content.model_copy(update={"options": options})

    if new_content is None:
        return None
    return event.model_copy(update={"content": new_content})


def handles_of(event: StoryEvent) -> list[HandleItem]:
    """List the outgoing handles a diagram node exposes for this event."""
    content = event.content
    if isinstance(content, StoryContent):
        return [HandleItem(HANDLE_NEXT, NEXT_LABEL, "next")]
    if isinstance(content, DecisionContent):
        return [
            HandleItem(option_handle(option.id), option_label(option, index), "decision")
            for index, option in enumerate(content.options)
        ]
    if isinstance(content, BattleContent):
        return [
            HandleItem(HANDLE_WIN, WIN_LABEL, "win"),
            HandleItem(HANDLE_LOSE, LOSE_LABEL, "lose"),
        ]
    return []


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def default_content(kind: ContentKind) -> EventContent:
    """Return fresh default content for a content kind.

    Used both for new events and when an event's kind changes: a kind change
    is a reset to these defaults, never a migration of the old slots.
    """
    if kind == "decision":
        return DecisionContent()
    if kind == "battle":
        return BattleContent()
    if kind == "story":
        return StoryContent()
    if kind == "end":
        return EndContent()
    raise ValueError(f"Unknown content kind: {kind!r}")


def default_option(text: str = "") -> StoryOption:
    """Create an empty option with a fresh stable id."""
    return StoryOption(id=generate_id(), text=text)


def default_event(kind: ContentKind = "decision", name: str = "") -> StoryEvent:
    """Create a new middle event with default content for *kind*."""
    return StoryEvent(
        id=generate_id(),
        name=name,
        node_type="middle",
        action_points=0,
        content=default_content(kind),
    )


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_storyline(data: Storyline | dict[str, object]) -> Storyline:
    """Bring loaded storyline data into canonical form.

    Missing optional fields get their defaults through model validation
    (null targets become "", missing rewards become [], and so on). Options
    without an id, or whose id repeats an earlier option of the same
    decision, get a fresh id here. Existing unique ids are never touched.

    Args:
        data: Raw storyline dict (e.g. parsed JSON) or an existing model.

    Returns:
        A new, normalized Storyline.
    """
    raw = data.model_dump() if isinstance(data, Storyline) else data
    storyline = Storyline.model_validate(raw)

    events: list[StoryEvent] = []
    for event in storyline.events:
        content = event.content
        if isinstance(content, DecisionContent):
            seen: set[str] = set()
            options: list[StoryOption] = []
            for option in content.options:
                kept = option
                if option.id in seen:
                    kept = option.model_copy(update={"id": generate_id()})
                seen.add(kept.id)
                options.append(kept)
            new_content = content.model_copy(update={"options": options})
            events.append(event.model_copy(update={"content": new_content}))
        else:
            events.append(event)
    return storyline.model_copy(update={"events": events})
