"""Storyline mutation operations.

Every function takes a storyline and returns a new one; the input is never
modified. Mutations that address an unknown event raise
``EventNotFoundError``. Deleting an unknown event is the exception: it is a
no-op, matching diagram gestures that may race with an earlier delete.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from storyweave.graph.content import (
    default_content,
    default_event,
    default_option,
    slots_of,
    with_slot_target,
)
from storyweave.graph.errors import (
    CatalogEntryNotFoundError,
    ContentKindError,
    DeletionNotConfirmedError,
    EventNotFoundError,
    OptionNotFoundError,
)
from storyweave.models.storyline import StoryEvent, Storyline, default_enemy
from storyweave.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from storyweave.catalog import Catalog
    from storyweave.models.storyline import (
        BattleContent,
        ContentKind,
        DecisionContent,
        NodeType,
        StoryContent,
    )

log = get_logger(__name__)

_UNSET: Any = object()


def _require_event(storyline: Storyline, event_id: str, context: str) -> StoryEvent:
    event = storyline.get_event(event_id)
    if event is None:
        raise EventNotFoundError(
            event_id=event_id, available=storyline.event_ids(), context=context
        )
    return event


def _replace_event(
    storyline: Storyline,
    event_id: str,
    updater: Callable[[StoryEvent], StoryEvent],
    context: str,
) -> Storyline:
    event = _require_event(storyline, event_id, context)
    updated = updater(event)
    events = [updated if e.id == event_id else e for e in storyline.events]
    return storyline.model_copy(update={"events": events})


def _require_kind(event: StoryEvent, expected: str) -> None:
    if event.content.type != expected:
        raise ContentKindError(event_id=event.id, expected=expected, actual=event.content.type)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def add_event(
    storyline: Storyline, kind: ContentKind = "decision", name: str = ""
) -> tuple[Storyline, StoryEvent]:
    """Append a new event with default content for *kind*.

    The new event becomes the start event when none is set.

    Returns:
        Tuple of (updated storyline, the new event).
    """
    event = default_event(kind, name=name)
    start = storyline.start_event_id or event.id
    updated = storyline.model_copy(
        update={"events": [*storyline.events, event], "start_event_id": start}
    )
    log.debug("event_added", event_id=event.id, kind=kind, is_start=start == event.id)
    return updated, event


def delete_event(storyline: Storyline, event_id: str, *, confirm: bool = False) -> Storyline:
    """Remove an event and clear every transition that pointed at it.

    If the deleted event was the start, the start falls back to the first
    remaining event, or "" when none remain. Options and branches that
    targeted the event are kept with an empty target.

    Args:
        storyline: Current storyline.
        event_id: Event to delete.
        confirm: Must be True; deletion cascades into other events.

    Returns:
        Updated storyline. Unchanged if *event_id* names no event.

    Raises:
        DeletionNotConfirmedError: If *confirm* is not set.
    """
    if not confirm:
        raise DeletionNotConfirmedError(event_id=event_id)
    if not storyline.has_event(event_id):
        log.debug("delete_skipped", event_id=event_id, reason="unknown_event")
        return storyline

    remaining = [e for e in storyline.events if e.id != event_id]
    start = storyline.start_event_id
    if start == event_id:
        start = remaining[0].id if remaining else ""

    cleared = 0
    events: list[StoryEvent] = []
    for event in remaining:
        for slot in slots_of(event):
            if slot.target == event_id:
                # the slot came from this event's own content, so it always resolves
                event = with_slot_target(event, slot.handle_id, "") or event
                cleared += 1
        events.append(event)

    log.info("event_deleted", event_id=event_id, cleared_refs=cleared, start_event_id=start)
    return storyline.model_copy(update={"events": events, "start_event_id": start})


def update_event(
    storyline: Storyline,
    event_id: str,
    *,
    name: str | None = None,
    node_type: NodeType | None = None,
    action_points: int | None = None,
    text: str | None = None,
) -> Storyline:
    """Update the plain fields of an event. ``None`` leaves a field as is.

    Raises:
        EventNotFoundError: If *event_id* names no event.
        ValueError: If *action_points* is negative.
    """
    if action_points is not None and action_points < 0:
        raise ValueError("action_points must not be negative")

    def apply(event: StoryEvent) -> StoryEvent:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if node_type is not None:
            changes["node_type"] = node_type
        if action_points is not None:
            changes["action_points"] = action_points
        if text is not None:
            changes["content"] = event.content.model_copy(update={"text": text})
        return event.model_copy(update=changes)

    return _replace_event(storyline, event_id, apply, "update_event")


def set_content_kind(storyline: Storyline, event_id: str, kind: ContentKind) -> Storyline:
    """Switch an event to another content kind.

    The content is reset to the kind's defaults; previous targets, options,
    and text are discarded. Setting the current kind again is a no-op.
    """
    event = _require_event(storyline, event_id, "set_content_kind")
    if event.content.type == kind:
        return storyline
    content = default_content(kind)
    log.debug("content_kind_changed", event_id=event_id, old=event.content.type, new=kind)
    return _replace_event(
        storyline,
        event_id,
        lambda e: e.model_copy(update={"content": content}),
        "set_content_kind",
    )


def set_start_event(storyline: Storyline, event_id: str) -> Storyline:
    """Designate the start event. An empty id unsets it."""
    if event_id:
        _require_event(storyline, event_id, "set_start_event")
    return storyline.model_copy(update={"start_event_id": event_id})


def rename_storyline(storyline: Storyline, name: str) -> Storyline:
    return storyline.model_copy(update={"name": name})


# ---------------------------------------------------------------------------
# Decision options
# ---------------------------------------------------------------------------


def _replace_decision(
    storyline: Storyline,
    event_id: str,
    updater: Callable[[DecisionContent], DecisionContent],
    context: str,
) -> Storyline:
    def apply(event: StoryEvent) -> StoryEvent:
        _require_kind(event, "decision")
        content = cast("DecisionContent", event.content)
        return event.model_copy(update={"content": updater(content)})

    return _replace_event(storyline, event_id, apply, context)


def add_option(storyline: Storyline, event_id: str, text: str = "") -> tuple[Storyline, str]:
    """Append an empty option with a fresh id to a decision event.

    Returns:
        Tuple of (updated storyline, new option id).

    Raises:
        EventNotFoundError: If *event_id* names no event.
        ContentKindError: If the event is not a decision.
    """
    option = default_option(text)
    updated = _replace_decision(
        storyline,
        event_id,
        lambda c: c.model_copy(update={"options": [*c.options, option]}),
        "add_option",
    )
    return updated, option.id


def remove_option(storyline: Storyline, event_id: str, option_id: str) -> Storyline:
    """Remove an option (and with it, its outgoing edge) from a decision."""

    def apply(content: DecisionContent) -> DecisionContent:
        if not any(o.id == option_id for o in content.options):
            raise OptionNotFoundError(
                event_id=event_id,
                option_id=option_id,
                available=[o.id for o in content.options],
            )
        return content.model_copy(
            update={"options": [o for o in content.options if o.id != option_id]}
        )

    return _replace_decision(storyline, event_id, apply, "remove_option")


def update_option(
    storyline: Storyline,
    event_id: str,
    option_id: str,
    *,
    text: str | None = None,
    next_event_id: str | None = None,
    condition: Any = _UNSET,
) -> Storyline:
    """Update an option's text, target, or condition. The id never changes.

    ``condition`` accepts any opaque payload, including None to clear it;
    omit it to keep the current one. A *next_event_id* naming no event is
    stored as given; the validator reports it.
    """

    def apply(content: DecisionContent) -> DecisionContent:
        options = []
        found = False
        for option in content.options:
            if option.id == option_id:
                found = True
                changes: dict[str, Any] = {}
                if text is not None:
                    changes["text"] = text
                if next_event_id is not None:
                    changes["next_event_id"] = next_event_id
                if condition is not _UNSET:
                    changes["condition"] = condition
                option = option.model_copy(update=changes)
            options.append(option)
        if not found:
            raise OptionNotFoundError(
                event_id=event_id,
                option_id=option_id,
                available=[o.id for o in content.options],
            )
        return content.model_copy(update={"options": options})

    return _replace_decision(storyline, event_id, apply, "update_option")


# ---------------------------------------------------------------------------
# Rewards and enemies
# ---------------------------------------------------------------------------


def set_story_rewards(storyline: Storyline, event_id: str, rewards: list[Any]) -> Storyline:
    """Replace the opaque reward list of a story event."""

    def apply(event: StoryEvent) -> StoryEvent:
        _require_kind(event, "story")
        current = cast("StoryContent", event.content)
        content = current.model_copy(update={"rewards": list(rewards)})
        return event.model_copy(update={"content": content})

    return _replace_event(storyline, event_id, apply, "set_story_rewards")


def set_branch_rewards(
    storyline: Storyline, event_id: str, branch: str, rewards: list[Any]
) -> Storyline:
    """Replace the opaque reward list of a battle's ``win`` or ``lose`` branch."""
    if branch not in ("win", "lose"):
        raise ValueError(f"branch must be 'win' or 'lose', got {branch!r}")

    def apply(event: StoryEvent) -> StoryEvent:
        _require_kind(event, "battle")
        battle = cast("BattleContent", event.content)
        current = getattr(battle, branch)
        content = battle.model_copy(
            update={branch: current.model_copy(update={"rewards": list(rewards)})}
        )
        return event.model_copy(update={"content": content})

    return _replace_event(storyline, event_id, apply, "set_branch_rewards")


def assign_enemy(
    storyline: Storyline, event_id: str, enemy_id: str, catalog: Catalog | None = None
) -> Storyline:
    """Attach a catalog enemy to a battle event.

    The event stores both the enemy id and a snapshot of the catalog entry
    (without its id), so later catalog edits do not change the storyline.
    An empty *enemy_id* resets to the placeholder enemy.

    Raises:
        EventNotFoundError: If *event_id* names no event.
        ContentKindError: If the event is not a battle.
        CatalogEntryNotFoundError: If the catalog has no such enemy, or no
            catalog was given for a non-empty id.
    """
    if enemy_id:
        entry = catalog.get(enemy_id) if catalog is not None else None
        if entry is None:
            raise CatalogEntryNotFoundError(kind="enemy", entry_id=enemy_id)
        snapshot = {k: v for k, v in entry.items() if k != "id"}
    else:
        snapshot = default_enemy()

    def apply(event: StoryEvent) -> StoryEvent:
        _require_kind(event, "battle")
        battle = cast("BattleContent", event.content)
        content = battle.model_copy(update={"enemy_id": enemy_id, "enemy": snapshot})
        return event.model_copy(update={"content": content})

    return _replace_event(storyline, event_id, apply, "assign_enemy")
