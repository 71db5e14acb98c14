"""Structural validation for storylines.

Pure, deterministic checks run before a storyline may be persisted.
Results are values, never exceptions: the save action inspects them.

Checks:
- name: storyline name must not be blank (blocking)
- has_events: at least one event (blocking)
- start_event: start set and pointing at an existing event (blocking)
- references: every transition target names an existing event (blocking)
- reachability: events unreachable from the start (warning, evaluated only
  once the start is valid)
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from storyweave.graph.content import slots_of, targets_of
from storyweave.graph.validation_types import InvalidReference, ValidationCheck, ValidationReport
from storyweave.observability.logging import get_logger

if TYPE_CHECKING:
    from storyweave.models.storyline import Storyline

log = get_logger(__name__)

__all__ = [
    "InvalidReference",
    "StorylineValidation",
    "ValidationCheck",
    "ValidationReport",
    "check_has_events",
    "check_name",
    "check_reachability",
    "check_references",
    "check_start_event",
    "collect_invalid_references",
    "has_valid_start",
    "reachable_event_ids",
    "validate_storyline",
]


@dataclass
class StorylineValidation:
    """Validation outcome attached to one storyline snapshot.

    Attributes:
        report: Individual check results.
        invalid_refs: Dangling references grouped by owning event id.
        reachable_ids: Events reachable from the start (empty if no valid start).
        unreachable_ids: Events not reachable, in authoring order. Only
            populated when the start is valid.
    """

    report: ValidationReport
    invalid_refs: dict[str, list[InvalidReference]] = field(default_factory=dict)
    reachable_ids: frozenset[str] = frozenset()
    unreachable_ids: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        """Blocking error messages."""
        return [c.message for c in self.report.failures]

    @property
    def warnings(self) -> list[str]:
        """Non-blocking warning messages."""
        return [c.message for c in self.report.warnings]

    @property
    def is_valid(self) -> bool:
        """True if nothing blocks saving and every transition resolves."""
        return not self.report.has_failures and not self.invalid_refs

    @property
    def can_save(self) -> bool:
        return not self.report.has_failures

    def has_invalid_refs(self, event_id: str) -> bool:
        return bool(self.invalid_refs.get(event_id))


def has_valid_start(storyline: Storyline) -> bool:
    """True if the start event id is set and names an existing event."""
    return bool(storyline.start_event_id) and storyline.has_event(storyline.start_event_id)


def collect_invalid_references(storyline: Storyline) -> dict[str, list[InvalidReference]]:
    """Find every non-empty transition target that names no event.

    Args:
        storyline: Storyline to inspect.

    Returns:
        Mapping of event id to its dangling references, in authoring order.
        Events without problems are absent.
    """
    event_ids = set(storyline.event_ids())
    invalid: dict[str, list[InvalidReference]] = {}
    for event in storyline.events:
        for slot in slots_of(event):
            if not slot.target or slot.target in event_ids:
                continue
            invalid.setdefault(event.id, []).append(
                InvalidReference(event_id=event.id, target_label=slot.label, target_id=slot.target)
            )
    return invalid


def reachable_event_ids(storyline: Storyline) -> set[str]:
    """Breadth-first traversal from the start event.

    Returns an empty set when the start is unset or names no event.
    Dangling targets are skipped.
    """
    if not has_valid_start(storyline):
        return set()

    events = {event.id: event for event in storyline.events}
    visited: set[str] = set()
    queue: deque[str] = deque([storyline.start_event_id])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        for target in targets_of(events[current]):
            if target in events and target not in visited:
                queue.append(target)
    return visited


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def check_name(storyline: Storyline) -> ValidationCheck:
    """Verify the storyline has a non-blank name."""
    if not storyline.name.strip():
        return ValidationCheck(
            name="name", severity="fail", message="Storyline name must not be empty"
        )
    return ValidationCheck(name="name", severity="pass", message=storyline.name)


def check_has_events(storyline: Storyline) -> ValidationCheck:
    """Verify the storyline contains at least one event."""
    if not storyline.events:
        return ValidationCheck(
            name="has_events", severity="fail", message="At least one event is required"
        )
    return ValidationCheck(
        name="has_events", severity="pass", message=f"{len(storyline.events)} event(s)"
    )


def check_start_event(storyline: Storyline) -> ValidationCheck:
    """Verify the start event is selected and exists."""
    if not storyline.start_event_id:
        return ValidationCheck(
            name="start_event", severity="fail", message="A start event must be selected"
        )
    if not storyline.has_event(storyline.start_event_id):
        return ValidationCheck(
            name="start_event",
            severity="fail",
            message=f"Start event '{storyline.start_event_id}' does not exist",
        )
    return ValidationCheck(
        name="start_event", severity="pass", message=f"Start: {storyline.start_event_id}"
    )


def check_references(
    invalid_refs: dict[str, list[InvalidReference]],
) -> ValidationCheck:
    """Report transitions that point at missing events."""
    refs = [ref for per_event in invalid_refs.values() for ref in per_event]
    if not refs:
        return ValidationCheck(
            name="references", severity="pass", message="All transitions resolve"
        )
    details = ", ".join(f"{r.event_id} ({r.target_label} -> {r.target_id})" for r in refs[:5])
    if len(refs) > 5:
        details += f", ... and {len(refs) - 5} more"
    return ValidationCheck(
        name="references",
        severity="fail",
        message=f"{len(refs)} transition(s) point at missing events: {details}",
    )


def check_reachability(unreachable_ids: list[str]) -> ValidationCheck:
    """Warn about events the start event can never lead to."""
    if not unreachable_ids:
        return ValidationCheck(
            name="reachability", severity="pass", message="All events reachable"
        )
    return ValidationCheck(
        name="reachability",
        severity="warn",
        message=f"{len(unreachable_ids)} event(s) unreachable from the start event",
    )


def validate_storyline(storyline: Storyline) -> StorylineValidation:
    """Run every check and aggregate the results.

    Reachability is only evaluated once the start event is valid; an unset
    or dangling start is already a blocking error of its own.

    Args:
        storyline: Storyline snapshot to validate.

    Returns:
        StorylineValidation with blocking errors, warnings, and the
        per-event data the diagram needs for its markers.
    """
    invalid_refs = collect_invalid_references(storyline)
    reachable = reachable_event_ids(storyline)

    checks = [
        check_name(storyline),
        check_has_events(storyline),
        check_start_event(storyline),
        check_references(invalid_refs),
    ]

    unreachable: list[str] = []
    if has_valid_start(storyline):
        unreachable = [eid for eid in storyline.event_ids() if eid not in reachable]
        checks.append(check_reachability(unreachable))

    report = ValidationReport(checks=checks)
    log.debug(
        "storyline_validated",
        storyline_id=storyline.id,
        summary=report.summary,
        invalid_refs=sum(len(v) for v in invalid_refs.values()),
        unreachable=len(unreachable),
    )
    return StorylineValidation(
        report=report,
        invalid_refs=invalid_refs,
        reachable_ids=frozenset(reachable),
        unreachable_ids=unreachable,
    )
