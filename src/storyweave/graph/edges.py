"""Edge synchronizer between embedded transitions and the node/edge diagram.

The storyline model is the single source of truth. Diagram edges are derived
from it (``derive_edges``), and diagram gestures are translated back into
model updates (``apply_connect``, ``apply_disconnect``,
``apply_edges_delete``). There is never a second mutable copy of the edges.

Every edge carries a ``(source, handle_id, target)`` triple. The handle id
names the content slot that produced the edge:
- ``next``: story continuation
- ``win`` / ``lose``: battle branches
- ``opt:<option_id>``: one decision option

Rejected gestures (unknown target, unknown handle) return the storyline
unchanged; they are logged, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from storyweave.graph.content import (
    HandleKind,
    handles_of,
    parse_option_handle,
    slots_of,
    with_slot_target,
)
from storyweave.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from storyweave.models.storyline import Storyline

log = get_logger(__name__)


@dataclass(frozen=True)
class DiagramEdge:
    """A transition edge in the diagram."""

    id: str
    source: str
    target: str
    handle_id: str
    kind: HandleKind
    label: str = ""

    @property
    def triple(self) -> tuple[str, str, str]:
        """``(source, handle_id, target)``, the edge's identity for the model."""
        return (self.source, self.handle_id, self.target)


def _edge_id(source: str, handle_id: str, target: str) -> str:
    option_id = parse_option_handle(handle_id)
    if option_id is not None:
        return f"{source}-opt-{option_id}-{target}"
    return f"{source}-{handle_id}-{target}"


def derive_edges(storyline: Storyline) -> list[DiagramEdge]:
    """Derive diagram edges from the embedded transition targets.

    Emits exactly one edge per non-empty slot whose target exists. Dangling
    targets produce no edge; the validator reports them instead.

    Args:
        storyline: Storyline to derive edges from.

    Returns:
        Edges in authoring order (events, then slot order within an event).
    """
    event_ids = set(storyline.event_ids())
    edges: list[DiagramEdge] = []
    for event in storyline.events:
        labels = {handle.id: handle.label for handle in handles_of(event)}
        for slot in slots_of(event):
            if not slot.target or slot.target not in event_ids:
                continue
            edges.append(
                DiagramEdge(
                    id=_edge_id(event.id, slot.handle_id, slot.target),
                    source=event.id,
                    target=slot.target,
                    handle_id=slot.handle_id,
                    kind=slot.kind,
                    label=labels.get(slot.handle_id, slot.label),
                )
            )
    return edges


def apply_connect(storyline: Storyline, source: str, handle_id: str, target: str) -> Storyline:
    """Apply a connect gesture: write *target* into the slot behind *handle_id*.

    A connect replaces the slot's previous target; each handle carries at
    most one outgoing edge.

    Args:
        storyline: Current storyline.
        source: Source event id.
        handle_id: Source handle (``next``, ``win``, ``lose``, ``opt:<id>``).
        target: Target event id.

    Returns:
        Updated storyline, or the same storyline if the gesture is rejected.
    """
    if not source or not target or not handle_id:
        log.debug("connect_rejected", reason="incomplete", source=source, handle=handle_id)
        return storyline
    if not storyline.has_event(target):
        log.debug("connect_rejected", reason="unknown_target", source=source, target=target)
        return storyline
    return _write_slot(storyline, source, handle_id, target)


def apply_disconnect(storyline: Storyline, source: str, handle_id: str) -> Storyline:
    """Clear the target of the slot behind *handle_id*.

    The option or branch itself is kept; only its target becomes "".
    """
    if not source or not handle_id:
        return storyline
    return _write_slot(storyline, source, handle_id, "")


def apply_edges_delete(storyline: Storyline, edges: Iterable[DiagramEdge]) -> Storyline:
    """Clear the slots of every edge removed in one delete gesture."""
    result = storyline
    for edge in edges:
        result = apply_disconnect(result, edge.source, edge.handle_id)
    return result


def _write_slot(storyline: Storyline, source: str, handle_id: str, target: str) -> Storyline:
    event = storyline.get_event(source)
    if event is None:
        log.debug("slot_write_rejected", reason="unknown_source", source=source)
        return storyline
    updated = with_slot_target(event, handle_id, target)
    if updated is None:
        log.debug(
            "slot_write_rejected",
            reason="unknown_handle",
            source=source,
            handle=handle_id,
            content=event.content.type,
        )
        return storyline
    events = [updated if e.id == source else e for e in storyline.events]
    return storyline.model_copy(update={"events": events})
