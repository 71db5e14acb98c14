"""Storyline diagram view.

Combines laid-out nodes, derived edges, and validation markers into one
structure a front end can draw, and renders it as Mermaid markup. Pure
graph analysis: nothing here mutates the storyline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from storyweave.graph.content import handles_of
from storyweave.graph.edges import derive_edges
from storyweave.graph.layout import Position, layout_storyline
from storyweave.graph.validation import validate_storyline
from storyweave.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from storyweave.graph.content import HandleItem
    from storyweave.graph.edges import DiagramEdge
    from storyweave.graph.validation import StorylineValidation
    from storyweave.models.storyline import ContentKind, StoryEvent, Storyline

log = get_logger(__name__)

UNNAMED_EVENT = "Unnamed event"

_ORIGIN = Position(x=0, y=0)


def event_label(event: StoryEvent, index: int | None = None) -> str:
    """Display name of an event.

    Falls back to ``Unnamed event`` (with its 1-based position when
    *index* is given, as in event pickers).
    """
    if event.name:
        return event.name
    return UNNAMED_EVENT if index is None else f"{UNNAMED_EVENT} {index + 1}"


@dataclass
class DiagramNode:
    """An event node in the diagram."""

    id: str
    label: str
    kind: ContentKind
    position: Position
    handles: list[HandleItem] = field(default_factory=list)
    is_start: bool = False
    is_unreachable: bool = False
    has_invalid_refs: bool = False
    selected: bool = False


@dataclass
class StorylineDiagram:
    """Nodes and edges of one storyline snapshot."""

    nodes: list[DiagramNode]
    edges: list[DiagramEdge]

    def node(self, node_id: str) -> DiagramNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)


def build_diagram(
    storyline: Storyline,
    *,
    edges: Sequence[DiagramEdge] | None = None,
    positions: Mapping[str, Position] | None = None,
    validation: StorylineValidation | None = None,
    selected_id: str | None = None,
) -> StorylineDiagram:
    """Assemble the diagram for a storyline.

    Precomputed edges, positions, and validation can be passed in (the
    editing session does, from its caches); anything missing is derived.

    An event is marked unreachable only while a start event is set; without
    one, nothing is reachable and marking every node would be noise.

    Args:
        storyline: Storyline snapshot.
        edges: Derived edges.
        positions: Layout positions keyed by event id.
        validation: Validation of the same snapshot.
        selected_id: Event to mark as selected.

    Returns:
        StorylineDiagram with one node per event, in authoring order.
    """
    if edges is None:
        edges = derive_edges(storyline)
    if positions is None:
        positions = layout_storyline(storyline, edges)
    if validation is None:
        validation = validate_storyline(storyline)

    start = storyline.start_event_id
    nodes = [
        DiagramNode(
            id=event.id,
            label=event_label(event),
            kind=event.content.type,
            position=positions.get(event.id, _ORIGIN),
            handles=handles_of(event),
            is_start=bool(start) and event.id == start,
            is_unreachable=bool(start) and event.id not in validation.reachable_ids,
            has_invalid_refs=validation.has_invalid_refs(event.id),
            selected=selected_id == event.id,
        )
        for event in storyline.events
    ]

    log.debug("diagram_built", nodes=len(nodes), edges=len(edges))
    return StorylineDiagram(nodes=nodes, edges=list(edges))


# ---------------------------------------------------------------------------
# Mermaid
# ---------------------------------------------------------------------------


def render_mermaid(diagram: StorylineDiagram, *, no_labels: bool = False) -> str:
    """Render a diagram as Mermaid flowchart markup.

    Args:
        diagram: Diagram data.
        no_labels: If True, omit handle labels on edges.

    Returns:
        Mermaid format string.
    """
    lines = ["graph TD"]

    for node in diagram.nodes:
        safe_id = _mermaid_id(node.id)
        label = _mermaid_escape(node.label)
        if node.kind == "decision":
            lines.append(f"  {safe_id}{{{{{label}}}}}")
        else:
            lines.append(f'  {safe_id}["{label}"]')
        if node.has_invalid_refs:
            lines.append(f"  class {safe_id} invalid")
        elif node.is_unreachable:
            lines.append(f"  class {safe_id} unreachable")
        elif node.is_start:
            lines.append(f"  class {safe_id} start")
        elif node.kind == "end":
            lines.append(f"  class {safe_id} ending")

    lines.append("")

    for edge in diagram.edges:
        src = _mermaid_id(edge.source)
        dst = _mermaid_id(edge.target)
        arrow = "-.->" if edge.kind == "lose" else "-->"
        if not no_labels and edge.label:
            lines.append(f'  {src} {arrow}|"{_mermaid_escape(edge.label)}"| {dst}')
        else:
            lines.append(f"  {src} {arrow} {dst}")

    lines.append("")
    lines.append("  classDef start fill:#90EE90,stroke:#333")
    lines.append("  classDef ending fill:#FFB6C1,stroke:#333")
    lines.append("  classDef unreachable fill:#FFF3CD,stroke:#D4A017,stroke-dasharray:4")
    lines.append("  classDef invalid stroke:#FF4500,stroke-width:3px")
    return "\n".join(lines)


def _mermaid_id(node_id: str) -> str:
    """Convert an event id to a Mermaid-safe identifier."""
    safe = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in node_id)
    return f"e_{safe}"


def _mermaid_escape(text: str) -> str:
    return text.replace('"', "&quot;").replace("\n", " ")
