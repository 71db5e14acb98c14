"""Layered automatic layout for the storyline diagram.

Positions are a pure function of the events (in authoring order), the start
event id, and the derived edges. Nodes are not user-draggable, so this is the
only source of coordinates.

Algorithm:
    1. Adjacency from each event to its edge targets (existing ids only).
    2. BFS from the start event records ``depth`` (first visit wins, so each
       depth is the shortest hop count).
    3. Events sharing a depth form a level, ordered by authoring position.
    4. Events without a depth (unreachable, or no valid start) fill synthetic
       levels after the deepest one, a fixed number per level.
    5. Each level is laid out left to right on a fixed grid.

There is no crossing minimization; within-level order is the authoring order.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from storyweave.graph.edges import derive_edges
from storyweave.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from storyweave.graph.edges import DiagramEdge
    from storyweave.models.storyline import Storyline

log = get_logger(__name__)


@dataclass(frozen=True)
class LayoutConfig:
    """Grid geometry for the layered layout.

    Attributes:
        node_width: Width reserved per node.
        node_height: Height reserved per node.
        gap_x: Horizontal gap between columns.
        gap_y: Vertical gap between levels.
        margin_x: Left margin.
        margin_y: Top margin.
        unreachable_per_level: Max events per synthetic level for events
            without a depth.
    """

    node_width: int = 220
    node_height: int = 84
    gap_x: int = 260
    gap_y: int = 140
    margin_x: int = 40
    margin_y: int = 40
    unreachable_per_level: int = 6

    def __post_init__(self) -> None:
        if self.unreachable_per_level < 1:
            raise ValueError("unreachable_per_level must be at least 1")
        for name in ("node_width", "node_height", "gap_x", "gap_y", "margin_x", "margin_y"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")


DEFAULT_LAYOUT = LayoutConfig()


@dataclass(frozen=True)
class Position:
    """Top-left corner of a node."""

    x: int
    y: int


def layout_key(storyline: Storyline, edges: Sequence[DiagramEdge]) -> tuple[object, ...]:
    """Fingerprint of everything the layout depends on.

    Start id, ordered event ids, and ordered ``(source, handle, target)``
    triples. Name, text, or selection changes leave it unchanged.
    """
    return (
        storyline.start_event_id,
        tuple(storyline.event_ids()),
        tuple(edge.triple for edge in edges),
    )


def compute_depths(storyline: Storyline, edges: Sequence[DiagramEdge]) -> dict[str, int]:
    """BFS hop count from the start event for every reachable event.

    Returns an empty dict when the start is unset or names no event.
    """
    event_ids = storyline.event_ids()
    id_set = set(event_ids)
    adjacency: dict[str, list[str]] = {eid: [] for eid in event_ids}
    for edge in edges:
        if edge.source in id_set and edge.target in id_set:
            adjacency[edge.source].append(edge.target)

    start = storyline.start_event_id
    if not start or start not in id_set:
        return {}

    depth: dict[str, int] = {start: 0}
    queue: deque[str] = deque([start])
    while queue:
        current = queue.popleft()
        next_depth = depth[current] + 1
        for target in adjacency[current]:
            if target not in depth:
                depth[target] = next_depth
                queue.append(target)
    return depth


def compute_levels(
    storyline: Storyline,
    edges: Sequence[DiagramEdge],
    *,
    per_level: int = DEFAULT_LAYOUT.unreachable_per_level,
) -> list[list[str]]:
    """Group events into layout levels.

    Args:
        storyline: Storyline to lay out.
        edges: Derived edges of the storyline.
        per_level: Capacity of each synthetic level for events without depth.

    Returns:
        Levels top to bottom; each level lists event ids in authoring order.
    """
    depth = compute_depths(storyline, edges)
    max_depth = max(depth.values(), default=-1)

    levels: dict[int, list[str]] = {}
    orphans: list[str] = []
    # storyline.events is already in authoring order, so appending keeps
    # every level sorted by original position.
    for event in storyline.events:
        level = depth.get(event.id)
        if level is None:
            orphans.append(event.id)
        else:
            levels.setdefault(level, []).append(event.id)

    for index, event_id in enumerate(orphans):
        levels.setdefault(max_depth + 1 + index // per_level, []).append(event_id)

    return [levels[level] for level in sorted(levels)]


def layout_storyline(
    storyline: Storyline,
    edges: Sequence[DiagramEdge] | None = None,
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> dict[str, Position]:
    """Assign integer coordinates to every event.

    Args:
        storyline: Storyline to lay out.
        edges: Derived edges. Derived from the storyline when omitted.
        config: Grid geometry.

    Returns:
        Mapping of event id to position. Empty for a storyline without events.
    """
    if not storyline.events:
        return {}
    if edges is None:
        edges = derive_edges(storyline)

    levels = compute_levels(storyline, edges, per_level=config.unreachable_per_level)
    positions: dict[str, Position] = {}
    for level_index, row in enumerate(levels):
        y = config.margin_y + level_index * (config.node_height + config.gap_y)
        for column, event_id in enumerate(row):
            x = config.margin_x + column * (config.node_width + config.gap_x)
            positions[event_id] = Position(x=x, y=y)

    log.debug("storyline_laid_out", events=len(positions), levels=len(levels))
    return positions
