"""Editing session: single owner of one in-memory storyline.

The session holds the current storyline snapshot and the selected event.
Every edit replaces the snapshot wholesale (mutations never modify a
storyline in place); derived structures are recomputed lazily and cached on
their fingerprints, so e.g. renaming an event does not re-run the layout and
changing the selection recomputes nothing but the diagram markers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from storyweave.diagram import build_diagram
from storyweave.graph import mutations
from storyweave.graph.cache import (
    Memo,
    edges_fingerprint,
    storyline_fingerprint,
    validation_fingerprint,
)
from storyweave.graph.content import normalize_storyline
from storyweave.graph.edges import (
    apply_connect,
    apply_disconnect,
    apply_edges_delete,
    derive_edges,
)
from storyweave.graph.layout import DEFAULT_LAYOUT, layout_key, layout_storyline
from storyweave.graph.validation import validate_storyline
from storyweave.observability.logging import get_logger
from storyweave.storage.base import StorageError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from storyweave.catalog import Catalog
    from storyweave.diagram import StorylineDiagram
    from storyweave.graph.edges import DiagramEdge
    from storyweave.graph.layout import LayoutConfig, Position
    from storyweave.graph.validation import StorylineValidation
    from storyweave.models.storyline import ContentKind, NodeType, StoryEvent, Storyline
    from storyweave.storage.base import StorylineRepository

log = get_logger(__name__)


@dataclass
class SaveResult:
    """Outcome of a save attempt.

    Attributes:
        ok: True if the repository accepted the storyline.
        storyline_id: Id returned by the repository on success.
        errors: Blocking validation errors or the storage failure message.
    """

    ok: bool
    storyline_id: str = ""
    errors: list[str] = field(default_factory=list)


class EditingSession:
    """Interactive editing state for one storyline.

    Args:
        storyline: Initial storyline; normalized on entry.
        repository: Persistence collaborator used by ``save``.
        layout: Grid geometry for positions.
    """

    def __init__(
        self,
        storyline: Storyline,
        repository: StorylineRepository | None = None,
        *,
        layout: LayoutConfig = DEFAULT_LAYOUT,
    ) -> None:
        self._storyline = normalize_storyline(storyline)
        self.repository = repository
        self.layout = layout
        self.selected_id: str | None = (
            self._storyline.start_event_id or next(iter(self._storyline.event_ids()), None)
        )
        self._edges: Memo[list[DiagramEdge]] = Memo()
        self._validation: Memo[StorylineValidation] = Memo()
        self._positions: Memo[dict[str, Position]] = Memo()
        self._diagram: Memo[StorylineDiagram] = Memo()

    @classmethod
    def open(
        cls, repository: StorylineRepository, storyline_id: str, **kwargs: Any
    ) -> EditingSession:
        """Start a session on a stored storyline.

        Raises:
            KeyError: If the repository has no such storyline.
        """
        storyline = repository.load(storyline_id)
        if storyline is None:
            raise KeyError(storyline_id)
        return cls(storyline, repository, **kwargs)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def storyline(self) -> Storyline:
        """Current snapshot. Treat as read-only; edit through ``apply``."""
        return self._storyline

    @property
    def selected_event(self) -> StoryEvent | None:
        if self.selected_id is None:
            return None
        return self._storyline.get_event(self.selected_id)

    def apply(self, fn: Callable[[Storyline], Storyline]) -> Storyline:
        """Replace the storyline with ``fn(current)``.

        A selection that no longer names an event is cleared.
        """
        self._storyline = fn(self._storyline)
        if self.selected_id is not None and not self._storyline.has_event(self.selected_id):
            self.selected_id = None
        return self._storyline

    def select(self, event_id: str | None) -> None:
        """Select an event (None clears). Unknown ids clear the selection."""
        if event_id is not None and not self._storyline.has_event(event_id):
            event_id = None
        self.selected_id = event_id

    # -------------------------------------------------------------------------
    # Derived structures
    # -------------------------------------------------------------------------

    @property
    def edges(self) -> list[DiagramEdge]:
        storyline = self._storyline
        return self._edges.get(edges_fingerprint(storyline), lambda: derive_edges(storyline))

    @property
    def validation(self) -> StorylineValidation:
        storyline = self._storyline
        return self._validation.get(
            validation_fingerprint(storyline), lambda: validate_storyline(storyline)
        )

    @property
    def positions(self) -> dict[str, Position]:
        storyline = self._storyline
        edges = self.edges
        return self._positions.get(
            layout_key(storyline, edges),
            lambda: layout_storyline(storyline, edges, self.layout),
        )

    @property
    def diagram(self) -> StorylineDiagram:
        storyline = self._storyline
        edges = self.edges
        positions = self.positions
        validation = self.validation
        key = (storyline_fingerprint(storyline), self.selected_id)
        return self._diagram.get(
            key,
            lambda: build_diagram(
                storyline,
                edges=edges,
                positions=positions,
                validation=validation,
                selected_id=self.selected_id,
            ),
        )

    @property
    def errors(self) -> list[str]:
        return self.validation.errors

    @property
    def warnings(self) -> list[str]:
        return self.validation.warnings

    @property
    def can_save(self) -> bool:
        return self.validation.can_save

    # -------------------------------------------------------------------------
    # Diagram gestures
    # -------------------------------------------------------------------------

    def add_event(self, kind: ContentKind = "decision", name: str = "") -> StoryEvent:
        """Append a new event and select it."""
        updated, event = mutations.add_event(self._storyline, kind, name)
        self.apply(lambda _: updated)
        self.selected_id = event.id
        return event

    def delete_event(self, event_id: str, *, confirm: bool = False) -> None:
        """Delete an event with cascading cleanup.

        If the deleted event was selected, the first remaining event is
        selected instead.

        Raises:
            DeletionNotConfirmedError: If *confirm* is not set.
        """
        was_selected = self.selected_id == event_id
        self.apply(lambda s: mutations.delete_event(s, event_id, confirm=confirm))
        if was_selected:
            self.selected_id = next(iter(self._storyline.event_ids()), None)

    def connect(self, source: str, handle_id: str, target: str) -> None:
        self.apply(lambda s: apply_connect(s, source, handle_id, target))

    def disconnect(self, source: str, handle_id: str) -> None:
        self.apply(lambda s: apply_disconnect(s, source, handle_id))

    def delete_edges(self, edges: Iterable[DiagramEdge]) -> None:
        edges = list(edges)
        if edges:
            self.apply(lambda s: apply_edges_delete(s, edges))

    # -------------------------------------------------------------------------
    # Form edits
    # -------------------------------------------------------------------------

    def rename(self, name: str) -> None:
        self.apply(lambda s: mutations.rename_storyline(s, name))

    def set_start_event(self, event_id: str) -> None:
        self.apply(lambda s: mutations.set_start_event(s, event_id))

    def update_event(self, event_id: str, **changes: Any) -> None:
        self.apply(lambda s: mutations.update_event(s, event_id, **changes))

    def set_content_kind(self, event_id: str, kind: ContentKind) -> None:
        self.apply(lambda s: mutations.set_content_kind(s, event_id, kind))

    def add_option(self, event_id: str, text: str = "") -> str:
        updated, option_id = mutations.add_option(self._storyline, event_id, text)
        self.apply(lambda _: updated)
        return option_id

    def remove_option(self, event_id: str, option_id: str) -> None:
        self.apply(lambda s: mutations.remove_option(s, event_id, option_id))

    def update_option(self, event_id: str, option_id: str, **changes: Any) -> None:
        self.apply(lambda s: mutations.update_option(s, event_id, option_id, **changes))

    def set_story_rewards(self, event_id: str, rewards: list[Any]) -> None:
        self.apply(lambda s: mutations.set_story_rewards(s, event_id, rewards))

    def set_branch_rewards(self, event_id: str, branch: str, rewards: list[Any]) -> None:
        self.apply(lambda s: mutations.set_branch_rewards(s, event_id, branch, rewards))

    def assign_enemy(self, event_id: str, enemy_id: str, catalog: Catalog | None = None) -> None:
        self.apply(lambda s: mutations.assign_enemy(s, event_id, enemy_id, catalog))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def filter_events(
        self,
        search: str = "",
        content_kind: ContentKind | None = None,
        node_type: NodeType | None = None,
    ) -> list[StoryEvent]:
        """Events matching all given filters, in authoring order.

        Args:
            search: Case-insensitive substring of the event name or id.
                Blank matches everything.
            content_kind: Only events with this content kind.
            node_type: Only events with this node type.
        """
        term = search.strip().lower()
        result = []
        for event in self._storyline.events:
            if content_kind is not None and event.content.type != content_kind:
                continue
            if node_type is not None and event.node_type != node_type:
                continue
            if term and term not in event.name.lower() and term not in event.id.lower():
                continue
            result.append(event)
        return result

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> SaveResult:
        """Submit the storyline to the repository if it has no blocking errors.

        Storage failures are reported in the result; the in-memory
        storyline is left exactly as it was.
        """
        validation = self.validation
        if not validation.can_save:
            log.info("save_blocked", storyline_id=self._storyline.id, errors=len(validation.errors))
            return SaveResult(ok=False, errors=validation.errors)
        if self.repository is None:
            return SaveResult(ok=False, errors=["No repository configured"])

        try:
            storyline_id = self.repository.save(self._storyline)
        except StorageError as e:
            log.warning("save_failed", storyline_id=self._storyline.id, error=str(e))
            return SaveResult(ok=False, errors=[str(e)])

        log.info("storyline_saved", storyline_id=storyline_id, warnings=len(validation.warnings))
        return SaveResult(ok=True, storyline_id=storyline_id)
