"""Storyline mutation error types.

These errors are raised when a mutation addresses something that does not
exist or is not allowed in the storyline. They signal caller mistakes.
Structural problems of the storyline itself (dangling targets, missing start)
are never raised; the validator reports them as values.

Each error can format itself as readable feedback for the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches


class StorylineError(ValueError):
    """Base class for storyline mutation errors."""

    def to_feedback(self) -> str:
        """Format the error as a short human-readable explanation."""
        return str(self)


@dataclass
class EventNotFoundError(StorylineError):
    """Raised when a mutation references a non-existent event.

    Attributes:
        event_id: The ID that was referenced but doesn't exist.
        available: Event IDs that could be used instead.
        context: Description of where the reference occurred.
    """

    event_id: str
    available: list[str] = field(default_factory=list)
    context: str = ""

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Event '{self.event_id}' not found"
        if self.context:
            msg += f" ({self.context})"
        return msg

    def suggestions(self) -> list[str]:
        """Find similar IDs that might be typos."""
        return get_close_matches(self.event_id, self.available, n=3, cutoff=0.6)

    def to_feedback(self) -> str:
        lines = [self._format_message()]
        suggestions = self.suggestions()
        if suggestions:
            lines.append("Did you mean one of these?")
            lines.extend(f"  - {s}" for s in suggestions)
        elif self.available:
            lines.append("Known events:")
            for a in self.available[:10]:
                lines.append(f"  - {a}")
            if len(self.available) > 10:
                lines.append(f"  - ... and {len(self.available) - 10} more")
        return "\n".join(lines)


@dataclass
class OptionNotFoundError(StorylineError):
    """Raised when an option id is not present on a decision event.

    Attributes:
        event_id: Decision event that was addressed.
        option_id: The option ID that doesn't exist.
        available: Option IDs present on the event.
    """

    event_id: str
    option_id: str
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(f"Option '{self.option_id}' not found on event '{self.event_id}'")

    def to_feedback(self) -> str:
        lines = [str(self)]
        if self.available:
            lines.append("Options on this event:")
            lines.extend(f"  - {a}" for a in self.available)
        return "\n".join(lines)


@dataclass
class ContentKindError(StorylineError):
    """Raised when an operation requires a different content kind.

    Attributes:
        event_id: Event that was addressed.
        expected: Content kind the operation works on.
        actual: Content kind the event has.
    """

    event_id: str
    expected: str
    actual: str

    def __post_init__(self) -> None:
        super().__init__(
            f"Event '{self.event_id}' has {self.actual} content, expected {self.expected}"
        )


@dataclass
class DeletionNotConfirmedError(StorylineError):
    """Raised when an event deletion is requested without confirmation.

    Deleting an event also clears every transition pointing at it, so the
    caller must pass ``confirm=True`` explicitly.

    Attributes:
        event_id: The event that was not deleted.
    """

    event_id: str

    def __post_init__(self) -> None:
        super().__init__(f"Deleting event '{self.event_id}' requires confirmation")

    def to_feedback(self) -> str:
        return f"{self}. Re-run with confirmation (e.g. --yes) to delete it."


@dataclass
class CatalogEntryNotFoundError(StorylineError):
    """Raised when a catalog lookup for a snapshot finds nothing.

    Attributes:
        kind: Catalog kind (e.g. "enemy").
        entry_id: The id that was looked up.
    """

    kind: str
    entry_id: str

    def __post_init__(self) -> None:
        super().__init__(f"No {self.kind} with id '{self.entry_id}' in the catalog")
