"""Storyline persistence protocol and in-memory implementation.

The StorylineRepository protocol is the only way the editing session
reaches persistence. Implementations raise ``StorageError`` for any
backend failure; a missing storyline is not a failure (``load`` returns
None, ``delete`` returns False).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from storyweave.models.storyline import Storyline, StorylineListItem

if TYPE_CHECKING:
    from pathlib import Path


@dataclass
class StorageError(Exception):
    """Raised when the persistence backend cannot complete an operation.

    Attributes:
        operation: What was attempted ("load", "save", "list", "delete").
        reason: Backend-specific description of the failure.
        path: File involved, if any.
    """

    operation: str
    reason: str
    path: Path | None = None

    def __post_init__(self) -> None:
        msg = f"Storage {self.operation} failed: {self.reason}"
        if self.path is not None:
            msg += f" ({self.path})"
        super().__init__(msg)


@runtime_checkable
class StorylineRepository(Protocol):
    """Persistence collaborator for storylines."""

    def load(self, storyline_id: str) -> Storyline | None:
        """Return the stored storyline, or None if absent."""
        ...

    def save(self, storyline: Storyline) -> str:
        """Create or overwrite a storyline. Returns its id."""
        ...

    def list(self) -> list[StorylineListItem]:
        """Return ``(id, name)`` rows in storage order."""
        ...

    def delete(self, storyline_id: str) -> bool:
        """Remove a storyline. Returns False if it did not exist."""
        ...


class InMemoryStorylineRepository:
    """Dict-backed repository. Stores deep copies so callers cannot alias it."""

    def __init__(self, storylines: list[Storyline] | None = None) -> None:
        self._storylines: dict[str, Storyline] = {}
        for storyline in storylines or []:
            self.save(storyline)

    def load(self, storyline_id: str) -> Storyline | None:
        stored = self._storylines.get(storyline_id)
        return copy.deepcopy(stored) if stored is not None else None

    def save(self, storyline: Storyline) -> str:
        self._storylines[storyline.id] = copy.deepcopy(storyline)
        return storyline.id

    def list(self) -> list[StorylineListItem]:
        return [StorylineListItem(id=s.id, name=s.name) for s in self._storylines.values()]

    def delete(self, storyline_id: str) -> bool:
        return self._storylines.pop(storyline_id, None) is not None

    def __len__(self) -> int:
        return len(self._storylines)
