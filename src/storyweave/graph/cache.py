"""Fingerprint-keyed memoization for derived graph structures.

Edges, validation, and layout are recomputed only when the inputs they
depend on change. Each derived structure has an explicit fingerprint: a
hashable tuple of exactly those inputs. Anything else (an event's text,
the selected event) can change without invalidating the cached value.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from storyweave.graph.content import handles_of, slots_of

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from storyweave.models.storyline import Storyline

V = TypeVar("V")

_MISSING = object()


class Memo(Generic[V]):
    """Single-entry cache: remembers the value for the last fingerprint seen."""

    def __init__(self) -> None:
        self._key: object = _MISSING
        self._value: V | None = None
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable, compute: Callable[[], V]) -> V:
        """Return the cached value for *key*, computing it on a miss."""
        if self._key is not _MISSING and self._key == key:
            self.hits += 1
            return self._value  # type: ignore[return-value]
        value = compute()
        self._key = key
        self._value = value
        self.misses += 1
        return value

    def clear(self) -> None:
        self._key = _MISSING
        self._value = None


def edges_fingerprint(storyline: Storyline) -> tuple[object, ...]:
    """Inputs of edge derivation: event ids, handles, and slot targets."""
    return tuple(
        (
            event.id,
            tuple(handles_of(event)),
            tuple((slot.handle_id, slot.target) for slot in slots_of(event)),
        )
        for event in storyline.events
    )


def validation_fingerprint(storyline: Storyline) -> tuple[object, ...]:
    """Inputs of validation: name, start id, event ids, and slot targets."""
    return (
        storyline.id,
        storyline.name,
        storyline.start_event_id,
        tuple(
            (event.id, tuple((slot.handle_id, slot.target) for slot in slots_of(event)))
            for event in storyline.events
        ),
    )


def storyline_fingerprint(storyline: Storyline) -> str:
    """Fingerprint of the whole storyline, display fields included."""
    return storyline.model_dump_json()
