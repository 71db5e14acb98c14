"""Read-only catalog collaborators.

Catalogs hold the game entities a storyline refers to by id: enemies
(snapshotted into battle events) and the manuals and traits shown in enemy
summaries. Only id lookup matters here; entries are opaque dicts.

Catalog file format (``catalogs.json`` in the data directory)::

    {"enemy": [{"id": "e1", "name": "Bandit", ...}], "internal": [...], ...}
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from storyweave.observability.logging import get_logger
from storyweave.storage.base import StorageError

if TYPE_CHECKING:
    from pathlib import Path

log = get_logger(__name__)

CatalogKind = Literal["enemy", "internal", "attack_skill", "defense_skill", "trait"]
CATALOG_KINDS: tuple[CatalogKind, ...] = (
    "enemy",
    "internal",
    "attack_skill",
    "defense_skill",
    "trait",
)
MANUAL_KINDS: tuple[CatalogKind, ...] = ("internal", "attack_skill", "defense_skill")
CATALOGS_FILE = "catalogs.json"

NONE_LABEL = "None"
UNNAMED_LABELS: dict[CatalogKind, str] = {
    "enemy": "Unnamed enemy",
    "internal": "Unnamed internal",
    "attack_skill": "Unnamed attack skill",
    "defense_skill": "Unnamed defense skill",
    "trait": "Unnamed trait",
}


@runtime_checkable
class Catalog(Protocol):
    """Lookup of catalog entries of one kind."""

    kind: CatalogKind

    def get(self, entry_id: str) -> dict[str, Any] | None:
        """Return the entry with *entry_id*, or None."""
        ...

    def list(self) -> list[dict[str, Any]]:
        """Return all entries, each with at least ``id`` and ``name``."""
        ...

    def name_of(self, entry_id: str | None) -> str:
        """Display name for *entry_id*, with fallbacks for empty or unknown ids."""
        ...


class DictCatalog:
    """Catalog backed by a list of entry dicts."""

    def __init__(self, kind: CatalogKind, entries: list[dict[str, Any]] | None = None) -> None:
        self.kind = kind
        self._entries: dict[str, dict[str, Any]] = {}
        for entry in entries or []:
            entry_id = str(entry.get("id") or "")
            if not entry_id:
                log.warning("catalog_entry_skipped", kind=kind, reason="missing_id")
                continue
            self._entries[entry_id] = dict(entry)

    def get(self, entry_id: str) -> dict[str, Any] | None:
        entry = self._entries.get(entry_id)
        return dict(entry) if entry is not None else None

    def list(self) -> list[dict[str, Any]]:
        return [dict(entry) for entry in self._entries.values()]

    def name_of(self, entry_id: str | None) -> str:
        if not entry_id:
            return NONE_LABEL
        entry = self._entries.get(entry_id)
        name = entry.get("name") if entry is not None else None
        return str(name) if name else UNNAMED_LABELS[self.kind]

    def __len__(self) -> int:
        return len(self._entries)


def empty_catalogs() -> dict[CatalogKind, DictCatalog]:
    """One empty catalog per kind."""
    return {kind: DictCatalog(kind) for kind in CATALOG_KINDS}


def load_catalogs(data_dir: Path) -> dict[CatalogKind, DictCatalog]:
    """Load every catalog kind from ``catalogs.json`` in *data_dir*.

    A missing file yields empty catalogs. Unknown kinds in the file are
    ignored.

    Raises:
        StorageError: If the file exists but cannot be read or parsed.
    """
    path = data_dir / CATALOGS_FILE
    if not path.exists():
        return empty_catalogs()

    try:
        with path.open(encoding="utf-8") as f:
            document = json.load(f)
    except OSError as e:
        raise StorageError("load", str(e), path) from e
    except json.JSONDecodeError as e:
        raise StorageError("load", f"invalid JSON: {e}", path) from e
    if not isinstance(document, dict):
        raise StorageError("load", "expected an object keyed by catalog kind", path)

    catalogs = {kind: DictCatalog(kind, document.get(kind) or []) for kind in CATALOG_KINDS}
    log.debug("catalogs_loaded", path=str(path), **{k: len(c) for k, c in catalogs.items()})
    return catalogs


def owned_manual_id(value: Any) -> str | None:
    """Catalog id of a manual slot in an enemy snapshot.

    Snapshots store manuals as ``{"id", "level", "exp"}`` mappings; a bare
    id string is accepted too.
    """
    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None


def resolve_manual_name(
    catalogs: dict[CatalogKind, DictCatalog], kind: CatalogKind, entry_id: str | None
) -> str:
    """Name of a manual or trait referenced by an enemy snapshot."""
    catalog = catalogs.get(kind)
    if catalog is None:
        return UNNAMED_LABELS[kind] if entry_id else NONE_LABEL
    return catalog.name_of(entry_id)
