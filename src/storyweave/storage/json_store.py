"""JSON-file storyline repository.

All storylines live in a single ``storylines.json`` in the data directory::

    {"storylines": [{"id": ..., "name": ..., "start_event_id": ..., "events": [...]}]}

Writes go to a temp file that atomically replaces the original, so a failed
save never leaves a half-written file behind. Loaded storylines are
normalized (missing defaults filled, option ids assigned).
"""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from pydantic import ValidationError

from storyweave.graph.content import normalize_storyline
from storyweave.models.storyline import Storyline, StorylineListItem
from storyweave.observability.logging import get_logger
from storyweave.storage.base import StorageError

log = get_logger(__name__)

STORYLINES_FILE = "storylines.json"
STORYLINES_KEY = "storylines"


class JsonStorylineRepository:
    """Repository backed by one JSON document.

    Args:
        data_dir: Directory holding ``storylines.json``. Created on first save.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.path = data_dir / STORYLINES_FILE

    # -------------------------------------------------------------------------
    # Raw document access
    # -------------------------------------------------------------------------

    def _read_raw(self, operation: str) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open(encoding="utf-8") as f:
                document = json.load(f)
        except OSError as e:
            raise StorageError(operation, str(e), self.path) from e
        except json.JSONDecodeError as e:
            raise StorageError(operation, f"invalid JSON: {e}", self.path) from e

        if not isinstance(document, dict) or not isinstance(
            document.get(STORYLINES_KEY, []), list
        ):
            raise StorageError(
                operation, f"expected an object with a '{STORYLINES_KEY}' list", self.path
            )
        entries: list[dict[str, Any]] = document.get(STORYLINES_KEY, [])
        return entries

    def _write_raw(self, entries: list[dict[str, Any]], operation: str) -> None:
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump({STORYLINES_KEY: entries}, f, ensure_ascii=False, indent=2)
                f.write("\n")
            tmp_path.replace(self.path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StorageError(operation, str(e), self.path) from e

    # -------------------------------------------------------------------------
    # Repository API
    # -------------------------------------------------------------------------

    def load(self, storyline_id: str) -> Storyline | None:
        for entry in self._read_raw("load"):
            if entry.get("id") == storyline_id:
                try:
                    return normalize_storyline(entry)
                except ValidationError as e:
                    raise StorageError(
                        "load", f"storyline '{storyline_id}' is malformed: {e}", self.path
                    ) from e
        return None

    def save(self, storyline: Storyline) -> str:
        entries = self._read_raw("save")
        try:
            data = storyline.model_dump(mode="json")
        except ValueError as e:
            # PydanticSerializationError: an opaque payload is not JSON-compatible
            raise StorageError(
                "save", f"storyline '{storyline.id}' is not serializable: {e}", self.path
            ) from e
        for index, entry in enumerate(entries):
            if entry.get("id") == storyline.id:
                entries[index] = data
                break
        else:
            entries.append(data)
        self._write_raw(entries, "save")
        log.info("storyline_saved", storyline_id=storyline.id, path=str(self.path))
        return storyline.id

    def list(self) -> list[StorylineListItem]:
        return [
            StorylineListItem(id=str(entry.get("id", "")), name=str(entry.get("name") or ""))
            for entry in self._read_raw("list")
        ]

    def delete(self, storyline_id: str) -> bool:
        entries = self._read_raw("delete")
        remaining = [entry for entry in entries if entry.get("id") != storyline_id]
        if len(remaining) == len(entries):
            return False
        self._write_raw(remaining, "delete")
        log.info("storyline_deleted", storyline_id=storyline_id)
        return True
