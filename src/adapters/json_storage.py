"""JSON file storage adapter.

Implements the core StoragePort as a JSON array of processed codes, plus the
one-time migration from the legacy ``lastlength`` counter file.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Awaitable, Callable, Iterable, List, Optional

from core.errors import CodeSourceError, StorageError

LOGGER = logging.getLogger(__name__)

PROCESSED_FILE = "processedLicenses"
LEGACY_MARKER_FILE = "lastlength"


class JsonProcessedStore:
    """Processed set kept in memory and rewritten on every addition."""

    def __init__(self, storage_dir: str) -> None:
        self._dir = storage_dir
        self.path = os.path.join(storage_dir, PROCESSED_FILE)
        self.marker_path = os.path.join(storage_dir, LEGACY_MARKER_FILE)
        # A list keeps the file in processing order; the set answers lookups.
        self._codes: List[str] = []
        self._index: set[str] = set()

    def __len__(self) -> int:
        return len(self._codes)

    def load(self) -> None:
        """Read the processed set, creating an empty file on first run."""

        os.makedirs(self._dir, exist_ok=True)
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            self._codes, self._index = [], set()
            self.save()
            return
        except (OSError, ValueError) as exc:
            raise StorageError(f"Error loading processed licenses from {self.path}: {exc}") from exc

        if not isinstance(data, list) or not all(isinstance(code, str) for code in data):
            raise StorageError(f"{self.path} must contain a JSON array of strings")
        self._codes = list(dict.fromkeys(data))
        self._index = set(self._codes)

    def save(self) -> None:
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(self._codes, handle, indent=2)

    def is_processed(self, code: str) -> bool:
        return code in self._index

    def mark_processed(self, code: str) -> None:
        self.add_many([code])

    def add_many(self, codes: Iterable[str]) -> int:
        """Add codes not yet present, persist once and return how many were new."""

        added = 0
        for code in codes:
            if code in self._index:
                continue
            self._codes.append(code)
            self._index.add(code)
            added += 1
        if added:
            self.save()
        return added

    def _read_marker(self) -> Optional[int]:
        try:
            with open(self.marker_path, "r", encoding="utf-8") as handle:
                return int(handle.read().strip())
        except (OSError, ValueError):
            return None

    async def migrate_legacy_marker(self, fetch_codes: Callable[[], Awaitable[List[str]]]) -> int:
        """Backfill the first N listed codes from the legacy counter file.

        Older releases only remembered how many list entries were done. The
        marker is deleted once consumed; a missing or unreadable marker, or a
        failed fetch, skips the migration.
        """

        count = self._read_marker()
        if count is None:
            return 0
        try:
            codes = await fetch_codes()
        except CodeSourceError as exc:
            LOGGER.debug("Skipping legacy migration: %s", exc)
            return 0

        added = self.add_many(codes[:count])
        try:
            os.remove(self.marker_path)
        except OSError as exc:
            LOGGER.debug("Could not remove %s: %s", self.marker_path, exc)
        LOGGER.info("Migrated %s code(s) from %s", added, self.marker_path)
        return added
