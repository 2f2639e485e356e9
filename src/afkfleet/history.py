# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Bounded, persisted console history for one bot."""

from __future__ import annotations

from collections import deque

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from afkfleet.constants import DEFAULT_HISTORY_CAPACITY, KIND_HISTORY
from afkfleet.errors import PersistenceError
from afkfleet.logging import get_logger
from afkfleet.models import LogCategory, LogEntry
from afkfleet.store.base import DocumentStore

logger = get_logger(__name__)

_ENTRIES = TypeAdapter(list[LogEntry])


class LogHistory:
    """Append-only ring buffer of LogEntry, saved after every append.

    Store failures are logged and never raised; the in-memory buffer stays
    authoritative for the running process.
    """

    def __init__(
        self,
        bot_id: int,
        store: DocumentStore,
        capacity: int = DEFAULT_HISTORY_CAPACITY,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.bot_id = bot_id
        self.capacity = capacity
        self._store = store
        self._key = str(bot_id)
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> None:
        """Restore history from the store; start empty if missing or corrupt."""
        self._entries.clear()
        try:
            data = self._store.load(KIND_HISTORY, self._key)
        except PersistenceError as e:
            logger.warning("history_load_failed", bot_id=self.bot_id, error=str(e))
            return
        if data is None:
            return
        try:
            entries = _ENTRIES.validate_python(data)
        except PydanticValidationError as e:
            logger.warning("history_corrupt", bot_id=self.bot_id, error=str(e))
            return
        # deque(maxlen) keeps only the newest when the stored list is longer
        self._entries.extend(entries)

    def append(self, message: str, category: LogCategory = "info") -> LogEntry:
        entry = LogEntry(message=message, category=category)
        self._entries.append(entry)
        self._persist()
        return entry

    def read(self, count: int) -> list[LogEntry]:
        """Most recent ``count`` entries, oldest first."""
        if count <= 0:
            return []
        entries = list(self._entries)
        return entries[-count:]

    def clear(self) -> None:
        self._entries.clear()
        try:
            self._store.delete(KIND_HISTORY, self._key)
        except PersistenceError as e:
            logger.warning("history_delete_failed", bot_id=self.bot_id, error=str(e))

    def _persist(self) -> None:
        try:
            self._store.save(
                KIND_HISTORY,
                self._key,
                [entry.model_dump(mode="json") for entry in self._entries],
            )
        except PersistenceError as e:
            logger.warning("history_save_failed", bot_id=self.bot_id, error=str(e))
