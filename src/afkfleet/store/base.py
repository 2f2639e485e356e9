# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Abstract base class for key-value document stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class DocumentStore(ABC):
    """JSON-compatible documents addressed by ``(kind, key)``."""

    @abstractmethod
    def load(self, kind: str, key: str) -> Any | None:
        """Load a document.

        Args:
            kind: Document collection (e.g. "bots")
            key: Document key within the collection

        Returns:
            The stored value, or None if absent

        Raises:
            PersistenceError: If the document exists but cannot be read
        """

    @abstractmethod
    def save(self, kind: str, key: str, value: Any) -> None:
        """Store a document, replacing any previous value.

        Raises:
            PersistenceError: If the write fails
        """

    @abstractmethod
    def delete(self, kind: str, key: str) -> bool:
        """Delete a document.

        Returns:
            True if a document was removed, False if it did not exist

        Raises:
            PersistenceError: If the delete fails
        """

    @abstractmethod
    def keys(self, kind: str) -> list[str]:
        """List document keys of a collection (unordered)."""
