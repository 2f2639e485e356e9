# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-process document store (nothing survives the process)."""

from __future__ import annotations

import copy
from typing import Any

from afkfleet.store.base import DocumentStore


class MemoryStore(DocumentStore):
    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}

    def load(self, kind: str, key: str) -> Any | None:
        value = self._docs.get(kind, {}).get(key)
        return copy.deepcopy(value)

    def save(self, kind: str, key: str, value: Any) -> None:
        self._docs.setdefault(kind, {})[key] = copy.deepcopy(value)

    def delete(self, kind: str, key: str) -> bool:
        return self._docs.get(kind, {}).pop(key, None) is not None

    def keys(self, kind: str) -> list[str]:
        return list(self._docs.get(kind, {}))
