# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Document stores for persisted fleet state."""

from __future__ import annotations

from afkfleet.store.base import DocumentStore
from afkfleet.store.json_store import JsonFileStore
from afkfleet.store.memory import MemoryStore

__all__ = ["DocumentStore", "JsonFileStore", "MemoryStore"]
