# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""One-JSON-file-per-document store rooted in the data directory."""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from afkfleet.errors import PersistenceError
from afkfleet.logging import get_logger
from afkfleet.store.base import DocumentStore

logger = get_logger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore(DocumentStore):
    """Stores each document at ``<root>/<kind>/<key>.json``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, kind: str, key: str) -> Path:
        for part in (kind, key):
            if not _SAFE_NAME.match(part) or part in {".", ".."}:
                raise PersistenceError(f"Invalid document name: {part!r}")
        return self.root / kind / f"{key}.json"

    def load(self, kind: str, key: str) -> Any | None:
        path = self._path(kind, key)
        if not path.is_file():
            return None
        try:
            with path.open(encoding="utf-8") as f:
                return json.load(f)
        # ValueError covers both JSONDecodeError and UnicodeDecodeError.
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read {kind}/{key}: {e}") from e

    def save(self, kind: str, key: str, value: Any) -> None:
        path = self._path(kind, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file then rename so readers never see partial JSON.
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {kind}/{key}: {e}") from e

    def delete(self, kind: str, key: str) -> bool:
        path = self._path(kind, key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Failed to delete {kind}/{key}: {e}") from e
        return True

    def keys(self, kind: str) -> list[str]:
        directory = self.root / kind
        if not directory.is_dir():
            return []
        return [p.stem for p in directory.glob("*.json") if not p.name.startswith(".")]
