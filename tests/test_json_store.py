# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for the JSON file document store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from afkfleet.errors import PersistenceError
from afkfleet.repository import ConfigRepository
from afkfleet.store.json_store import JsonFileStore

if TYPE_CHECKING:
    from pathlib import Path


def test_save_and_load(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)

    store.save("bots", "1", {"id": 1, "name": "Alpha"})

    assert store.load("bots", "1") == {"id": 1, "name": "Alpha"}
    assert (tmp_path / "bots" / "1.json").is_file()


def test_missing_document(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)

    assert store.load("bots", "1") is None
    assert store.keys("bots") == []
    assert store.delete("bots", "1") is False


def test_keys_and_delete(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    store.save("bots", "1", {})
    store.save("bots", "2", {})

    assert sorted(store.keys("bots")) == ["1", "2"]
    assert store.delete("bots", "1") is True
    assert store.keys("bots") == ["2"]


def test_no_temp_files_left_behind(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    store.save("history", "1", [{"message": "x"}])
    store.save("history", "1", [{"message": "y"}])

    assert [p.name for p in (tmp_path / "history").iterdir()] == ["1.json"]


def test_corrupt_file_raises(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    (tmp_path / "bots").mkdir()
    (tmp_path / "bots" / "1.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        store.load("bots", "1")


def test_invalid_utf8_file_raises(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    (tmp_path / "history").mkdir()
    (tmp_path / "history" / "1.json").write_bytes(b'[{"message": "\xff\xfe"}]')

    with pytest.raises(PersistenceError):
        store.load("history", "1")


def test_list_bots_skips_undecodable_record(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    repository = ConfigRepository(store)
    good = repository.add_bot({"name": "Alpha", "host": "h"})
    (tmp_path / "bots" / "7.json").write_bytes(b'{"name": "\xff"}')

    assert [bot.id for bot in repository.list_bots()] == [good.id]


def test_unserializable_value_raises(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)

    with pytest.raises(PersistenceError):
        store.save("bots", "1", {"bad": object()})


@pytest.mark.parametrize("name", ["..", "a/b", "", "x y"])
def test_unsafe_names_rejected(tmp_path: Path, name: str) -> None:
    store = JsonFileStore(tmp_path)

    with pytest.raises(PersistenceError):
        store.save("bots", name, {})


def test_repository_survives_restart(tmp_path: Path) -> None:
    """Records written by one process are readable by the next."""
    first = ConfigRepository(JsonFileStore(tmp_path))
    created = first.add_bot({"name": "Alpha", "host": "h", "email": "a@b.com"})
    first.update_settings({"auto_reconnect": False})

    second = ConfigRepository(JsonFileStore(tmp_path))

    assert second.get_bot(created.id) == created
    assert second.get_settings().auto_reconnect is False
