# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for FleetRegistry: registration, config updates and control verbs."""

from __future__ import annotations

import pytest

from afkfleet.errors import PersistenceError, ValidationError
from afkfleet.fleet import FleetRegistry
from afkfleet.models import BotConfig, Lifecycle
from afkfleet.repository import ConfigRepository
from afkfleet.store.memory import MemoryStore


class FailingSaveStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def save(self, kind, key, value):
        if self.fail and kind == "bots":
            raise PersistenceError("disk full")
        super().save(kind, key, value)


class FailingDeleteStore(MemoryStore):
    def delete(self, kind, key):
        if kind == "bots":
            raise PersistenceError("read-only filesystem")
        return super().delete(kind, key)


def _create(fleet: FleetRegistry, name: str = "Alpha", **extra) -> BotConfig:
    data = {"name": name, "host": "play.example.net", "email": f"{name.lower()}@example.com", **extra}
    return fleet.create(data)


def test_initialize_is_idempotent(repository, client, broadcaster) -> None:
    repository.add_bot({"name": "A", "host": "h1"})
    repository.add_bot({"name": "B", "host": "h2"})
    fleet = FleetRegistry(repository, client, broadcaster)

    assert fleet.initialize() == 2
    assert fleet.initialize() == 0
    assert len(fleet) == 2
    assert 1 in fleet and 2 in fleet


def test_initialize_with_explicit_configs(fleet) -> None:
    configs = [BotConfig(id=5, name="Five"), BotConfig(id=3, name="Three")]

    assert fleet.initialize(configs) == 2
    assert [s.id for s in fleet.get_all_statuses()] == [3, 5]


def test_initialize_restores_history(repository, client, broadcaster, store) -> None:
    repository.add_bot({"name": "A", "host": "h"})
    store.save("history", "1", [{"timestamp": 1.0, "message": "old line", "category": "info"}])
    fleet = FleetRegistry(repository, client, broadcaster)
    fleet.initialize()

    assert [e.message for e in fleet.get_log_history(1)] == ["old line"]


def test_create_assigns_sequential_ids(fleet, broadcaster) -> None:
    first = _create(fleet, "Alpha")
    second = _create(fleet, "Bravo")

    assert (first.id, second.id) == (1, 2)
    assert second.id in fleet
    assert broadcaster.statuses[-1][0] == 2


def test_create_defaults_name_and_server(fleet) -> None:
    config = fleet.create({"host": "mc.example.org"})

    assert config.name == "Bot 1"
    assert config.server.port == 25565
    assert config.server.version == "1.20.4"
    assert config.account.email == ""


def test_create_without_host_is_rejected(fleet) -> None:
    with pytest.raises(ValidationError):
        fleet.create({"name": "NoHost"})

    assert len(fleet) == 0


def test_create_persistence_failure_registers_nothing(client, broadcaster) -> None:
    store = FailingSaveStore()
    fleet = FleetRegistry(ConfigRepository(store), client, broadcaster)
    store.fail = True

    with pytest.raises(PersistenceError):
        fleet.create({"name": "A", "host": "h"})

    assert len(fleet) == 0
    assert fleet.get_all_statuses() == []


def test_delete_removes_everything(fleet, repository, store) -> None:
    config = _create(fleet)
    fleet.get(config.id).log("hello")

    assert fleet.delete(config.id) is True

    assert config.id not in fleet
    assert repository.get_bot(config.id) is None
    assert store.load("history", str(config.id)) is None
    assert fleet.delete(config.id) is False


def test_delete_persistence_failure_keeps_bot(client, broadcaster) -> None:
    store = FailingDeleteStore()
    repository = ConfigRepository(store)
    fleet = FleetRegistry(repository, client, broadcaster)
    config = _create(fleet)
    fleet.get(config.id).log("hello")

    with pytest.raises(PersistenceError):
        fleet.delete(config.id)

    assert config.id in fleet
    assert repository.get_bot(config.id) == config
    assert [e.message for e in fleet.get_log_history(config.id)] == ["hello"]
    assert store.load("history", str(config.id)) is not None


@pytest.mark.asyncio
async def test_delete_stops_running_session(fleet, client) -> None:
    config = _create(fleet)
    fleet.start(config.id)
    session = client.last

    fleet.delete(config.id)

    assert session.quit_calls == 1


def test_update_config_merges_nested_fields(fleet, repository) -> None:
    config = _create(fleet)

    fleet.update_config(config.id, {"server": {"port": 1}})
    updated = fleet.update_config(config.id, {"account": {"email": "a@b.com"}})

    assert updated.server.host == "play.example.net"
    assert updated.server.port == 1
    assert updated.account.email == "a@b.com"
    assert updated.name == "Alpha"
    assert repository.get_bot(config.id) == updated
    assert fleet.get(config.id).config == updated


def test_update_config_ignores_id(fleet) -> None:
    config = _create(fleet)

    updated = fleet.update_config(config.id, {"id": 99, "name": "Renamed"})

    assert updated.id == config.id
    assert updated.name == "Renamed"


def test_update_config_unknown_bot(fleet) -> None:
    assert fleet.update_config(42, {"name": "x"}) is None


def test_update_config_invalid_value(fleet) -> None:
    config = _create(fleet)

    with pytest.raises(ValidationError):
        fleet.update_config(config.id, {"server": {"port": "not-a-port"}})


@pytest.mark.parametrize("verb", ["start", "stop", "restart", "start_idle", "stop_idle"])
def test_control_verbs_on_unknown_bot(fleet, verb: str) -> None:
    result = getattr(fleet, verb)(404)

    assert result.success is False
    assert result.message == "Bot 404 not found"


def test_queries_on_unknown_bot(fleet) -> None:
    assert fleet.get_status(404) is None
    assert fleet.get_log_history(404) == []
    assert fleet.clear_history(404) is False
    assert fleet.chat(404, "hi").success is False


@pytest.mark.asyncio
async def test_start_and_stop_results(fleet) -> None:
    config = _create(fleet)

    started = fleet.start(config.id)
    again = fleet.start(config.id)
    stopped = fleet.stop(config.id)

    assert started.success is True
    assert again.success is False
    assert again.message == "Bot is already running."
    assert stopped.success is True
    assert fleet.get_status(config.id).lifecycle == Lifecycle.OFFLINE


@pytest.mark.asyncio
async def test_start_without_credential_reports_failure(fleet, client) -> None:
    config = fleet.create({"name": "NoCred", "host": "h"})

    result = fleet.start(config.id)

    assert result.success is False
    assert client.connect_count == 0


@pytest.mark.asyncio
async def test_set_idle_requires_world(fleet, client, settle) -> None:
    config = _create(fleet)
    assert fleet.set_idle(config.id, True).success is False

    fleet.start(config.id)
    client.last.login_and_spawn()
    await settle()

    assert fleet.set_idle(config.id, True).success is True
    assert fleet.get_status(config.id).idle_active is True
    assert fleet.set_idle(config.id, False).message == "AFK mode stopped."
    fleet.stop(config.id)


@pytest.mark.asyncio
async def test_chat_rules(fleet, client) -> None:
    config = _create(fleet)

    assert fleet.chat(config.id, "hello").message == "Bot is not connected."
    fleet.start(config.id)
    assert fleet.chat(config.id, "   ").success is False
    assert fleet.chat(config.id, "hello").success is True
    assert client.last.chats == ["hello"]
    fleet.stop(config.id)


def test_get_all_statuses_filters_by_owner(fleet) -> None:
    fleet.create({"name": "Mine", "host": "h"}, owner="alice")
    fleet.create({"name": "Theirs", "host": "h"}, owner="bob")
    fleet.create({"name": "Nobody", "host": "h"})

    assert [s.name for s in fleet.get_all_statuses()] == ["Mine", "Theirs", "Nobody"]
    assert [s.name for s in fleet.get_all_statuses(owner="alice")] == ["Mine"]


def test_assign_owner(fleet, repository) -> None:
    config = _create(fleet)

    fleet.assign_owner(config.id, "carol")

    assert repository.bots_for_owner("carol")[0].id == config.id
    assert fleet.unassign_owner(config.id).assigned_to is None
    assert repository.bots_for_owner("carol") == []


def test_log_history_and_clear(fleet) -> None:
    config = _create(fleet)
    supervisor = fleet.get(config.id)
    for i in range(150):
        supervisor.log(f"line {i}")

    assert len(fleet.get_log_history(config.id)) == 100
    assert fleet.get_log_history(config.id, 2)[-1].message == "line 149"
    assert fleet.clear_history(config.id) is True
    assert fleet.get_log_history(config.id) == []


def test_server_profile_assignment_and_deletion(fleet, repository) -> None:
    profile = repository.create_server({"name": "Hub", "host": "hub.example.net", "port": 25570})
    config = _create(fleet)

    assigned = fleet.assign_server_profile(config.id, profile.id, apply_profile=True)
    assert assigned.server_profile == profile.id
    assert fleet.get(config.id).config.server.host == "hub.example.net"

    assert fleet.delete_server_profile(profile.id) is True
    assert fleet.get(config.id).config.server_profile is None
    assert fleet.delete_server_profile(profile.id) is False


@pytest.mark.asyncio
async def test_shutdown_stops_all(fleet, client) -> None:
    a = _create(fleet, "Alpha")
    b = _create(fleet, "Bravo")
    fleet.start(a.id)
    fleet.start(b.id)

    fleet.shutdown()

    assert all(s.quit_calls == 1 for s in client.sessions)
    assert {s.lifecycle for s in fleet.get_all_statuses()} == {Lifecycle.OFFLINE}
