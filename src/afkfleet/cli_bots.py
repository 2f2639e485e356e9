# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""CLI for driving a running fleet server.

Integrates into the main afkfleet CLI as `afkfleet bots <cmd>` and
`afkfleet settings <cmd>`.
"""

from __future__ import annotations

from typing import Any

import click
import httpx
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from afkfleet.defaults import MANAGER_URL
from afkfleet.models import LogEntry

console = Console()

_LIFECYCLE_STYLES = {
    "online": "green",
    "connecting": "yellow",
    "auth_pending": "magenta",
    "reconnecting": "yellow",
    "offline": "dim",
}

_CATEGORY_STYLES = {
    "error": "red",
    "warning": "yellow",
    "action": "magenta",
    "chat": "cyan",
    "output": "blue",
}


def _request(method: str, url: str, path: str, **kwargs: Any) -> dict | list | None:
    """Send a request and print any error. Returns parsed JSON on 2xx."""
    try:
        response = httpx.request(method, f"{url}{path}", timeout=10, **kwargs)
    except httpx.HTTPError as e:
        console.print(f"[red]Error: cannot reach {url}: {e}")
        return None
    try:
        data = response.json()
    except ValueError:
        data = {}
    if response.is_success:
        return data
    message = None
    if isinstance(data, dict):
        message = data.get("error") or data.get("message") or data.get("detail")
    console.print(f"[red]Error ({response.status_code}): {message or 'Unknown'}")
    return None


def _print_result(data: dict | list | None) -> None:
    if isinstance(data, dict):
        message = data.get("message") or "ok"
        mark = "[green]✓[/green]" if data.get("success", True) else "[yellow]![/yellow]"
        console.print(f"{mark} {message}")


def list_impl(url: str = MANAGER_URL, owner: str | None = None) -> None:
    data = _request("GET", url, "/bots", params={"owner": owner} if owner else None)
    if data is None:
        return
    if not data:
        console.print("[dim]No bots configured.")
        return
    table = Table(title="Bots", show_header=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Server")
    table.add_column("State")
    table.add_column("User")
    table.add_column("Uptime", justify="right")
    table.add_column("HP", justify="right")
    table.add_column("Food", justify="right")
    table.add_column("Position")
    table.add_column("AFK")
    for bot in data:
        style = _LIFECYCLE_STYLES.get(bot["lifecycle"], "white")
        server = bot["server"]
        table.add_row(
            str(bot["id"]),
            escape(bot["name"]),
            f"{server['host']}:{server['port']}",
            f"[{style}]{bot['lifecycle']}[/{style}]",
            bot["username"],
            bot["uptime"],
            str(bot["health"]),
            str(bot["food"]),
            bot["position"],
            "yes" if bot["idle_active"] else "",
        )
    console.print(table)


def add_impl(
    url: str,
    *,
    name: str | None,
    host: str | None,
    port: int,
    version: str,
    email: str,
    server_profile: str | None,
) -> None:
    payload = {
        "name": name,
        "host": host,
        "port": port,
        "version": version,
        "email": email,
        "server_profile": server_profile,
    }
    data = _request("POST", url, "/bots", json=payload)
    if isinstance(data, dict):
        console.print(f"[green]✓[/green] Created bot [cyan]{data['id']}[/cyan] ({data['name']})")


def logs_impl(url: str, bot_id: int, count: int) -> None:
    data = _request("GET", url, f"/bots/{bot_id}/logs", params={"count": count})
    if not isinstance(data, dict):
        return
    for raw in data["entries"]:
        entry = LogEntry.model_validate(raw)
        console.print(entry.render(), style=_CATEGORY_STYLES.get(entry.category), markup=False, highlight=False)


@click.group("bots")
def bots_commands() -> None:
    """Manage bots on a running fleet server."""


_url_option = click.option("--url", default=MANAGER_URL, show_default=True, help="Fleet server URL.")


@bots_commands.command("list")
@_url_option
@click.option("--owner", default=None, help="Only bots assigned to this user.")
def list_cmd(url: str, owner: str | None) -> None:
    """Show the status of every bot."""
    list_impl(url, owner)


@bots_commands.command("add")
@_url_option
@click.option("--name", default=None)
@click.option("--host", default=None, help="Server address (optional with --server-profile).")
@click.option("--port", type=int, default=25565, show_default=True)
@click.option("--version", "version", default="1.20.4", show_default=True, help="Game version or 'auto'.")
@click.option("--email", default="", help="Account email used to log in.")
@click.option("--server-profile", default=None)
def add_cmd(
    url: str,
    name: str | None,
    host: str | None,
    port: int,
    version: str,
    email: str,
    server_profile: str | None,
) -> None:
    """Create a bot."""
    add_impl(url, name=name, host=host, port=port, version=version, email=email, server_profile=server_profile)


@bots_commands.command("remove")
@_url_option
@click.argument("bot_id", type=int)
def remove_cmd(url: str, bot_id: int) -> None:
    """Stop and delete a bot."""
    _print_result(_request("DELETE", url, f"/bots/{bot_id}"))


@bots_commands.command("start")
@_url_option
@click.argument("bot_id", type=int)
def start_cmd(url: str, bot_id: int) -> None:
    _print_result(_request("POST", url, f"/bots/{bot_id}/start"))


@bots_commands.command("stop")
@_url_option
@click.argument("bot_id", type=int)
def stop_cmd(url: str, bot_id: int) -> None:
    _print_result(_request("POST", url, f"/bots/{bot_id}/stop"))


@bots_commands.command("restart")
@_url_option
@click.argument("bot_id", type=int)
def restart_cmd(url: str, bot_id: int) -> None:
    _print_result(_request("POST", url, f"/bots/{bot_id}/restart"))


@bots_commands.command("afk")
@_url_option
@click.argument("bot_id", type=int)
@click.argument("state", type=click.Choice(["on", "off"]))
def afk_cmd(url: str, bot_id: int, state: str) -> None:
    """Turn AFK mode on or off."""
    _print_result(_request("POST", url, f"/bots/{bot_id}/afk", json={"enabled": state == "on"}))


@bots_commands.command("say")
@_url_option
@click.argument("bot_id", type=int)
@click.argument("message")
def say_cmd(url: str, bot_id: int, message: str) -> None:
    """Send a chat message or command."""
    _print_result(_request("POST", url, f"/bots/{bot_id}/command", json={"command": message}))


@bots_commands.command("logs")
@_url_option
@click.argument("bot_id", type=int)
@click.option("-n", "--count", type=int, default=100, show_default=True)
def logs_cmd(url: str, bot_id: int, count: int) -> None:
    """Print a bot's console history."""
    logs_impl(url, bot_id, count)


@click.group("settings")
def settings_commands() -> None:
    """Fleet-wide settings."""


@settings_commands.command("show")
@_url_option
def settings_show(url: str) -> None:
    data = _request("GET", url, "/settings")
    if isinstance(data, dict):
        for key, value in sorted(data.items()):
            console.print(f"  {key}: [cyan]{value}[/cyan]")


@settings_commands.command("auto-reconnect")
@_url_option
@click.argument("state", type=click.Choice(["on", "off"]))
def settings_auto_reconnect(url: str, state: str) -> None:
    """Enable or disable automatic reconnects."""
    data = _request("POST", url, "/settings", json={"auto_reconnect": state == "on"})
    if isinstance(data, dict):
        console.print(f"[green]✓[/green] auto_reconnect = {data['auto_reconnect']}")
