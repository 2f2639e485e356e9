# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from afkfleet import __version__
from afkfleet.cli_bots import bots_commands, settings_commands
from afkfleet.logging import configure_logging
from afkfleet.settings import Settings


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="afkfleet")
def cli() -> None:
    """afkfleet command line interface."""


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (default from AFKFLEET_HOST).")
@click.option("--port", type=int, default=None, help="Bind port (default from AFKFLEET_PORT).")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Where bot configs, settings and console history are stored.",
)
@click.option("--log-level", default=None, help="structlog level (e.g. INFO, DEBUG).")
@click.option("--protocol-client", default=None, help="Protocol client as 'module:attribute'.")
def serve(
    host: str | None,
    port: int | None,
    data_dir: Path | None,
    log_level: str | None,
    protocol_client: str | None,
) -> None:
    """Run the fleet server (REST API + WebSocket events)."""
    from afkfleet.errors import ConfigurationError
    from afkfleet.server import FleetServer

    overrides = {
        key: value
        for key, value in {
            "data_dir": data_dir,
            "log_level": log_level,
            "protocol_client": protocol_client,
        }.items()
        if value is not None
    }
    settings = Settings(**overrides)
    configure_logging(settings)
    try:
        server = FleetServer(settings)
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint="--protocol-client") from e
    asyncio.run(server.run(host, port))


cli.add_command(bots_commands, name="bots")
cli.add_command(settings_commands, name="settings")


def main() -> None:
    cli.main()


if __name__ == "__main__":
    main()
