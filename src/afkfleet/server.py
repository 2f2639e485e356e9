# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Fleet server.

Wires the document store, repository, protocol client, broadcaster and
registry together and exposes them through a REST API and a WebSocket
observer channel.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from afkfleet.api import bot_routes, control_routes, settings_routes
from afkfleet.broadcast import EVENT_STATUS, WebSocketBroadcaster
from afkfleet.errors import PersistenceError, ValidationError
from afkfleet.fleet import FleetRegistry
from afkfleet.logging import configure_logging, get_logger
from afkfleet.paths import validate_data_dir
from afkfleet.protocol.loader import load_protocol_client
from afkfleet.repository import ConfigRepository
from afkfleet.settings import Settings
from afkfleet.store.json_store import JsonFileStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from afkfleet.protocol.base import ProtocolClient
    from afkfleet.store.base import DocumentStore

logger = get_logger(__name__)


class FleetServer:
    """Process-scoped owner of the FleetRegistry and its HTTP app."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: DocumentStore | None = None,
        client: ProtocolClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        if store is None:
            store = JsonFileStore(validate_data_dir(self.settings.data_dir))
        self.broadcaster = WebSocketBroadcaster()
        self.fleet = FleetRegistry(
            ConfigRepository(store),
            client or load_protocol_client(self.settings.protocol_client),
            self.broadcaster,
            timings=self.settings.timings,
            history_capacity=self.settings.history_capacity,
            data_dir=self.settings.data_dir,
        )
        self.fleet.initialize()

        self.app = FastAPI(title="afkfleet", lifespan=self._lifespan)
        self.app.state.fleet = self.fleet
        self._setup_error_handlers()
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        logger.info("fleet_server_started", bots=len(self.fleet))
        try:
            yield
        finally:
            self.fleet.shutdown()

    def _setup_error_handlers(self) -> None:
        @self.app.exception_handler(ValidationError)
        async def validation_error_handler(request: Request, exc: ValidationError):
            return JSONResponse({"success": False, "error": str(exc)}, status_code=400)

        @self.app.exception_handler(PersistenceError)
        async def persistence_error_handler(request: Request, exc: PersistenceError):
            logger.error("persistence_error", path=request.url.path, error=str(exc))
            return JSONResponse({"success": False, "error": str(exc)}, status_code=500)

    def _setup_routes(self) -> None:
        self.app.include_router(bot_routes.router)
        self.app.include_router(control_routes.router)
        self.app.include_router(settings_routes.router)

        @self.app.websocket("/ws/fleet")
        async def websocket_endpoint(websocket: WebSocket):
            """Real-time status, log and auth-challenge events."""
            await websocket.accept()
            # Attach before the snapshot so no event fired meanwhile is missed.
            self.broadcaster.attach(websocket)
            try:
                for status in self.fleet.get_all_statuses():
                    await websocket.send_text(
                        self.broadcaster.encode(EVENT_STATUS, status.id, status.model_dump(mode="json"))
                    )
                while True:
                    await websocket.receive_text()
            except WebSocketDisconnect:
                pass
            except Exception as e:
                logger.error("websocket_error", error=str(e))
            finally:
                self.broadcaster.detach(websocket)

    async def run(self, host: str | None = None, port: int | None = None) -> None:
        """Run the HTTP server until interrupted."""
        host = host or self.settings.host
        port = port or self.settings.port
        logger.info("fleet_server_listening", host=host, port=port)
        config = uvicorn.Config(self.app, host=host, port=port, log_level="info")
        server = uvicorn.Server(config)
        await server.serve()


def main() -> None:
    settings = Settings()
    configure_logging(settings)
    asyncio.run(FleetServer(settings).run())


if __name__ == "__main__":
    main()
