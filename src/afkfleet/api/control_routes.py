# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Bot control API routes.

One endpoint per verb, keyed by bot id. Unknown ids answer 404 with
``success: false`` instead of raising.
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from afkfleet.api.deps import Fleet
from afkfleet.constants import DEFAULT_HISTORY_CAPACITY, DEFAULT_HISTORY_READ
from afkfleet.models import ControlResult

router = APIRouter(tags=["control"])


class AfkRequest(BaseModel):
    enabled: bool


class CommandRequest(BaseModel):
    command: str


def _respond(fleet: Fleet, bot_id: int, result: ControlResult):
    if bot_id not in fleet:
        return JSONResponse(result.model_dump(), status_code=404)
    return result.model_dump()


@router.post("/bots/{bot_id}/start")
async def start_bot(bot_id: int, fleet: Fleet):
    return _respond(fleet, bot_id, fleet.start(bot_id))


@router.post("/bots/{bot_id}/stop")
async def stop_bot(bot_id: int, fleet: Fleet):
    return _respond(fleet, bot_id, fleet.stop(bot_id))


@router.post("/bots/{bot_id}/restart")
async def restart_bot(bot_id: int, fleet: Fleet):
    return _respond(fleet, bot_id, fleet.restart(bot_id))


@router.post("/bots/{bot_id}/afk")
async def set_afk(bot_id: int, request: AfkRequest, fleet: Fleet):
    return _respond(fleet, bot_id, fleet.set_idle(bot_id, request.enabled))


@router.post("/bots/{bot_id}/command")
async def send_command(bot_id: int, request: CommandRequest, fleet: Fleet):
    return _respond(fleet, bot_id, fleet.chat(bot_id, request.command))


@router.get("/bots/{bot_id}/status")
async def bot_status(bot_id: int, fleet: Fleet):
    status = fleet.get_status(bot_id)
    if status is None:
        return JSONResponse(ControlResult.not_found(bot_id).model_dump(), status_code=404)
    return status.model_dump(mode="json")


@router.get("/bots/{bot_id}/logs")
async def bot_logs(
    bot_id: int,
    fleet: Fleet,
    count: int = Query(default=DEFAULT_HISTORY_READ, ge=1, le=DEFAULT_HISTORY_CAPACITY),
):
    if bot_id not in fleet:
        return JSONResponse({**ControlResult.not_found(bot_id).model_dump(), "entries": []}, status_code=404)
    entries = fleet.get_log_history(bot_id, count)
    return {"entries": [entry.model_dump(mode="json") for entry in entries]}


@router.delete("/bots/{bot_id}/logs")
async def clear_logs(bot_id: int, fleet: Fleet):
    if not fleet.clear_history(bot_id):
        return JSONResponse(ControlResult.not_found(bot_id).model_dump(), status_code=404)
    return ControlResult.ok("Console history cleared.").model_dump()
