# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Bot configuration API routes (create, read, update, delete, assign)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from afkfleet.api.deps import Fleet
from afkfleet.models import BotCreate, ControlResult

router = APIRouter(tags=["bots"])


class AssignProfileRequest(BaseModel):
    profile_id: str | None = None
    apply_profile: bool = False


class OwnerRequest(BaseModel):
    owner: str | None = None


def _not_found(bot_id: int) -> JSONResponse:
    return JSONResponse(ControlResult.not_found(bot_id).model_dump(), status_code=404)


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.get("/bots")
async def list_bots(fleet: Fleet, owner: str | None = None):
    return [status.model_dump(mode="json") for status in fleet.get_all_statuses(owner=owner)]


@router.post("/bots", status_code=201)
async def create_bot(request: BotCreate, fleet: Fleet, owner: str | None = None):
    config = fleet.create(request, owner=owner)
    return config.model_dump(mode="json")


@router.get("/bots/{bot_id}")
async def get_bot(bot_id: int, fleet: Fleet):
    config = fleet.repository.get_bot(bot_id)
    if config is None:
        return _not_found(bot_id)
    return config.model_dump(mode="json")


@router.patch("/bots/{bot_id}")
async def update_bot(bot_id: int, fleet: Fleet, updates: dict[str, Any] = Body(...)):
    config = fleet.update_config(bot_id, updates)
    if config is None:
        return _not_found(bot_id)
    return config.model_dump(mode="json")


@router.delete("/bots/{bot_id}")
async def delete_bot(bot_id: int, fleet: Fleet):
    if not fleet.delete(bot_id):
        return _not_found(bot_id)
    return ControlResult.ok("Bot deleted.").model_dump()


@router.post("/bots/{bot_id}/server-profile")
async def assign_server_profile(bot_id: int, request: AssignProfileRequest, fleet: Fleet):
    config = fleet.assign_server_profile(bot_id, request.profile_id, apply_profile=request.apply_profile)
    if config is None:
        return _not_found(bot_id)
    return config.model_dump(mode="json")


@router.post("/bots/{bot_id}/owner")
async def assign_owner(bot_id: int, request: OwnerRequest, fleet: Fleet):
    config = fleet.assign_owner(bot_id, request.owner)
    if config is None:
        return _not_found(bot_id)
    return config.model_dump(mode="json")
