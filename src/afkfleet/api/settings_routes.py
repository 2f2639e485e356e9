# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Global settings and server profile API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from afkfleet.api.deps import Fleet, Repository
from afkfleet.models import ServerProfileCreate

router = APIRouter(tags=["settings"])


def _profile_not_found(profile_id: str) -> JSONResponse:
    return JSONResponse(
        {"success": False, "message": f"Server profile {profile_id} not found"},
        status_code=404,
    )


@router.get("/settings")
async def get_settings(repository: Repository):
    return repository.get_settings().model_dump(mode="json")


@router.post("/settings")
async def update_settings(repository: Repository, updates: dict[str, Any] = Body(...)):
    return repository.update_settings(updates).model_dump(mode="json")


@router.get("/servers")
async def list_servers(repository: Repository):
    servers = repository.list_servers()
    return [
        {**server.model_dump(mode="json"), "assigned_bots": repository.count_bots_on_server(server.id)}
        for server in servers
    ]


@router.post("/servers", status_code=201)
async def create_server(request: ServerProfileCreate, repository: Repository):
    return repository.create_server(request).model_dump(mode="json")


@router.patch("/servers/{profile_id}")
async def update_server(profile_id: str, repository: Repository, updates: dict[str, Any] = Body(...)):
    profile = repository.update_server(profile_id, updates)
    if profile is None:
        return _profile_not_found(profile_id)
    return profile.model_dump(mode="json")


@router.delete("/servers/{profile_id}")
async def delete_server(profile_id: str, fleet: Fleet):
    if not fleet.delete_server_profile(profile_id):
        return _profile_not_found(profile_id)
    return {"success": True, "message": "Server profile deleted."}
