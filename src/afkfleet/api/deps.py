# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""API dependencies: resolve the fleet and repository from app state."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from afkfleet.fleet import FleetRegistry
from afkfleet.repository import ConfigRepository


def get_fleet(request: Request) -> FleetRegistry:
    return request.app.state.fleet


def get_repository(request: Request) -> ConfigRepository:
    return request.app.state.fleet.repository


Fleet = Annotated[FleetRegistry, Depends(get_fleet)]
Repository = Annotated[ConfigRepository, Depends(get_repository)]
