# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Application settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from afkfleet.constants import (
    DEFAULT_HISTORY_CAPACITY,
    IDLE_INTERVAL_S,
    IDLE_JUMP_PROBABILITY,
    IDLE_JUMP_PULSE_S,
    RECONNECT_DELAY_S,
    RESTART_DELAY_S,
    UPTIME_LOG_INTERVAL_S,
)
from afkfleet.defaults import DEFAULT_PROTOCOL_CLIENT, MANAGER_HOST, MANAGER_PORT
from afkfleet.paths import default_data_dir


class SupervisorTimings(BaseModel):
    """Delays and intervals used by each session supervisor."""

    reconnect_delay_s: float = Field(default=RECONNECT_DELAY_S, ge=0)
    restart_delay_s: float = Field(default=RESTART_DELAY_S, ge=0)
    uptime_log_interval_s: float = Field(default=UPTIME_LOG_INTERVAL_S, gt=0)
    idle_interval_s: float = Field(default=IDLE_INTERVAL_S, gt=0)
    idle_jump_probability: float = Field(default=IDLE_JUMP_PROBABILITY, ge=0, le=1)
    idle_jump_pulse_s: float = Field(default=IDLE_JUMP_PULSE_S, ge=0)


class Settings(BaseSettings):
    data_dir: Path = Field(default_factory=default_data_dir)
    log_level: str = "WARNING"
    host: str = MANAGER_HOST
    port: int = MANAGER_PORT
    protocol_client: str = DEFAULT_PROTOCOL_CLIENT
    history_capacity: int = Field(default=DEFAULT_HISTORY_CAPACITY, gt=0)
    timings: SupervisorTimings = Field(default_factory=SupervisorTimings)

    model_config = SettingsConfigDict(
        env_prefix="AFKFLEET_",
        env_nested_delimiter="__",
        extra="ignore",
    )
