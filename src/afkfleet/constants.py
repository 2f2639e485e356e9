# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Shared constants for afkfleet."""

from __future__ import annotations

# Supervisor timings (seconds)
RECONNECT_DELAY_S = 10.0
RESTART_DELAY_S = 2.0
UPTIME_LOG_INTERVAL_S = 60.0

# Idle (AFK) loop
IDLE_INTERVAL_S = 5.0
IDLE_JUMP_PROBABILITY = 0.2
IDLE_JUMP_PULSE_S = 0.5

# Log history
DEFAULT_HISTORY_CAPACITY = 1000
DEFAULT_HISTORY_READ = 100

# New bot defaults
DEFAULT_GAME_PORT = 25565
DEFAULT_GAME_VERSION = "1.20.4"
AUTO_VERSION = "auto"
DEFAULT_AUTH_MODE = "microsoft"

# Placeholder for telemetry when no live entity exists
NO_VALUE = "-"
NO_USERNAME = "N/A"

# Store kinds
KIND_BOTS = "bots"
KIND_SETTINGS = "settings"
KIND_SERVERS = "servers"
KIND_HISTORY = "history"
GLOBAL_SETTINGS_KEY = "global"

# Broadcast
BROADCAST_SEND_TIMEOUT_S = 5.0
