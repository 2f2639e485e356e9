# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Centralized default values for afkfleet."""

from __future__ import annotations

MANAGER_HOST = "localhost"
MANAGER_PORT = 3000
MANAGER_URL = f"http://{MANAGER_HOST}:{MANAGER_PORT}"

DEFAULT_PROTOCOL_CLIENT = "afkfleet.protocol.loopback:LoopbackClient"
