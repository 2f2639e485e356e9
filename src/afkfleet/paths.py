# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Filesystem paths for persisted fleet data."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_data_dir

ENV_DATA_DIR = "AFKFLEET_DATA_DIR"


def default_data_dir() -> Path:
    """Get the default data directory."""
    env_root = os.getenv(ENV_DATA_DIR)
    if env_root:
        return Path(env_root)
    return Path(user_data_dir("afkfleet", "afkfleet"))


def validate_data_dir(data_dir: Path) -> Path:
    """Create the data directory if needed and return it."""
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def profiles_dir(data_dir: Path, bot_id: int) -> Path:
    """Per-bot auth cache directory handed to the protocol client."""
    return data_dir / "auth-cache" / f"bot-{bot_id}"
