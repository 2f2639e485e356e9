# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Resolve the configured protocol client from a ``module:attribute`` path."""

from __future__ import annotations

import importlib

from afkfleet.errors import ConfigurationError
from afkfleet.protocol.base import ProtocolClient


def load_protocol_client(path: str) -> ProtocolClient:
    """Import and instantiate a protocol client.

    Args:
        path: ``package.module:Attribute`` where Attribute is a ProtocolClient
            subclass, a zero-argument factory, or an instance

    Raises:
        ConfigurationError: If the path cannot be imported or yields no client
    """
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"Protocol client must be 'module:attribute', got {path!r}")
    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load protocol client {path!r}: {e}") from e

    if isinstance(target, ProtocolClient):
        return target
    if not callable(target):
        raise ConfigurationError(f"{path!r} is not a ProtocolClient or factory")
    client = target()
    if not isinstance(client, ProtocolClient):
        raise ConfigurationError(f"{path!r} did not produce a ProtocolClient")
    return client
