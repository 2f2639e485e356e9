# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception hierarchy for fleet operations."""


class FleetError(Exception):
    """Base exception for fleet operations."""

    pass


class ConfigurationError(FleetError):
    """Bot configuration is unusable (e.g. no account set)."""

    pass


class ConnectError(FleetError):
    """Transport or handshake failure while connecting."""

    pass


class ProtocolError(FleetError):
    """Error reported by the protocol client for a live session."""

    pass


class Kicked(ProtocolError):
    """The server kicked the session."""

    pass


class PersistenceError(FleetError):
    """The document store failed to read or write."""

    pass


class ValidationError(FleetError):
    """Caller input failed validation."""

    pass
