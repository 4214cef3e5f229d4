from __future__ import annotations

from typing import Any


class BeaconError(Exception):
    """Base exception for ktbeacon."""
    pass


class ParameterValidationError(BeaconError):
    """Raised when an assembled parameter fails its validation rule."""

    def __init__(self, reason: str, *, message_type: str, param: str, value: Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.message_type = message_type
        self.param = param
        self.value = value


class TransportError(BeaconError):
    """Raised inside the transport when a beacon request fails."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url
