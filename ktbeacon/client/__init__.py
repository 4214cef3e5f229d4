"""Client facade and session state."""

from .client import BeaconClient
from .session import SessionState

__all__ = ["BeaconClient", "SessionState"]
