from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SessionState:
    """Per-client session flags. One client instance is one logical session."""

    has_sent_message: bool = False

    def claim_first_send(self) -> bool:
        """Return True exactly once: on the first send attempt of the session."""
        if self.has_sent_message:
            return False
        self.has_sent_message = True
        return True
