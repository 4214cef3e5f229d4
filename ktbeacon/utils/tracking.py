"""Tracking tag helpers.

Tags correlate a chain of messages (invite sent, invite response, application
added). They are random, never stored, and only checked for format.
"""

from __future__ import annotations

import secrets


def random_hex_block() -> str:
    """Return four random lowercase hex characters."""
    return f"{secrets.randbelow(0x10000):04x}"


def generate_tracking_tag() -> str:
    """Return a 16-character unique tracking tag."""
    return "".join(random_hex_block() for _ in range(4))


def generate_short_tracking_tag() -> str:
    """Return an 8-character short unique tracking tag."""
    return "".join(random_hex_block() for _ in range(2))
