from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MessageType(str, Enum):
    """Three-character tags identifying each collector message schema."""

    INVITE_SENT = "ins"
    INVITE_RESPONSE = "inr"
    NOTIFICATION_SENT = "nts"
    NOTIFICATION_RESPONSE = "ntr"
    NOTIFICATION_EMAIL_SENT = "nes"
    NOTIFICATION_EMAIL_RESPONSE = "nei"
    STREAM_POST = "pst"
    STREAM_POST_RESPONSE = "psr"
    EVENT = "evt"
    APPLICATION_ADDED = "apa"
    APPLICATION_REMOVED = "apr"
    THIRD_PARTY_COMM_CLICK = "ucc"
    PAGE_REQUEST = "pgr"
    USER_INFORMATION = "cpu"
    GOAL_COUNT = "gci"
    REVENUE = "mtu"


# Sent messages carry a comma separated recipient list, responses a single uid.
SENT_MESSAGE_TYPES = frozenset({"ins", "nes", "nts"})
RESPONSE_MESSAGE_TYPES = frozenset({"inr", "psr", "nei", "ntr"})


def message_type_tag(message_type: MessageType | str) -> str:
    if isinstance(message_type, MessageType):
        return message_type.value
    return str(message_type)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: str) -> ValidationResult:
        if not reason:
            raise ValueError("reason must be a non-empty string")
        return cls(valid=False, reason=reason)

    def __bool__(self) -> bool:
        return self.valid
