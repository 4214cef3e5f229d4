"""Per-parameter validation rules for collector messages.

Each short parameter name maps to exactly one rule. A few rules also look at
the message type, e.g. ``r`` is a recipient list on sent messages but a single
uid on responses, and ``u`` is a page address on page requests.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from typing import Any

from ktbeacon.core.messages import (
    RESPONSE_MESSAGE_TYPES,
    SENT_MESSAGE_TYPES,
    MessageType,
    ValidationResult,
    message_type_tag,
)

Rule = Callable[[str, Any], ValidationResult]

_RECIPIENT_LIST_RE = re.compile(r"[0-9]+(,[0-9]+)*")
_TRACKING_TAG_RE = re.compile(r"[A-Fa-f0-9]{16}")
_SHORT_TRACKING_TAG_RE = re.compile(r"[A-Fa-f0-9]{8}")
_INSTALL_FLAG_RE = re.compile(r"[01]")
_NAME_RE = re.compile(r"[A-Za-z0-9_-]{1,32}")
_COUNTRY_RE = re.compile(r"[A-Z]{2}")
_IP_RE = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}(\.\d{1,3})?")

_GENDERS = frozenset({"m", "f", "u"})
_GOAL_COUNT_LIMIT = 16384

_TYPE_RULES: dict[str, tuple[frozenset[str], str]] = {
    "mtu": (
        frozenset({"direct", "indirect", "advertisement", "credits", "other"}),
        "Invalid monetization type.",
    ),
    "pst": (
        frozenset({"feedpub", "stream", "feedstory", "multifeedstory", "dashboard_activity", "dashboard_globalnews"}),
        "Invalid stream post/response type.",
    ),
    "ucc": (
        frozenset({"ad", "partner"}),
        "Invalid third party communication click type.",
    ),
}
_TYPE_RULES["psr"] = _TYPE_RULES["pst"]


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _matches(pattern: re.Pattern[str], value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    return pattern.fullmatch(str(value)) is not None


def _check(condition: bool, reason: str) -> ValidationResult:
    return ValidationResult.ok() if condition else ValidationResult.invalid(reason)


def _always_valid(message_type: str, value: Any) -> ValidationResult:
    del message_type, value
    return ValidationResult.ok()


def _validate_user_id(message_type: str, value: Any) -> ValidationResult:
    return _check(_is_number(value), "Invalid user id.")


def _validate_recipients(message_type: str, value: Any) -> ValidationResult:
    if message_type in SENT_MESSAGE_TYPES:
        return _check(_matches(_RECIPIENT_LIST_RE, value), "Invalid recipient user id.")
    if message_type in RESPONSE_MESSAGE_TYPES:
        return _check(_is_number(value), "Invalid recipient user id.")
    return ValidationResult.invalid("Invalid recipient user id.")


def _validate_tracking_tag(message_type: str, value: Any) -> ValidationResult:
    if message_type == MessageType.PAGE_REQUEST.value:
        # page requests reuse "u" for the page address
        return ValidationResult.ok()
    return _check(_matches(_TRACKING_TAG_RE, value), "Invalid unique tracking tag.")


def _validate_short_tracking_tag(message_type: str, value: Any) -> ValidationResult:
    return _check(_matches(_SHORT_TRACKING_TAG_RE, value), "Invalid short unique tracking tag.")


def _validate_install_flag(message_type: str, value: Any) -> ValidationResult:
    return _check(_matches(_INSTALL_FLAG_RE, value), "Invalid isAppInstalled value.")


def _validate_event_name(message_type: str, value: Any) -> ValidationResult:
    return _check(_matches(_NAME_RE, value), "Invalid event name value.")


def _validate_subtype(message_type: str, value: Any) -> ValidationResult:
    return _check(_matches(_NAME_RE, value), "Invalid subtype value.")


def _validate_birth_year(message_type: str, value: Any) -> ValidationResult:
    return _check(_is_number(value) and 1900 < value < 2011, "Invalid birth year.")


def _validate_gender(message_type: str, value: Any) -> ValidationResult:
    return _check(isinstance(value, str) and value in _GENDERS, "Invalid gender.")


def _validate_country(message_type: str, value: Any) -> ValidationResult:
    return _check(isinstance(value, str) and _matches(_COUNTRY_RE, value), "Invalid country value.")


def _validate_friend_count(message_type: str, value: Any) -> ValidationResult:
    return _check(_is_number(value) and value >= 0, "Invalid friend count.")


def _validate_goal_count(message_type: str, value: Any) -> ValidationResult:
    in_range = _is_number(value) and -_GOAL_COUNT_LIMIT < value < _GOAL_COUNT_LIMIT
    return _check(in_range, "Invalid goal count value.")


def _validate_value(message_type: str, value: Any) -> ValidationResult:
    return _check(_is_number(value), "Invalid value.")


def _validate_level(message_type: str, value: Any) -> ValidationResult:
    return _check(_is_number(value) and value >= 0, "Invalid level value.")


def _validate_ip(message_type: str, value: Any) -> ValidationResult:
    return _check(isinstance(value, str) and _matches(_IP_RE, value), "Invalid IP address value.")


def _validate_type(message_type: str, value: Any) -> ValidationResult:
    rule = _TYPE_RULES.get(message_type)
    if rule is None:
        return ValidationResult.ok()
    allowed, reason = rule
    return _check(isinstance(value, str) and value in allowed, reason)


def _validate_timestamp(message_type: str, value: Any) -> ValidationResult:
    return _check(_is_number(value), "Invalid timestamp.")


RULES: dict[str, Rule] = {
    "s": _validate_user_id,
    "r": _validate_recipients,
    "u": _validate_tracking_tag,
    "su": _validate_short_tracking_tag,
    "i": _validate_install_flag,
    "n": _validate_event_name,
    "st1": _validate_subtype,
    "st2": _validate_subtype,
    "st3": _validate_subtype,
    "b": _validate_birth_year,
    "g": _validate_gender,
    "lc": _validate_country,
    "f": _validate_friend_count,
    "gc1": _validate_goal_count,
    "gc2": _validate_goal_count,
    "gc3": _validate_goal_count,
    "gc4": _validate_goal_count,
    "v": _validate_value,
    "l": _validate_level,
    "ip": _validate_ip,
    "tu": _validate_type,
    "data": _always_valid,
    "sdk": _always_valid,
    # postal code and state are accepted by the collector but not checked
    "lp": _always_valid,
    "ls": _always_valid,
    "ts": _validate_timestamp,
}


def validate_parameter(message_type: MessageType | str, name: str, value: Any) -> ValidationResult:
    """Validate a single parameter of a message."""
    rule = RULES.get(name)
    if rule is None:
        return ValidationResult.invalid(f"Unknown parameter '{name}'.")
    return rule(message_type_tag(message_type), value)


def validate_parameters(
    message_type: MessageType | str,
    params: Mapping[str, Any],
) -> tuple[str | None, ValidationResult]:
    """Validate every parameter in order, stopping at the first rejection.

    Returns ``(name, result)`` for the first invalid parameter, or
    ``(None, ValidationResult.ok())`` when everything passed.
    """
    for name, value in params.items():
        result = validate_parameter(message_type, name, value)
        if not result:
            return name, result
    return None, ValidationResult.ok()
