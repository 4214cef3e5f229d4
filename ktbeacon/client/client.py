"""Beacon client: maps tracking calls onto collector messages."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ktbeacon.client.session import SessionState
from ktbeacon.core.errors import ParameterValidationError
from ktbeacon.core.messages import MessageType, message_type_tag
from ktbeacon.defaults.config import (
    BASE_API_URL,
    BASE_HTTPS_API_URL,
    BASE_TEST_SERVER_URL,
    DEFAULT_CLIENT_CONFIG,
    SDK_VERSION,
)
from ktbeacon.infra.transport import HttpTransport, TransportPort, invoke_callback
from ktbeacon.protocol.encoding import base64_encode, build_query
from ktbeacon.protocol.validator import validate_parameters
from ktbeacon.utils.tracking import generate_short_tracking_tag, generate_tracking_tag

if TYPE_CHECKING:
    from ktbeacon.utils.config import BeaconConfig

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[], Any]
ValidationErrorCallback = Callable[[ParameterValidationError], Any]


def _subtypes(subtype1: str | None, subtype2: str | None, subtype3: str | None) -> dict[str, Any]:
    return {"st1": subtype1, "st2": subtype2, "st3": subtype3}


def _goal_counts(*counts: int | None) -> dict[str, Any]:
    return {f"gc{index}": count for index, count in enumerate(counts, start=1)}


class BeaconClient:
    """
    Analytics beacon client.

    Every ``track_*`` coroutine assembles the parameter map for one message
    type and hands it to the transport without waiting for the network. It
    returns the transport task (awaitable, never raises) or ``None`` when
    validation rejected the message.
    """

    def __init__(
        self,
        api_key: str,
        *,
        transport: TransportPort | None = None,
        **config_overrides: Any,
    ) -> None:
        if not isinstance(api_key, str) or not api_key.strip():
            raise ValueError("api_key must be a non-empty string")

        unknown = set(config_overrides) - set(DEFAULT_CLIENT_CONFIG)
        if unknown:
            raise ValueError(f"unknown config option(s): {', '.join(sorted(unknown))}")

        self.api_key = api_key.strip()
        self.config: dict[str, Any] = {**DEFAULT_CLIENT_CONFIG, **config_overrides}
        self.session = SessionState()
        self.transport: TransportPort = transport or HttpTransport(timeout_s=float(self.config["timeout_s"]))

    @classmethod
    def from_config(cls, config: BeaconConfig, *, transport: TransportPort | None = None) -> BeaconClient:
        return cls(config.api_key, transport=transport, **config.overrides())

    async def __aenter__(self) -> BeaconClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def base_url(self) -> str:
        if self.config["use_test_server"]:
            return BASE_TEST_SERVER_URL
        if self.config["use_https"]:
            return BASE_HTTPS_API_URL
        return BASE_API_URL

    def build_url(self, message_type: MessageType | str, params: dict[str, Any]) -> str:
        return f"{self.base_url}{self.api_key}/{message_type_tag(message_type)}/?{build_query(params)}"

    @staticmethod
    def generate_tracking_tag() -> str:
        return generate_tracking_tag()

    @staticmethod
    def generate_short_tracking_tag() -> str:
        return generate_short_tracking_tag()

    async def send_message(
        self,
        message_type: MessageType | str,
        params: dict[str, Any],
        *,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """Finish, validate and dispatch one message. Omitted (``None``) params are dropped."""
        tag = message_type_tag(message_type)
        params = {key: value for key, value in params.items() if value is not None}

        if self.session.claim_first_send():
            params["sdk"] = SDK_VERSION
        params["ts"] = int(time.time() * 1000)

        if self.config["validate_params"]:
            name, result = validate_parameters(tag, params)
            if name is not None:
                error = ParameterValidationError(
                    result.reason or "Invalid parameter.",
                    message_type=tag,
                    param=name,
                    value=params[name],
                )
                logger.warning(
                    "dropping %s message: %s", tag, error.reason, extra={"message_type": tag, "param": name}
                )
                await invoke_callback(on_validation_error, error)
                return None

        url = self.build_url(tag, params)
        logger.debug("dispatching %s message", tag, extra={"message_type": tag, "url": url})
        return self.transport.dispatch(url, on_complete)

    async def drain(self) -> None:
        """Wait until every dispatched beacon has completed."""
        await self.transport.drain()

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def _send_invitation_like(
        self,
        message_type: MessageType,
        user_id: int,
        recipient_user_ids: str,
        tracking_tag: str,
        subtypes: dict[str, Any],
        data: Any,
        on_complete: CompletionCallback | None,
        on_validation_error: ValidationErrorCallback | None,
    ) -> asyncio.Task[None] | None:
        params = {"s": user_id, "r": recipient_user_ids, "u": tracking_tag, **subtypes, "data": base64_encode(data)}
        return await self.send_message(
            message_type, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def _send_response_like(
        self,
        message_type: MessageType,
        tracking_tag: str,
        recipient_user_id: int | None,
        subtypes: dict[str, Any],
        data: Any,
        on_complete: CompletionCallback | None,
        on_validation_error: ValidationErrorCallback | None,
    ) -> asyncio.Task[None] | None:
        params = {"i": 0, "u": tracking_tag, "r": recipient_user_id, **subtypes, "data": base64_encode(data)}
        return await self.send_message(
            message_type, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def track_invite_sent(
        self,
        user_id: int,
        recipient_user_ids: str,
        tracking_tag: str,
        *,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """
        Track an invite sent to one or more users.

        ``recipient_user_ids`` is a comma separated uid list. ``tracking_tag``
        links this message to the matching invite response and application
        added messages (see :meth:`generate_tracking_tag`).
        """
        return await self._send_invitation_like(
            MessageType.INVITE_SENT,
            user_id,
            recipient_user_ids,
            tracking_tag,
            _subtypes(subtype1, subtype2, subtype3),
            data,
            on_complete,
            on_validation_error,
        )

    async def track_invite_response(
        self,
        tracking_tag: str,
        *,
        recipient_user_id: int | None = None,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """Track a user responding to an invite."""
        return await self._send_response_like(
            MessageType.INVITE_RESPONSE,
            tracking_tag,
            recipient_user_id,
            _subtypes(subtype1, subtype2, subtype3),
            data,
            on_complete,
            on_validation_error,
        )

    async def track_notification_sent(
        self,
        user_id: int,
        recipient_user_ids: str,
        tracking_tag: str,
        *,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        return await self._send_invitation_like(
            MessageType.NOTIFICATION_SENT,
            user_id,
            recipient_user_ids,
            tracking_tag,
            _subtypes(subtype1, subtype2, subtype3),
            data,
            on_complete,
            on_validation_error,
        )

    async def track_notification_response(
        self,
        tracking_tag: str,
        *,
        recipient_user_id: int | None = None,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        return await self._send_response_like(
            MessageType.NOTIFICATION_RESPONSE,
            tracking_tag,
            recipient_user_id,
            _subtypes(subtype1, subtype2, subtype3),
            data,
            on_complete,
            on_validation_error,
        )

    async def track_notification_email_sent(
        self,
        user_id: int,
        recipient_user_ids: str,
        tracking_tag: str,
        *,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        return await self._send_invitation_like(
            MessageType.NOTIFICATION_EMAIL_SENT,
            user_id,
            recipient_user_ids,
            tracking_tag,
            _subtypes(subtype1, subtype2, subtype3),
            data,
            on_complete,
            on_validation_error,
        )

    async def track_notification_email_response(
        self,
        tracking_tag: str,
        *,
        recipient_user_id: int | None = None,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        return await self._send_response_like(
            MessageType.NOTIFICATION_EMAIL_RESPONSE,
            tracking_tag,
            recipient_user_id,
            _subtypes(subtype1, subtype2, subtype3),
            data,
            on_complete,
            on_validation_error,
        )

    async def track_stream_post(
        self,
        user_id: int,
        tracking_tag: str,
        type: str,
        *,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """Track a stream post. ``type`` is e.g. ``feedpub`` or ``stream``."""
        params = {
            "s": user_id,
            "u": tracking_tag,
            "tu": type,
            **_subtypes(subtype1, subtype2, subtype3),
            "data": base64_encode(data),
        }
        return await self.send_message(
            MessageType.STREAM_POST, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def track_stream_post_response(
        self,
        tracking_tag: str,
        type: str,
        *,
        recipient_user_id: int | None = None,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        params = {
            "i": 0,
            "u": tracking_tag,
            "tu": type,
            "r": recipient_user_id,
            **_subtypes(subtype1, subtype2, subtype3),
            "data": base64_encode(data),
        }
        return await self.send_message(
            MessageType.STREAM_POST_RESPONSE,
            params,
            on_complete=on_complete,
            on_validation_error=on_validation_error,
        )

    async def track_event(
        self,
        user_id: int,
        event_name: str,
        *,
        value: int | float | None = None,
        level: int | None = None,
        goal_count1: int | None = None,
        goal_count2: int | None = None,
        goal_count3: int | None = None,
        goal_count4: int | None = None,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """Track a custom event, optionally with a value, level and goal counts."""
        params = {
            "s": user_id,
            "n": event_name,
            "v": value,
            "l": level,
            **_goal_counts(goal_count1, goal_count2, goal_count3, goal_count4),
            **_subtypes(subtype1, subtype2, subtype3),
            "data": base64_encode(data),
        }
        return await self.send_message(
            MessageType.EVENT, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def track_application_added(
        self,
        user_id: int,
        *,
        tracking_tag: str | None = None,
        short_tracking_tag: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """
        Track an application install.

        Pass the ``tracking_tag`` of the invite or notification that led to the
        install, or the ``short_tracking_tag`` of a third party click.
        """
        params = {"s": user_id, "u": tracking_tag, "su": short_tracking_tag, "data": base64_encode(data)}
        return await self.send_message(
            MessageType.APPLICATION_ADDED, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def track_application_removed(
        self,
        user_id: int,
        *,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        params = {"s": user_id, "data": base64_encode(data)}
        return await self.send_message(
            MessageType.APPLICATION_REMOVED,
            params,
            on_complete=on_complete,
            on_validation_error=on_validation_error,
        )

    async def track_third_party_comm_click(
        self,
        type: str,
        short_tracking_tag: str,
        *,
        user_id: int | None = None,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """Track a click on an ad or partner link. ``type`` is ``ad`` or ``partner``."""
        params = {
            "i": 0,
            "tu": type,
            "su": short_tracking_tag,
            "s": user_id,
            **_subtypes(subtype1, subtype2, subtype3),
            "data": base64_encode(data),
        }
        return await self.send_message(
            MessageType.THIRD_PARTY_COMM_CLICK,
            params,
            on_complete=on_complete,
            on_validation_error=on_validation_error,
        )

    async def track_page_request(
        self,
        user_id: int,
        *,
        ip_address: str | None = None,
        page_address: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        params = {"s": user_id, "ip": ip_address, "u": page_address, "data": base64_encode(data)}
        return await self.send_message(
            MessageType.PAGE_REQUEST, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def track_user_information(
        self,
        user_id: int,
        *,
        birth_year: int | None = None,
        gender: str | None = None,
        country: str | None = None,
        friend_count: int | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """Track user profile details. ``gender`` is ``m``, ``f`` or ``u``; ``country`` is ISO alpha-2."""
        params = {
            "s": user_id,
            "b": birth_year,
            "g": gender,
            "lc": country,
            "f": friend_count,
            "data": base64_encode(data),
        }
        return await self.send_message(
            MessageType.USER_INFORMATION, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def track_goal_count(
        self,
        user_id: int,
        *,
        goal_count1: int | None = None,
        goal_count2: int | None = None,
        goal_count3: int | None = None,
        goal_count4: int | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        params = {
            "s": user_id,
            **_goal_counts(goal_count1, goal_count2, goal_count3, goal_count4),
            "data": base64_encode(data),
        }
        return await self.send_message(
            MessageType.GOAL_COUNT, params, on_complete=on_complete, on_validation_error=on_validation_error
        )

    async def track_revenue(
        self,
        user_id: int,
        value: int | float,
        *,
        type: str | None = None,
        subtype1: str | None = None,
        subtype2: str | None = None,
        subtype3: str | None = None,
        data: Any = None,
        on_complete: CompletionCallback | None = None,
        on_validation_error: ValidationErrorCallback | None = None,
    ) -> asyncio.Task[None] | None:
        """Track revenue. ``value`` is in cents; ``type`` is e.g. ``direct`` or ``advertisement``."""
        params = {
            "s": user_id,
            "v": value,
            "tu": type,
            **_subtypes(subtype1, subtype2, subtype3),
            "data": base64_encode(data),
        }
        return await self.send_message(
            MessageType.REVENUE, params, on_complete=on_complete, on_validation_error=on_validation_error
        )
