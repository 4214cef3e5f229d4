import asyncio
import base64
from typing import Any
from urllib.parse import parse_qsl, urlsplit

import pytest

from ktbeacon.client.client import BeaconClient
from ktbeacon.core.errors import ParameterValidationError
from ktbeacon.core.messages import MessageType
from ktbeacon.defaults.config import SDK_VERSION
from ktbeacon.infra.transport import HttpTransport
from ktbeacon.utils.config import BeaconConfig

TAG = "a1b2c3d4e5f60718"
SHORT_TAG = "0a1b2c3d"


class _FakeTransport:
    def __init__(self) -> None:
        self.urls: list[str] = []
        self.drained = False
        self.closed = False

    def dispatch(self, url: str, on_complete: Any = None) -> asyncio.Task[None]:
        self.urls.append(url)

        async def _done() -> None:
            if on_complete is not None:
                on_complete()

        return asyncio.create_task(_done())

    async def drain(self) -> None:
        self.drained = True

    async def aclose(self) -> None:
        self.closed = True


def _run(coro):
    return asyncio.run(coro)


def _split(url: str) -> tuple[str, dict[str, str]]:
    parts = urlsplit(url)
    return parts.path, dict(parse_qsl(parts.query))


def _client(**config: Any) -> tuple[BeaconClient, _FakeTransport]:
    transport = _FakeTransport()
    return BeaconClient("key123", transport=transport, **config), transport


def test_constructor_rejects_empty_api_key() -> None:
    with pytest.raises(ValueError):
        BeaconClient("  ")


def test_constructor_rejects_unknown_option() -> None:
    with pytest.raises(ValueError, match="use_http2"):
        BeaconClient("key", use_http2=True)


def test_default_transport_is_http_transport() -> None:
    client = BeaconClient("key", timeout_s=3.0)
    assert isinstance(client.transport, HttpTransport)
    assert client.transport.timeout_s == 3.0


@pytest.mark.parametrize(
    ("config", "expected"),
    [
        ({}, "http://api.geo.kontagent.net/api/v1/"),
        ({"use_https": True}, "https://api.geo.kontagent.net/api/v1/"),
        ({"use_test_server": True}, "http://test-server.kontagent.com/api/v1/"),
        ({"use_test_server": True, "use_https": True}, "http://test-server.kontagent.com/api/v1/"),
    ],
)
def test_base_url_selection(config: dict[str, Any], expected: str) -> None:
    client, _ = _client(**config)
    assert client.base_url == expected


def test_from_config_applies_flags() -> None:
    transport = _FakeTransport()
    client = BeaconClient.from_config(
        BeaconConfig(api_key="abc", use_https=True, validate_params=True), transport=transport
    )
    assert client.api_key == "abc"
    assert client.config["validate_params"] is True
    assert client.base_url.startswith("https://")
    assert client.transport is transport


@pytest.mark.asyncio
async def test_revenue_scenario_builds_expected_message() -> None:
    client, transport = _client(use_https=True, validate_params=True)

    handle = await client.track_revenue(555, 1000, type="direct")
    assert handle is not None
    await handle

    path, params = _split(transport.urls[0])
    assert transport.urls[0].startswith("https://api.geo.kontagent.net/api/v1/key123/mtu/?")
    assert path == "/api/v1/key123/mtu/"
    assert params["s"] == "555"
    assert params["v"] == "1000"
    assert params["tu"] == "direct"
    assert params["ts"].isdigit()
    assert params["sdk"] == SDK_VERSION
    assert set(params) == {"s", "v", "tu", "ts", "sdk"}
    assert "s=555&v=1000&tu=direct" in transport.urls[0]


@pytest.mark.asyncio
async def test_sdk_tag_only_on_first_send() -> None:
    client, transport = _client()

    await client.track_application_removed(1)
    await client.track_application_removed(2)
    await client.track_application_removed(3)

    sdk_values = [_split(url)[1].get("sdk") for url in transport.urls]
    assert sdk_values == [SDK_VERSION, None, None]
    assert client.session.has_sent_message is True


@pytest.mark.asyncio
async def test_rejected_first_message_still_consumes_sdk_tag() -> None:
    client, transport = _client(validate_params=True)
    errors: list[ParameterValidationError] = []

    rejected = await client.track_user_information(1, gender="x", on_validation_error=errors.append)
    accepted = await client.track_user_information(1, gender="f")

    assert rejected is None
    assert accepted is not None
    assert errors[0].param == "g"
    assert len(transport.urls) == 1
    assert "sdk" not in _split(transport.urls[0])[1]
    assert client.session.has_sent_message is True


@pytest.mark.asyncio
async def test_sessions_are_per_client() -> None:
    first, first_transport = _client()
    second, second_transport = _client()

    await first.track_application_removed(1)
    await second.track_application_removed(1)

    assert _split(first_transport.urls[0])[1]["sdk"] == SDK_VERSION
    assert _split(second_transport.urls[0])[1]["sdk"] == SDK_VERSION


@pytest.mark.asyncio
async def test_goal_count_out_of_range_aborts_event() -> None:
    client, transport = _client(validate_params=True)
    errors: list[ParameterValidationError] = []

    handle = await client.track_event(1, "boss_fight", goal_count1=20000, on_validation_error=errors.append)

    assert handle is None
    assert transport.urls == []
    assert len(errors) == 1
    assert str(errors[0]) == "Invalid goal count value."
    assert errors[0].param == "gc1"
    assert errors[0].message_type == "evt"
    assert errors[0].value == 20000


@pytest.mark.asyncio
async def test_rejection_without_callback_is_logged_not_raised(caplog) -> None:
    client, transport = _client(validate_params=True)

    with caplog.at_level("WARNING", logger="ktbeacon.client.client"):
        handle = await client.track_user_information(1, gender="x")

    assert handle is None
    assert transport.urls == []
    assert "Invalid gender." in caplog.text


@pytest.mark.asyncio
async def test_async_validation_callback_is_awaited() -> None:
    client, _ = _client(validate_params=True)
    seen: list[str] = []

    async def _on_error(error: ParameterValidationError) -> None:
        seen.append(error.reason)

    await client.track_invite_response("not-a-tag", on_validation_error=_on_error)
    assert seen == ["Invalid unique tracking tag."]


@pytest.mark.asyncio
async def test_invalid_params_are_sent_when_validation_disabled() -> None:
    client, transport = _client()

    handle = await client.track_event(1, "boss_fight", goal_count1=20000)

    assert handle is not None
    assert _split(transport.urls[0])[1]["gc1"] == "20000"


@pytest.mark.asyncio
async def test_on_complete_runs_after_dispatch() -> None:
    client, _ = _client()
    calls: list[str] = []

    handle = await client.track_goal_count(7, goal_count2=3, on_complete=lambda: calls.append("done"))
    await handle

    assert calls == ["done"]


@pytest.mark.asyncio
async def test_data_is_base64_encoded() -> None:
    client, transport = _client(validate_params=True)

    await client.track_application_added(9, tracking_tag=TAG, data='{"ref":"ad"}')

    params = _split(transport.urls[0])[1]
    assert params["data"] == base64.b64encode(b'{"ref":"ad"}').decode("ascii")
    assert params["u"] == TAG
    assert "su" not in params


@pytest.mark.asyncio
async def test_invite_chain_parameters() -> None:
    client, transport = _client(validate_params=True)

    await client.track_invite_sent(1, "2,3", TAG, subtype1="promo", subtype2="email")
    await client.track_invite_response(TAG, recipient_user_id=2, subtype1="promo")

    sent = _split(transport.urls[0])
    response = _split(transport.urls[1])
    assert sent[0].endswith("/ins/")
    assert {k: v for k, v in sent[1].items() if k not in {"ts", "sdk"}} == {
        "s": "1",
        "r": "2,3",
        "u": TAG,
        "st1": "promo",
        "st2": "email",
    }
    assert response[0].endswith("/inr/")
    assert {k: v for k, v in response[1].items() if k != "ts"} == {
        "i": "0",
        "u": TAG,
        "r": "2",
        "st1": "promo",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "tag"),
    [
        ("track_invite_sent", "ins"),
        ("track_notification_sent", "nts"),
        ("track_notification_email_sent", "nes"),
    ],
)
async def test_sent_operations_share_parameter_shape(method: str, tag: str) -> None:
    client, transport = _client(validate_params=True)

    await getattr(client, method)(10, "11,12", TAG, subtype3="x")

    path, params = _split(transport.urls[0])
    assert path.endswith(f"/{tag}/")
    assert params["r"] == "11,12"
    assert params["st3"] == "x"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "tag"),
    [
        ("track_invite_response", "inr"),
        ("track_notification_response", "ntr"),
        ("track_notification_email_response", "nei"),
    ],
)
async def test_response_operations_share_parameter_shape(method: str, tag: str) -> None:
    client, transport = _client(validate_params=True)

    await getattr(client, method)(TAG, recipient_user_id=11)

    path, params = _split(transport.urls[0])
    assert path.endswith(f"/{tag}/")
    assert params["i"] == "0"
    assert params["r"] == "11"


@pytest.mark.asyncio
async def test_response_rejects_recipient_list() -> None:
    client, transport = _client(validate_params=True)
    errors: list[ParameterValidationError] = []

    await client.track_notification_response(TAG, recipient_user_id="1,2", on_validation_error=errors.append)

    assert transport.urls == []
    assert errors[0].param == "r"


@pytest.mark.asyncio
async def test_stream_post_and_response() -> None:
    client, transport = _client(validate_params=True)

    await client.track_stream_post(5, TAG, "feedstory")
    await client.track_stream_post_response(TAG, "feedstory", recipient_user_id=6)
    errors: list[ParameterValidationError] = []
    await client.track_stream_post(5, TAG, "partner", on_validation_error=errors.append)

    assert len(transport.urls) == 2
    assert _split(transport.urls[0])[1]["tu"] == "feedstory"
    assert _split(transport.urls[1])[0].endswith("/psr/")
    assert str(errors[0]) == "Invalid stream post/response type."


@pytest.mark.asyncio
async def test_event_maps_optional_fields() -> None:
    client, transport = _client(validate_params=True)

    await client.track_event(1, "quest_done", value=-5, level=3, goal_count4=12, subtype1="a")

    params = _split(transport.urls[0])[1]
    assert params["n"] == "quest_done"
    assert params["v"] == "-5"
    assert params["l"] == "3"
    assert params["gc4"] == "12"
    assert "gc1" not in params


@pytest.mark.asyncio
async def test_third_party_click_and_page_request() -> None:
    client, transport = _client(validate_params=True)

    await client.track_third_party_comm_click("ad", SHORT_TAG, user_id=4)
    await client.track_page_request(4, ip_address="192.168.0.1", page_address="/shop/index.html?x=1")

    click_path, click = _split(transport.urls[0])
    page_path, page = _split(transport.urls[1])
    assert click_path.endswith("/ucc/")
    assert click == {**click, "i": "0", "tu": "ad", "su": SHORT_TAG, "s": "4"}
    assert page_path.endswith("/pgr/")
    assert page["u"] == "/shop/index.html?x=1"
    assert page["ip"] == "192.168.0.1"


@pytest.mark.asyncio
async def test_user_information_and_goal_count() -> None:
    client, transport = _client(validate_params=True)

    await client.track_user_information(3, birth_year=1990, gender="f", country="DE", friend_count=12)
    await client.track_goal_count(3, goal_count1=-2, goal_count3=40)

    info = _split(transport.urls[0])[1]
    goals = _split(transport.urls[1])[1]
    assert (info["b"], info["g"], info["lc"], info["f"]) == ("1990", "f", "DE", "12")
    assert (goals["gc1"], goals["gc3"]) == ("-2", "40")
    assert "gc2" not in goals


@pytest.mark.asyncio
async def test_send_message_accepts_enum_and_drops_none() -> None:
    client, transport = _client()

    await client.send_message(MessageType.APPLICATION_ADDED, {"s": 1, "u": None})

    path, params = _split(transport.urls[0])
    assert path.endswith("/apa/")
    assert "u" not in params


def test_generate_tag_helpers() -> None:
    assert len(BeaconClient.generate_tracking_tag()) == 16
    assert len(BeaconClient.generate_short_tracking_tag()) == 8


def test_context_manager_closes_transport() -> None:
    async def _case() -> _FakeTransport:
        client, transport = _client()
        async with client:
            await client.track_application_removed(1)
            await client.drain()
        return transport

    transport = _run(_case())
    assert transport.drained is True
    assert transport.closed is True
