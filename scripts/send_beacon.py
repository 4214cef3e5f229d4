"""Fire a single beacon message from the command line.

Usage examples:
  python scripts/send_beacon.py --api-key KEY --message-type mtu --param s=555 --param v=1000 --param tu=direct
  python scripts/send_beacon.py --message-type evt --param s=1 --param n=level_up --test-server --validate

Environment fallbacks:
  KTBEACON_API_KEY
  KTBEACON_TEST_SERVER
  KTBEACON_HTTPS
  KTBEACON_VALIDATE
  KTBEACON_TIMEOUT
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import math
import sys
from pathlib import Path
from typing import Any

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ktbeacon.client.client import BeaconClient  # noqa: E402
from ktbeacon.core.errors import ParameterValidationError  # noqa: E402
from ktbeacon.core.messages import MessageType  # noqa: E402
from ktbeacon.infra.logger import get_logger  # noqa: E402
from ktbeacon.utils.config import BeaconConfig, config_from_env  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send one analytics beacon message.")
    parser.add_argument("--api-key", help="Collector API key")
    parser.add_argument(
        "--message-type",
        required=True,
        choices=[m.value for m in MessageType],
        help="Three-character message type tag",
    )
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Message parameter; integers and decimals are sent as numbers",
    )
    parser.add_argument("--test-server", action="store_true", help="Send to the test server")
    parser.add_argument("--https", action="store_true", help="Use the HTTPS endpoint")
    parser.add_argument("--validate", action="store_true", help="Validate parameters before sending")
    parser.add_argument("--timeout", type=float, help="HTTP timeout seconds")
    parser.add_argument("--log-level", default="INFO", help="Log level for the ktbeacon logger")
    return parser


def _merge_config(defaults: BeaconConfig, args: argparse.Namespace) -> BeaconConfig:
    return BeaconConfig(
        api_key=args.api_key or defaults.api_key,
        use_test_server=True if args.test_server else defaults.use_test_server,
        use_https=True if args.https else defaults.use_https,
        validate_params=True if args.validate else defaults.validate_params,
        timeout_s=float(args.timeout) if args.timeout is not None else defaults.timeout_s,
    )


def _coerce(value: str) -> Any:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return value
    # "nan" and "inf" stay text
    return number if math.isfinite(number) else value


def parse_params(pairs: list[str]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"expected KEY=VALUE, got {pair!r}")
        params[key] = _coerce(value)
    return params


async def _main_async() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    config = _merge_config(config_from_env(), args)
    get_logger("ktbeacon", args.log_level)

    if not config.api_key:
        print("[send-beacon] ERROR: api key required (--api-key or KTBEACON_API_KEY)")
        return 2

    try:
        params = parse_params(args.param)
    except ValueError as exc:
        print(f"[send-beacon] ERROR: {exc}")
        return 2

    rejected: list[ParameterValidationError] = []

    async with BeaconClient.from_config(config) as client:
        handle = await client.send_message(
            args.message_type,
            params,
            on_validation_error=rejected.append,
        )
        if handle is None:
            error = rejected[0] if rejected else None
            print(f"[send-beacon] REJECTED: {error}")
            return 1
        await handle

    print(f"[send-beacon] SENT {args.message_type} to {client.base_url}")
    return 0


def main() -> int:
    with contextlib.suppress(KeyboardInterrupt):
        return asyncio.run(_main_async())
    return 130


if __name__ == "__main__":
    raise SystemExit(main())
