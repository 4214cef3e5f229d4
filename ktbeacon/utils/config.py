"""Environment-driven client configuration."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass

from ktbeacon.defaults.config import DEFAULT_CLIENT_CONFIG

_FALSE_VALUES = {"0", "false", "False", "no", ""}


@dataclass
class BeaconConfig:
    api_key: str = ""
    use_test_server: bool = bool(DEFAULT_CLIENT_CONFIG["use_test_server"])
    use_https: bool = bool(DEFAULT_CLIENT_CONFIG["use_https"])
    validate_params: bool = bool(DEFAULT_CLIENT_CONFIG["validate_params"])
    timeout_s: float = float(DEFAULT_CLIENT_CONFIG["timeout_s"])

    def overrides(self) -> dict[str, object]:
        """Everything except the api key, in the shape ``BeaconClient`` accepts."""
        values = asdict(self)
        values.pop("api_key")
        return values


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip() not in _FALSE_VALUES


def config_from_env() -> BeaconConfig:
    defaults = BeaconConfig()
    return BeaconConfig(
        api_key=os.getenv("KTBEACON_API_KEY", ""),
        use_test_server=_env_flag("KTBEACON_TEST_SERVER", defaults.use_test_server),
        use_https=_env_flag("KTBEACON_HTTPS", defaults.use_https),
        validate_params=_env_flag("KTBEACON_VALIDATE", defaults.validate_params),
        timeout_s=float(os.getenv("KTBEACON_TIMEOUT", str(defaults.timeout_s))),
    )
