"""Fire-and-forget analytics beacon SDK."""

__version__ = "0.1.0"

__all__ = [
    "BeaconClient",
    "SessionState",
    "MessageType",
    "ValidationResult",
    "BeaconError",
    "ParameterValidationError",
    "TransportError",
    "HttpTransport",
    "BeaconConfig",
    "config_from_env",
    "validate_parameter",
    "generate_tracking_tag",
    "generate_short_tracking_tag",
]


def __getattr__(name: str) -> object:
    """Lazy exports so that importing the encoders does not pull in httpx."""
    if name in {"BeaconClient", "SessionState"}:
        from .client import BeaconClient, SessionState

        return {"BeaconClient": BeaconClient, "SessionState": SessionState}[name]

    if name in {"MessageType", "ValidationResult"}:
        from .core.messages import MessageType, ValidationResult

        return {"MessageType": MessageType, "ValidationResult": ValidationResult}[name]

    if name in {"BeaconError", "ParameterValidationError", "TransportError"}:
        from .core.errors import BeaconError, ParameterValidationError, TransportError

        return {
            "BeaconError": BeaconError,
            "ParameterValidationError": ParameterValidationError,
            "TransportError": TransportError,
        }[name]

    if name == "HttpTransport":
        from .infra.transport import HttpTransport

        return HttpTransport

    if name in {"BeaconConfig", "config_from_env"}:
        from .utils.config import BeaconConfig, config_from_env

        return {"BeaconConfig": BeaconConfig, "config_from_env": config_from_env}[name]

    if name == "validate_parameter":
        from .protocol.validator import validate_parameter

        return validate_parameter

    if name in {"generate_tracking_tag", "generate_short_tracking_tag"}:
        from .utils.tracking import generate_short_tracking_tag, generate_tracking_tag

        return {
            "generate_tracking_tag": generate_tracking_tag,
            "generate_short_tracking_tag": generate_short_tracking_tag,
        }[name]

    raise AttributeError(f"module 'ktbeacon' has no attribute {name!r}")
