"""Default constants and configuration values for ktbeacon."""

from .config import DEFAULT_CLIENT_CONFIG, SDK_VERSION

__all__ = ["DEFAULT_CLIENT_CONFIG", "SDK_VERSION"]
