"""Parameter encoding and validation."""

from .encoding import base64_encode, build_query, utf8_encode
from .validator import validate_parameter, validate_parameters

__all__ = ["base64_encode", "build_query", "utf8_encode", "validate_parameter", "validate_parameters"]
