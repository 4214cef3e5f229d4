"""Transport-safe encoders for beacon parameters."""

from __future__ import annotations

import base64
from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import quote, unquote

# encodeURIComponent leaves these unescaped in addition to alphanumerics and "-_.".
_URI_COMPONENT_SAFE = "!~*'()"


def _utf16_code_units(text: str) -> Iterator[int]:
    for char in text:
        code_point = ord(char)
        if code_point > 0xFFFF:
            code_point -= 0x10000
            yield 0xD800 | (code_point >> 10)
            yield 0xDC00 | (code_point & 0x3FF)
        else:
            yield code_point


def utf8_encode(text: Any) -> bytes:
    """
    Encode text with the three-range UTF-8 rule over UTF-16 code units.

    Characters outside the BMP are not given 4-byte sequences: each half of
    their surrogate pair is emitted as its own 3-byte sequence.
    """
    if not text:
        return b""

    out = bytearray()
    for unit in _utf16_code_units(str(text)):
        if unit < 0x80:
            out.append(unit)
        elif unit < 0x800:
            out.append((unit >> 6) | 0xC0)
            out.append((unit & 0x3F) | 0x80)
        else:
            out.append((unit >> 12) | 0xE0)
            out.append(((unit >> 6) & 0x3F) | 0x80)
            out.append((unit & 0x3F) | 0x80)
    return bytes(out)


def base64_encode(data: Any) -> Any:
    """Base64 (RFC 4648, padded) of the UTF-8 form of ``data``; falsy input is returned as-is."""
    if not data:
        return data
    return base64.b64encode(utf8_encode(data)).decode("ascii")


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _reencode(text: str) -> str:
    return quote(unquote(text), safe=_URI_COMPONENT_SAFE)


def build_query(params: Mapping[str, Any]) -> str:
    """Serialize a parameter map into a percent-encoded ``k=v&k=v`` query string."""
    pairs: list[str] = []
    for key, value in params.items():
        if value is None:
            continue
        pairs.append(f"{_reencode(_stringify(key))}={_reencode(_stringify(value))}")
    return "&".join(pairs)
