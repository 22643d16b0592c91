"""Percent escaping of parameters and data lines.

Only the four bytes that would break line framing are escaped: CR, LF, ``%``
and ``\\``. Everything else, including ``+`` and arbitrary binary bytes,
passes through untouched.
"""

from __future__ import annotations

from typing import Dict, Union, overload

from .constants import ENCODING
from .errors import DecodeError

_ESCAPES: Dict[int, bytes] = {
    ord("\r"): b"%0D",
    ord("\n"): b"%0A",
    ord("%"): b"%25",
    ord("\\"): b"%5C",
}
_HEXDIGITS = frozenset(b"0123456789abcdefABCDEF")


def _escape_bytes(raw: bytes) -> bytes:
    if not any(b in _ESCAPES for b in raw):
        return bytes(raw)
    out = bytearray()
    for b in raw:
        escaped = _ESCAPES.get(b)
        if escaped is None:
            out.append(b)
        else:
            out += escaped
    return bytes(out)


def _unescape_bytes(text: bytes) -> bytes:
    if b"%" not in text:
        return bytes(text)
    out = bytearray()
    i, n = 0, len(text)
    while i < n:
        b = text[i]
        if b != 0x25:  # '%'
            out.append(b)
            i += 1
            continue
        pair = text[i + 1 : i + 3]
        if len(pair) != 2 or pair[0] not in _HEXDIGITS or pair[1] not in _HEXDIGITS:
            raise DecodeError(f"malformed escape sequence at offset {i}")
        out.append(int(pair, 16))
        i += 3
    return bytes(out)


@overload
def escape(raw: str) -> str: ...
@overload
def escape(raw: bytes) -> bytes: ...
def escape(raw: Union[str, bytes, bytearray, memoryview]) -> Union[str, bytes]:
    """Escape CR, LF, ``%`` and ``\\``; str input gives str output."""
    if isinstance(raw, str):
        return _escape_bytes(raw.encode(ENCODING, "surrogateescape")).decode(ENCODING, "surrogateescape")
    return _escape_bytes(bytes(raw))


@overload
def unescape(text: str) -> str: ...
@overload
def unescape(text: bytes) -> bytes: ...
def unescape(text: Union[str, bytes, bytearray, memoryview]) -> Union[str, bytes]:
    """Reverse :func:`escape`. Raises :class:`DecodeError` on a bad ``%`` sequence."""
    if isinstance(text, str):
        return _unescape_bytes(text.encode(ENCODING, "surrogateescape")).decode(ENCODING, "surrogateescape")
    return _unescape_bytes(bytes(text))


__all__ = ["escape", "unescape"]
