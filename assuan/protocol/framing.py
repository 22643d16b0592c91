from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .commands import Verb, normalize_verb
from .constants import DATA_CHUNK_LEN, ENCODING, LINE_DELIMITER, MAX_LINE_LEN
from .errors import LineTooLongError
from .escaping import escape, unescape

Params = Union[str, bytes, bytearray, memoryview]

# a verb must stay a single token on a single line
_VERB_FORBIDDEN = frozenset(b" \t\r\n\v\f%")


@dataclass(frozen=True, slots=True)
class Line:
    """A received command or response: upper-cased verb plus unescaped params."""

    verb: str
    params: bytes = b""

    @property
    def text(self) -> str:
        return self.params.decode(ENCODING, "surrogateescape")


def to_bytes(params: Optional[Params]) -> bytes:
    if params is None:
        return b""
    if isinstance(params, str):
        return params.encode(ENCODING, "surrogateescape")
    return bytes(params)


def _check_verb(verb: bytes) -> bytes:
    if not verb or any(b in _VERB_FORBIDDEN for b in verb):
        raise ValueError(f"invalid verb: {verb!r}")
    return verb


def encode_line(verb: Union[str, Verb], params: Optional[Params] = None) -> bytes:
    """Build ``VERB[ ESCAPED]\\n``; refuse lines longer than MAX_LINE_LEN.

    A verb that is empty or holds whitespace or ``%`` raises ValueError.
    """
    head = _check_verb(normalize_verb(verb).encode(ENCODING))
    body = escape(to_bytes(params))
    line = head + b" " + body + LINE_DELIMITER if body else head + LINE_DELIMITER
    if len(line) > MAX_LINE_LEN:
        raise LineTooLongError(f"line of {len(line)} bytes exceeds {MAX_LINE_LEN}")
    return line


def encode_comment(text: Params) -> bytes:
    return encode_line(Verb.COMMENT, text)


def encode_status(keyword: str, text: Params = "") -> bytes:
    raw = to_bytes(text)
    return encode_line(Verb.STATUS, keyword.encode(ENCODING) + (b" " + raw if raw else b""))


def iter_data_chunks(raw: Params) -> Iterator[bytes]:
    """Split the escaped payload into D-line bodies that never cut a %XX in half."""
    encoded = escape(to_bytes(raw))
    start, n = 0, len(encoded)
    while start < n:
        end = min(start + DATA_CHUNK_LEN, n)
        if end < n:
            pct = encoded.rfind(b"%", max(start, end - 2), end)
            if pct != -1:
                end = pct
        yield encoded[start:end]
        start = end


def encode_data(raw: Params) -> Iterator[bytes]:
    """``D`` lines carrying ``raw``; nothing at all for an empty payload."""
    prefix = Verb.DATA.value.encode(ENCODING) + b" "
    for chunk in iter_data_chunks(raw):
        yield prefix + chunk + LINE_DELIMITER


def is_informational(raw_line: bytes) -> bool:
    """Blank, comment and status lines carry no command or response."""
    return not raw_line.strip() or raw_line.startswith(b"#") or raw_line.startswith(b"S ")


def decode_line(raw_line: bytes) -> Line:
    """Split a raw line (delimiter stripped) on the first space and unescape the rest."""
    verb, _, params = raw_line.partition(b" ")
    return Line(verb=verb.decode(ENCODING, "replace").upper(), params=unescape(params))


def split_status(raw_line: bytes):
    """``S KEYWORD text`` -> (keyword, unescaped text)."""
    keyword, _, text = raw_line[2:].partition(b" ")
    return keyword.decode(ENCODING, "replace"), unescape(text).decode(ENCODING, "surrogateescape")


__all__ = [
    "Line",
    "Params",
    "to_bytes",
    "encode_line",
    "encode_comment",
    "encode_status",
    "encode_data",
    "iter_data_chunks",
    "is_informational",
    "decode_line",
    "split_status",
]
