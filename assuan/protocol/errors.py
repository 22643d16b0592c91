from __future__ import annotations

from enum import IntEnum
from typing import Union


class ErrorSource(IntEnum):
    """Component an error originates from (libgpg-error source numbers)."""

    UNKNOWN = 0
    GCRYPT = 1
    GPG = 2
    GPGSM = 3
    GPGAGENT = 4
    PINENTRY = 5
    SCD = 6
    GPGME = 7
    KEYBOX = 8
    KSBA = 9
    DIRMNGR = 10
    GSTI = 11
    GPA = 12
    KLEO = 13
    G13 = 14
    ASSUAN = 15
    TLS = 17
    ANY = 31
    USER_1 = 32
    USER_2 = 33
    USER_3 = 34
    USER_4 = 35


class ErrorCode(IntEnum):
    """Error codes carried in ERR lines (libgpg-error code numbers)."""

    GENERAL = 1
    NOT_FOUND = 27
    INV_VALUE = 55
    NOT_SUPPORTED = 60
    TIMEOUT = 62
    NOT_IMPLEMENTED = 69
    CANCELED = 99
    UNKNOWN_OPTION = 174
    ASS_GENERAL = 257
    ASS_INV_VALUE = 261
    ASS_LINE_TOO_LONG = 263
    ASS_NO_INQUIRE_CB = 266
    ASS_UNEXPECTED_CMD = 274
    ASS_UNKNOWN_CMD = 275
    ASS_SYNTAX = 276
    ASS_CANCELED = 277
    ASS_PARAMETER = 280
    ASS_UNKNOWN_INQUIRE = 281


_SOURCE_SHIFT = 24
_SOURCE_MASK = 0x7F
_CODE_MASK = 0xFFFF


def _lookup(enum_cls, value: int):
    try:
        return enum_cls(value)
    except ValueError:
        return value


def make_error_code(source: Union[ErrorSource, int], code: Union[ErrorCode, int]) -> int:
    """Pack source and code into the single integer used on the wire."""
    return ((int(source) & _SOURCE_MASK) << _SOURCE_SHIFT) | (int(code) & _CODE_MASK)


def split_error_code(value: int):
    """Inverse of make_error_code; unknown numbers are returned as plain ints."""
    source = (value >> _SOURCE_SHIFT) & _SOURCE_MASK
    code = value & _CODE_MASK
    return _lookup(ErrorSource, source), _lookup(ErrorCode, code)


class AssuanError(Exception):
    """Structured protocol error reported to the peer in an ERR line.

    Raising (or returning) one from a command handler makes the server answer
    with ERR and keep serving. Clients raise it when the peer answers ERR.
    Two errors are equal when source, code, source name and message match.
    """

    def __init__(
        self,
        source: Union[ErrorSource, int] = ErrorSource.UNKNOWN,
        code: Union[ErrorCode, int] = ErrorCode.GENERAL,
        source_name: str = "",
        message: str = "",
    ) -> None:
        self.source = source
        self.code = code
        self.source_name = source_name
        self.message = message
        super().__init__(f"{message} <{source_name}>" if source_name else message)

    def _key(self):
        return (int(self.source), int(self.code), self.source_name, self.message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssuanError):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(source={self.source!r}, code={self.code!r}, "
            f"source_name={self.source_name!r}, message={self.message!r})"
        )

    @property
    def wire_code(self) -> int:
        return make_error_code(self.source, self.code)

    def to_wire(self) -> str:
        """Parameters of the ERR line: ``<code> <message> <<source name>>``."""
        return f"{self.wire_code} {self.message} <{self.source_name}>"

    @classmethod
    def from_wire(cls, params: str) -> "AssuanError":
        """Decode the parameters of an ERR line."""
        code_text, _, description = params.strip().partition(" ")
        try:
            value = int(code_text)
        except ValueError as exc:
            raise UnexpectedResponse(f"malformed ERR line: {params!r}") from exc

        source, code = split_error_code(value)
        message, source_name = description, ""
        if description.endswith(">"):
            head, sep, tail = description.rpartition(" <")
            if sep:
                message, source_name = head, tail[:-1]
            elif description.startswith("<"):
                message, source_name = "", description[1:-1]
        return cls(source, code, source_name, message)


def assuan_error(code: ErrorCode, message: str) -> AssuanError:
    """Error raised by the protocol layer itself."""
    return AssuanError(ErrorSource.ASSUAN, code, "assuan", message)


class MissingInquireData(AssuanError):
    """The peer inquired a keyword the caller supplied no answer for."""

    def __init__(self, keyword: str) -> None:
        super().__init__(
            ErrorSource.ASSUAN,
            ErrorCode.ASS_NO_INQUIRE_CB,
            "assuan",
            f"missing data with keyword {keyword}",
        )
        self.keyword = keyword


class WireError(Exception):
    """Transport or framing failure; the stream is no longer usable."""


class DecodeError(WireError):
    """Malformed percent escape in a received line."""


class LineTooLongError(WireError):
    """Line exceeds the protocol's maximum length."""


class ConnectionClosed(WireError):
    """Peer closed the stream (or the session was closed locally)."""


class UnexpectedResponse(WireError):
    """Peer answered with a line that does not fit the current exchange."""


__all__ = [
    "ErrorSource",
    "ErrorCode",
    "make_error_code",
    "split_error_code",
    "AssuanError",
    "assuan_error",
    "MissingInquireData",
    "WireError",
    "DecodeError",
    "LineTooLongError",
    "ConnectionClosed",
    "UnexpectedResponse",
]
