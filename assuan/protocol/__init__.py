"""
Assuan wire protocol: escaping, line framing, error model and the Pipe that
carries them over an asyncio stream. Shared by client and server.
"""

from .commands import BUILTIN_VERBS, Verb, is_builtin, normalize_verb
from .constants import DATA_CHUNK_LEN, DEFAULT_GREETING, ENCODING, LINE_DELIMITER, MAX_LINE_LEN, READ_LIMIT
from .errors import (
    AssuanError,
    ConnectionClosed,
    DecodeError,
    ErrorCode,
    ErrorSource,
    LineTooLongError,
    MissingInquireData,
    UnexpectedResponse,
    WireError,
    assuan_error,
    make_error_code,
    split_error_code,
)
from .escaping import escape, unescape
from .framing import Line, decode_line, encode_comment, encode_data, encode_line, encode_status
from .pipe import Pipe

__all__ = [
    "BUILTIN_VERBS",
    "Verb",
    "is_builtin",
    "normalize_verb",
    "DATA_CHUNK_LEN",
    "DEFAULT_GREETING",
    "ENCODING",
    "LINE_DELIMITER",
    "MAX_LINE_LEN",
    "READ_LIMIT",
    "AssuanError",
    "ConnectionClosed",
    "DecodeError",
    "ErrorCode",
    "ErrorSource",
    "LineTooLongError",
    "MissingInquireData",
    "UnexpectedResponse",
    "WireError",
    "assuan_error",
    "make_error_code",
    "split_error_code",
    "escape",
    "unescape",
    "Line",
    "decode_line",
    "encode_comment",
    "encode_data",
    "encode_line",
    "encode_status",
    "Pipe",
]
