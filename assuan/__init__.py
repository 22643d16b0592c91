"""
Assuan IPC protocol for asyncio: a client session, a command dispatcher for
servers, and the escaping/framing layer both sides share.
"""

import logging

from .client import Session, open_tcp, open_unix, spawn
from .protocol import (
    AssuanError,
    ConnectionClosed,
    DecodeError,
    ErrorCode,
    ErrorSource,
    LineTooLongError,
    MissingInquireData,
    Pipe,
    UnexpectedResponse,
    WireError,
    escape,
    unescape,
)
from .server import AssuanServer, ConnectionContext, ProtoInfo, serve, serve_stdio

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.3.0"

__all__ = [
    "Session",
    "open_tcp",
    "open_unix",
    "spawn",
    "AssuanError",
    "ConnectionClosed",
    "DecodeError",
    "ErrorCode",
    "ErrorSource",
    "LineTooLongError",
    "MissingInquireData",
    "Pipe",
    "UnexpectedResponse",
    "WireError",
    "escape",
    "unescape",
    "AssuanServer",
    "ConnectionContext",
    "ProtoInfo",
    "serve",
    "serve_stdio",
]
