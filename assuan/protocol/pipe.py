from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Optional, Union

from .commands import Verb, normalize_verb
from .constants import LINE_DELIMITER, MAX_LINE_LEN
from .errors import (
    AssuanError,
    ConnectionClosed,
    ErrorCode,
    LineTooLongError,
    assuan_error,
)
from .framing import (
    Line,
    Params,
    decode_line,
    encode_comment,
    encode_data,
    encode_line,
    encode_status,
    is_informational,
    split_status,
)


StatusCallback = Callable[[str, str], None]


class Pipe:
    """Line-level Assuan I/O over an asyncio reader/writer pair.

    Both the client session and the server dispatcher speak through this
    class. Nothing here retries or recovers: a failed write leaves the stream
    in an unknown state and the caller is expected to drop the connection.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        on_status: Optional[StatusCallback] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.reader = reader
        self.writer = writer
        self.on_status = on_status
        self.logger = logger or logging.getLogger(__name__)
        self.closed = False

    async def _read_raw(self) -> bytes:
        try:
            raw = await self.reader.readuntil(LINE_DELIMITER)
        except asyncio.IncompleteReadError as exc:
            raise ConnectionClosed("peer closed the connection") from exc
        except asyncio.LimitOverrunError as exc:
            raise LineTooLongError(f"incoming line exceeds {MAX_LINE_LEN} bytes") from exc
        if len(raw) > MAX_LINE_LEN:
            raise LineTooLongError(f"incoming line of {len(raw)} bytes exceeds {MAX_LINE_LEN}")
        line = raw[: -len(LINE_DELIMITER)]
        # peers that terminate lines with CRLF
        return line[:-1] if line.endswith(b"\r") else line

    async def read_line(self) -> Line:
        """Next command/response line; comments, status and blank lines are skipped."""
        if self.closed:
            raise ConnectionClosed("pipe is closed")
        while True:
            raw = await self._read_raw()
            if not is_informational(raw):
                break
            if raw.startswith(b"S ") and self.on_status is not None:
                keyword, text = split_status(raw)
                self.on_status(keyword, text)
        line = decode_line(raw)
        self.logger.debug("<- %s", line.verb)
        return line

    async def _write(self, data: bytes) -> None:
        if self.closed:
            raise ConnectionClosed("pipe is closed")
        self.writer.write(data)
        await self.writer.drain()

    async def write_line(self, verb: Union[str, Verb], params: Optional[Params] = None) -> None:
        """Send one line. Oversized lines are rejected before any byte is written."""
        line = encode_line(verb, params)
        self.logger.debug("-> %s", normalize_verb(verb))
        await self._write(line)

    async def write_data(self, raw: Params) -> None:
        """Send ``raw`` as D lines.

        If a later chunk fails after earlier ones went out, the current
        transaction is corrupted; the caller should cancel it.
        """
        for line in encode_data(raw):
            await self._write(line)

    async def write_error(self, err: AssuanError) -> None:
        await self.write_line(Verb.ERR, err.to_wire())

    async def write_comment(self, text: Params) -> None:
        await self._write(encode_comment(text))

    async def write_status(self, keyword: str, text: Params = "") -> None:
        await self._write(encode_status(keyword, text))

    async def inquire(self, keyword: str, params: Optional[str] = None) -> bytes:
        """Server side: ask the client for data named ``keyword``.

        Collects D lines until END. A CAN from the client raises a canceled
        AssuanError, which a handler may simply let propagate to the peer.
        """
        await self.write_line(Verb.INQUIRE, f"{keyword} {params}" if params else keyword)
        data = bytearray()
        while True:
            line = await self.read_line()
            if line.verb == Verb.DATA:
                data += line.params
            elif line.verb == Verb.END:
                return bytes(data)
            elif line.verb == Verb.CAN:
                raise assuan_error(ErrorCode.ASS_CANCELED, "inquire canceled")
            else:
                raise assuan_error(ErrorCode.ASS_UNEXPECTED_CMD, f"unexpected {line.verb} during inquire")

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as exc:
            self.logger.debug("Error during writer cleanup: %s", exc)

    @property
    def peername(self) -> str:
        return str(self.writer.get_extra_info("peername") or "")


__all__ = ["Pipe", "StatusCallback"]
