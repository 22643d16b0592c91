from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Optional

from assuan.protocol import (
    AssuanError,
    ConnectionClosed,
    MissingInquireData,
    Pipe,
    UnexpectedResponse,
    Verb,
)
from assuan.protocol.framing import Params
from assuan.protocol.pipe import StatusCallback


async def _payload_bytes(source: Any) -> bytes:
    """Turn an inquire answer into bytes: buffers as-is, streams read once, the rest via str()."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    read = getattr(source, "read", None)
    if callable(read):
        data = read()
        if inspect.isawaitable(data):
            data = await data
        return data.encode() if isinstance(data, str) else bytes(data)
    return str(source).encode()


class Session:
    """Client side of an Assuan connection.

    Build one with :meth:`open`, which consumes the server's greeting. A
    session is meant for a single caller; concurrent commands on the same
    session must be serialized by the owner.
    """

    def __init__(self, pipe: Pipe, greeting: str = "") -> None:
        self.pipe = pipe
        self.greeting = greeting

    @classmethod
    async def open(
        cls,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        logger: Optional[logging.Logger] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> "Session":
        pipe = Pipe(reader, writer, on_status=on_status, logger=logger or logging.getLogger(__name__))
        line = await pipe.read_line()
        if line.verb == Verb.ERR:
            raise AssuanError.from_wire(line.text)
        pipe.logger.info("Connected to server: %s", line.text or line.verb)
        return cls(pipe, greeting=line.text)

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self.pipe.closed

    async def close(self) -> None:
        """Send BYE and close the stream; the server's OK is not awaited."""
        if self.pipe.closed:
            return
        try:
            await self.pipe.write_line(Verb.BYE)
        finally:
            await self.pipe.close()

    async def reset(self) -> None:
        await self.pipe.write_line(Verb.RESET)
        line = await self.pipe.read_line()
        if line.verb == Verb.ERR:
            raise AssuanError.from_wire(line.text)
        if line.verb != Verb.OK:
            raise UnexpectedResponse("not an OK response")

    async def simple_command(self, verb: str, params: Optional[Params] = None) -> bytes:
        """Send a command and collect the data the server sends back.

        There is nothing to answer an INQUIRE with here, so one cancels the
        command and raises :class:`MissingInquireData`.
        """
        return await self.transact(verb, params, None)

    async def transact(
        self,
        verb: str,
        params: Optional[Params] = None,
        answers: Optional[Mapping[str, Any]] = None,
    ) -> bytes:
        """Like :meth:`simple_command`, answering INQUIREs from ``answers``.

        Answer values may be bytes-like, a stream read once through ``read()``,
        or anything convertible to str. An INQUIRE for a missing keyword is
        answered with CAN and fails the call once the server has finished the
        canceled command, leaving the session ready for the next one.
        """
        if self.pipe.closed:
            raise ConnectionClosed("session is closed")
        await self.pipe.write_line(verb, params)

        data = bytearray()
        while True:
            line = await self.pipe.read_line()
            if line.verb == Verb.OK:
                return bytes(data)
            if line.verb == Verb.ERR:
                raise AssuanError.from_wire(line.text)
            if line.verb == Verb.DATA:
                data += line.params
            elif line.verb == Verb.INQUIRE:
                await self._answer_inquire(line.text, answers or {})

    async def _answer_inquire(self, inquiry: str, answers: Mapping[str, Any]) -> None:
        keyword = inquiry.split(" ", 1)[0]
        if keyword not in answers:
            self.pipe.logger.warning("Server inquired %s, no data to answer with", keyword)
            await self.pipe.write_line(Verb.CAN)
            await self._discard_reply()
            raise MissingInquireData(keyword)
        await self.pipe.write_data(await _payload_bytes(answers[keyword]))
        await self.pipe.write_line(Verb.END)

    async def _discard_reply(self) -> None:
        """Read past the rest of a canceled command, up to its OK or ERR."""
        while True:
            line = await self.pipe.read_line()
            if line.verb in (Verb.OK, Verb.ERR):
                return
            if line.verb == Verb.INQUIRE:
                await self.pipe.write_line(Verb.CAN)

    async def option(self, name: str, value: Optional[str] = None) -> None:
        """Set a connection option. Only an ERR answer is treated as failure."""
        await self.pipe.write_line(Verb.OPTION, name if value is None else f"{name} = {value}")
        line = await self.pipe.read_line()
        if line.verb == Verb.ERR:
            raise AssuanError.from_wire(line.text)


__all__ = ["Session"]
