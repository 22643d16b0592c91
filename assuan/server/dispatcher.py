from __future__ import annotations

import asyncio
import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any, Dict, Optional, Tuple

from assuan.protocol import (
    BUILTIN_VERBS,
    AssuanError,
    ErrorCode,
    Line,
    Pipe,
    Verb,
    WireError,
    assuan_error,
    is_builtin,
    normalize_verb,
)

from .connection import ConnectionContext
from .proto import ProtoInfo

OPTION_RE = re.compile(r"^([\w\-]+)(?:\s*[ =]\s*(.*))?$", re.DOTALL)


def split_option(params: str) -> Tuple[str, str]:
    """``key``, ``key value`` or ``key=value`` -> (key, value)."""
    match = OPTION_RE.match(params.strip())
    if match is None:
        raise assuan_error(ErrorCode.ASS_INV_VALUE, "invalid OPTION syntax")
    return match.group(1), match.group(2) or ""


async def _invoke(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Dispatcher:
    """Serves one connection: reads commands and answers them until BYE or EOF."""

    def __init__(
        self,
        pipe: Pipe,
        proto: ProtoInfo,
        *,
        logger: Optional[logging.Logger] = None,
        peername: str = "",
    ) -> None:
        self.pipe = pipe
        self.proto = proto
        self.logger = logger or logging.getLogger(__name__)
        self.ctx = ConnectionContext(pipe=pipe, state=proto.new_state(), peername=peername or pipe.peername)
        self._builtins: Dict[str, Callable[[Line], Awaitable[None]]] = {
            Verb.NOP.value: self._nop,
            Verb.RESET.value: self._reset,
            Verb.OPTION.value: self._option,
            Verb.HELP.value: self._help,
        }

    async def run(self) -> None:
        self.logger.info("Accepted session %s", self.ctx.peername)
        try:
            await self.pipe.write_line(Verb.OK, self.proto.greeting)
            while True:
                line = await self.pipe.read_line()
                if line.verb == Verb.BYE:
                    await self.pipe.write_line(Verb.OK)
                    self.logger.info("Session finished")
                    return
                builtin = self._builtins.get(line.verb)
                if builtin is not None:
                    await builtin(line)
                else:
                    await self._dispatch(line)
        except (WireError, OSError) as exc:
            self.logger.info("I/O error, dropping session: %s", exc)
            raise
        except Exception as exc:
            self.logger.error("Fatal handler error, dropping session: %s", exc)
            raise

    async def _reply(self, func: Callable[..., Any], *args: Any) -> None:
        """Run a handler and answer OK or ERR; anything but AssuanError escapes."""
        try:
            result = await _invoke(func, *args)
        except AssuanError as exc:
            result = exc
        if isinstance(result, AssuanError):
            self.logger.info("... handler error: %s", result)
            await self.pipe.write_error(result)
        else:
            await self.pipe.write_line(Verb.OK)

    async def _dispatch(self, line: Line) -> None:
        self.logger.debug("Protocol command received: %s", line.verb)
        handler = self.proto.handlers.get(line.verb)
        if handler is None:
            self.logger.info("... unknown command: %s", line.verb)
            await self.pipe.write_error(assuan_error(ErrorCode.ASS_UNKNOWN_CMD, "unknown IPC command"))
            return
        await self._reply(handler, self.ctx, line.text)

    async def _nop(self, line: Line) -> None:
        await self.pipe.write_line(Verb.OK)

    async def _reset(self, line: Line) -> None:
        self.logger.info("Session reset")
        handler = self.proto.handlers.get(Verb.RESET.value)
        if handler is not None:
            await self._reply(handler, self.ctx, line.text)
            return
        self.ctx.state = self.proto.new_state()
        await self.pipe.write_line(Verb.OK)

    async def _option(self, line: Line) -> None:
        self.logger.debug("Option set request: %s", line.text)
        try:
            key, value = split_option(line.text)
        except AssuanError as exc:
            self.logger.info("... malformed request: %s", exc)
            await self.pipe.write_error(exc)
            return
        if self.proto.set_option is None:
            self.logger.info("... no options supported in this protocol")
            await self.pipe.write_error(assuan_error(ErrorCode.NOT_IMPLEMENTED, "not implemented"))
            return
        await self._reply(self.proto.set_option, self.ctx.state, key, value)

    async def _help(self, line: Line) -> None:
        topic = line.text.strip()
        if not topic:
            listed = list(BUILTIN_VERBS)
            listed += [verb for verb in self.proto.handlers if not is_builtin(verb)]
            for verb in listed:
                await self.pipe.write_comment(verb)
            await self.pipe.write_line(Verb.OK)
            return

        lines = self.proto.help.get(normalize_verb(topic))
        if lines is None:
            self.logger.info("Help requested for unknown command: %s", topic)
            await self.pipe.write_error(assuan_error(ErrorCode.NOT_FOUND, "not found"))
            return
        for text in lines:
            await self.pipe.write_comment(text)
        await self.pipe.write_line(Verb.OK)


async def serve(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    proto: ProtoInfo,
    *,
    logger: Optional[logging.Logger] = None,
    peername: str = "",
) -> None:
    """Serve a single connection until the client says BYE.

    Returns normally after BYE. EOF, I/O failures and fatal handler errors
    are raised to the caller; structured AssuanErrors never leave the loop.
    The stream is not closed here.
    """
    pipe = Pipe(reader, writer, logger=logger)
    await Dispatcher(pipe, proto, logger=logger, peername=peername).run()


__all__ = ["OPTION_RE", "split_option", "Dispatcher", "serve"]
