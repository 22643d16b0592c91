from __future__ import annotations

import asyncio
import logging
from typing import Optional

from assuan.protocol import READ_LIMIT
from assuan.protocol.pipe import StatusCallback

from .session import Session

logger = logging.getLogger(__name__)


class TransportError(OSError):
    """Connecting or spawning the peer failed before the handshake."""


class ProcessSession(Session):
    """Session speaking to a child process over its stdin/stdout."""

    process: asyncio.subprocess.Process

    async def close(self) -> None:
        try:
            await super().close()
        finally:
            rc = await self.process.wait()
            logger.debug("Peer process %s exited with %s", self.process.pid, rc)


async def open_unix(
    path: str,
    *,
    logger: Optional[logging.Logger] = None,
    on_status: Optional[StatusCallback] = None,
) -> Session:
    """Connect to a server listening on a Unix domain socket."""
    try:
        reader, writer = await asyncio.open_unix_connection(path, limit=READ_LIMIT)
    except OSError as exc:
        raise TransportError(f"cannot connect to {path}: {exc}") from exc
    return await Session.open(reader, writer, logger=logger, on_status=on_status)


async def open_tcp(
    host: str,
    port: int,
    *,
    logger: Optional[logging.Logger] = None,
    on_status: Optional[StatusCallback] = None,
) -> Session:
    """Connect to a server listening on TCP."""
    try:
        reader, writer = await asyncio.open_connection(host, port, limit=READ_LIMIT)
    except OSError as exc:
        raise TransportError(f"cannot connect to {host}:{port}: {exc}") from exc
    return await Session.open(reader, writer, logger=logger, on_status=on_status)


async def spawn(
    program: str,
    *args: str,
    logger: Optional[logging.Logger] = None,
    on_status: Optional[StatusCallback] = None,
) -> ProcessSession:
    """Start ``program`` and talk to it over its stdin/stdout.

    The child's stderr is inherited. Closing the session sends BYE, closes
    the child's stdin and waits for it to exit.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            program,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            limit=READ_LIMIT,
        )
    except OSError as exc:
        raise TransportError(f"cannot start {program}: {exc}") from exc
    assert process.stdin is not None and process.stdout is not None

    try:
        session = await ProcessSession.open(process.stdout, process.stdin, logger=logger, on_status=on_status)
    except BaseException:
        if process.returncode is None:
            process.kill()
        await process.wait()
        raise
    session.process = process
    return session


__all__ = ["TransportError", "ProcessSession", "open_unix", "open_tcp", "spawn"]
