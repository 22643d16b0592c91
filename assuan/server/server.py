from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Optional

from assuan.protocol import READ_LIMIT, ConnectionClosed, WireError

from .dispatcher import serve
from .proto import ProtoInfo

logger = logging.getLogger(__name__)


class AssuanServer:
    """Accepts connections on TCP or a Unix socket and serves each in its own task.

    A failing connection is logged and closed; it never affects the others
    or the listener.
    """

    def __init__(
        self,
        proto: ProtoInfo,
        host: Optional[str] = None,
        port: Optional[int] = None,
        *,
        path: Optional[str] = None,
    ) -> None:
        if path is None and port is None:
            raise ValueError("either a TCP port or a Unix socket path is required")
        self.proto = proto
        self.host = host
        self.port = port
        self.path = path
        self._server: Optional[asyncio.AbstractServer] = None
        self._connections: set[asyncio.Task] = set()

    async def start(self) -> None:
        if self.path is not None:
            self._server = await asyncio.start_unix_server(self._handle_client, self.path, limit=READ_LIMIT)
            logger.info("Server listening on %s", self.path)
        else:
            self._server = await asyncio.start_server(
                self._handle_client, self.host, self.port, limit=READ_LIMIT
            )
            if self.port == 0:
                self.port = self._server.sockets[0].getsockname()[1]
            logger.info("Server listening on %s:%s", self.host, self.port)

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        assert self._server is not None
        await self._server.serve_forever()

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            pending = list(self._connections)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            await self._server.wait_closed()
            self._server = None
        if self.path is not None and os.path.exists(self.path):
            os.unlink(self.path)

    async def __aenter__(self) -> "AssuanServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connections.add(task)
        peer = writer.get_extra_info("peername") or self.path
        try:
            await serve(reader, writer, self.proto, peername=str(peer))
        except ConnectionClosed:
            logger.info("Client %s disconnected", peer)
        except (WireError, OSError) as exc:
            logger.info("Client %s connection dropped: %s", peer, exc)
        except Exception as exc:
            logger.exception("Serve fail for %s: %s", peer, exc)
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except Exception as e:
                logger.debug("Error during writer cleanup: %s", e)
            if task is not None:
                self._connections.discard(task)


async def serve_stdio(proto: ProtoInfo, *, logger: Optional[logging.Logger] = None) -> None:
    """Serve a single session over this process's stdin and stdout."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=READ_LIMIT)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
    writer = asyncio.StreamWriter(transport, protocol, reader, loop)
    try:
        await serve(reader, writer, proto, logger=logger)
    finally:
        writer.close()


__all__ = ["AssuanServer", "serve_stdio"]
