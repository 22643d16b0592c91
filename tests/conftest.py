"""Pytest fixtures: real asyncio streams over a local socket pair."""

from __future__ import annotations

import asyncio
import contextlib
import socket

import pytest_asyncio

from assuan.client import Session
from assuan.server import ProtoInfo, serve


async def _stream_pair():
    left, right = socket.socketpair()
    a = await asyncio.open_connection(sock=left)
    b = await asyncio.open_connection(sock=right)
    return a, b


class RawPeer:
    """Client end that speaks raw bytes, for checking exact server output."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, task: asyncio.Task) -> None:
        self.reader = reader
        self.writer = writer
        self.task = task

    async def send(self, line: bytes) -> None:
        self.writer.write(line if line.endswith(b"\n") else line + b"\n")
        await self.writer.drain()

    async def recv(self) -> bytes:
        return (await asyncio.wait_for(self.reader.readline(), 5)).rstrip(b"\n")

    async def recv_until_terminal(self) -> list[bytes]:
        lines = []
        while True:
            line = await self.recv()
            lines.append(line)
            if line == b"OK" or line.startswith(b"OK ") or line.startswith(b"ERR "):
                return lines


@pytest_asyncio.fixture
async def stream_pair():
    (ar, aw), (br, bw) = await _stream_pair()
    yield (ar, aw), (br, bw)
    aw.close()
    bw.close()


@pytest_asyncio.fixture
async def connect():
    """connect(proto) -> (Session, serve task)."""
    cleanup = []

    async def _connect(proto: ProtoInfo, **session_kwargs):
        (sr, sw), (cr, cw) = await _stream_pair()
        task = asyncio.create_task(serve(sr, sw, proto))
        cleanup.append((task, sw, cw))
        session = await Session.open(cr, cw, **session_kwargs)
        return session, task

    yield _connect
    for task, sw, cw in cleanup:
        task.cancel()
        with contextlib.suppress(BaseException):
            await task
        sw.close()
        cw.close()


@pytest_asyncio.fixture
async def raw_peer():
    """raw_peer(proto) -> RawPeer with the greeting already consumed."""
    cleanup = []

    async def _raw(proto: ProtoInfo) -> RawPeer:
        (sr, sw), (cr, cw) = await _stream_pair()
        task = asyncio.create_task(serve(sr, sw, proto))
        cleanup.append((task, sw, cw))
        peer = RawPeer(cr, cw, task)
        peer.greeting = await peer.recv()
        return peer

    yield _raw
    for task, sw, cw in cleanup:
        task.cancel()
        with contextlib.suppress(BaseException):
            await task
        sw.close()
        cw.close()
