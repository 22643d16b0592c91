import asyncio
import io

import pytest

from assuan.client import Session
from assuan.protocol import (
    AssuanError,
    ConnectionClosed,
    ErrorCode,
    ErrorSource,
    MissingInquireData,
    assuan_error,
)
from assuan.server import ProtoInfo


def options_state():
    return {}


def set_option(state, key, value):
    if key == "readonly":
        raise AssuanError(ErrorSource.USER_2, ErrorCode.NOT_SUPPORTED, "store", "read-only option")
    state[key] = value


async def dump(ctx, params):
    for key in sorted(ctx.state):
        await ctx.send_data(f"{key}={ctx.state[key]};")


async def echo(ctx, params):
    await ctx.send_data(params)


async def big(ctx, params):
    await ctx.send_data(b"\n%" * 2000)


async def progress(ctx, params):
    await ctx.send_status("PROGRESS", "1 of 2")
    await ctx.send_status("PROGRESS", "2 of 2")


async def ask(ctx, params):
    first = await ctx.inquire("NAME", "please")
    second = await ctx.inquire("GREETING")
    await ctx.send_data(second + b", " + first)


def missing(ctx, params):
    raise assuan_error(ErrorCode.NOT_FOUND, "no such key")


PROTO = ProtoInfo(
    greeting="store ready",
    handlers={"DUMP": dump, "ECHO": echo, "BIG": big, "PROGRESS": progress, "ASK": ask, "MISSING": missing},
    state_factory=options_state,
    set_option=set_option,
)


@pytest.mark.asyncio
async def test_open_records_greeting(connect):
    session, _ = await connect(PROTO)
    assert session.greeting == "store ready"
    assert not session.closed


@pytest.mark.asyncio
async def test_open_fails_on_err_greeting(stream_pair):
    (reader, writer), (_, peer) = stream_pair
    peer.write(b"ERR 16777217 not today <gpg>\n")
    await peer.drain()
    with pytest.raises(AssuanError) as excinfo:
        await Session.open(reader, writer)
    assert excinfo.value.source == ErrorSource.GCRYPT
    assert excinfo.value.code == ErrorCode.GENERAL
    assert excinfo.value.source_name == "gpg"


@pytest.mark.asyncio
async def test_simple_command_without_data(connect):
    session, _ = await connect(PROTO)
    assert await session.simple_command("NOP") == b""


@pytest.mark.asyncio
async def test_simple_command_collects_data(connect):
    session, _ = await connect(PROTO)
    assert await session.simple_command("ECHO", "a%b\r\nc") == b"a%b\r\nc"
    assert await session.simple_command("BIG") == b"\n%" * 2000


@pytest.mark.asyncio
async def test_server_error_is_raised(connect):
    session, _ = await connect(PROTO)
    with pytest.raises(AssuanError) as excinfo:
        await session.simple_command("MISSING")
    assert excinfo.value == assuan_error(ErrorCode.NOT_FOUND, "no such key")

    with pytest.raises(AssuanError) as excinfo:
        await session.simple_command("NOSUCH")
    assert excinfo.value.code == ErrorCode.ASS_UNKNOWN_CMD
    # the session stays usable after a structured error
    assert await session.simple_command("NOP") == b""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, greeting",
    [
        (b"world", b"hello"),
        (io.BytesIO(b"world"), io.BytesIO(b"hello")),
        ("world", "hello"),
    ],
)
async def test_transact_answers_inquiries(connect, name, greeting):
    session, _ = await connect(PROTO)
    result = await session.transact("ASK", answers={"NAME": name, "GREETING": greeting})
    assert result == b"hello, world"


@pytest.mark.asyncio
async def test_transact_with_missing_answer_cancels(connect):
    seen = []

    async def strict_ask(ctx, params):
        try:
            await ctx.inquire("SECRET")
        except AssuanError as exc:
            seen.append(exc)
            raise

    session, _ = await connect(PROTO.with_handlers({"ASK": strict_ask}))
    with pytest.raises(MissingInquireData) as excinfo:
        await session.transact("ASK", answers={"OTHER": b"x"})
    assert excinfo.value.keyword == "SECRET"
    assert excinfo.value.code == ErrorCode.ASS_NO_INQUIRE_CB

    assert seen and seen[0].code == ErrorCode.ASS_CANCELED
    # the canceled command's reply was consumed, so the next answer lines up
    assert await session.simple_command("NOP") == b""
    assert await session.simple_command("ECHO", "after") == b"after"


@pytest.mark.asyncio
async def test_canceled_inquiry_skips_leftover_data(connect):
    async def lenient_ask(ctx, params):
        try:
            await ctx.inquire("SECRET")
        except AssuanError:
            await ctx.send_data("fallback")
            # asks again; the client cancels this one as well
            try:
                await ctx.inquire("SECRET")
            except AssuanError:
                pass

    session, _ = await connect(PROTO.with_handlers({"ASK": lenient_ask}))
    with pytest.raises(MissingInquireData):
        await session.transact("ASK", answers={})
    assert await session.simple_command("ECHO", "next") == b"next"


@pytest.mark.asyncio
async def test_simple_command_cannot_answer_inquiry(connect):
    session, _ = await connect(PROTO)
    with pytest.raises(MissingInquireData):
        await session.simple_command("ASK")
    assert await session.simple_command("NOP") == b""


@pytest.mark.asyncio
async def test_option_success_and_failure(connect):
    session, _ = await connect(PROTO)
    await session.option("ttyname", "/dev/pts/3")
    await session.option("no-grab")
    assert await session.simple_command("DUMP") == b"no-grab=;ttyname=/dev/pts/3;"

    with pytest.raises(AssuanError) as excinfo:
        await session.option("readonly", "1")
    assert excinfo.value.code == ErrorCode.NOT_SUPPORTED
    assert excinfo.value.message == "read-only option"


@pytest.mark.asyncio
async def test_reset_clears_server_state(connect):
    session, _ = await connect(PROTO)
    await session.option("lc-ctype", "C")
    await session.reset()
    assert await session.simple_command("DUMP") == b""


@pytest.mark.asyncio
async def test_reset_error_is_raised(connect):
    def refuse(ctx, params):
        raise assuan_error(ErrorCode.ASS_GENERAL, "busy")

    session, _ = await connect(PROTO.with_handlers({"RESET": refuse}))
    with pytest.raises(AssuanError) as excinfo:
        await session.reset()
    assert excinfo.value.message == "busy"


@pytest.mark.asyncio
async def test_status_lines_reach_callback(connect):
    seen = []
    session, _ = await connect(PROTO, on_status=lambda keyword, text: seen.append((keyword, text)))
    assert await session.simple_command("PROGRESS") == b""
    assert seen == [("PROGRESS", "1 of 2"), ("PROGRESS", "2 of 2")]


@pytest.mark.asyncio
async def test_status_lines_ignored_without_callback(connect):
    session, _ = await connect(PROTO)
    assert await session.simple_command("PROGRESS") == b""


@pytest.mark.asyncio
async def test_close_sends_bye(connect):
    session, task = await connect(PROTO)
    async with session:
        assert await session.simple_command("NOP") == b""
    assert session.closed
    await asyncio.wait({task}, timeout=5)
    assert task.done()

    with pytest.raises(ConnectionClosed):
        await session.simple_command("NOP")
    # closing twice is harmless
    await session.close()


@pytest.mark.asyncio
async def test_crlf_server_lines(stream_pair):
    (reader, writer), (peer_reader, peer) = stream_pair
    peer.write(b"OK hello\r\n")
    await peer.drain()
    session = await Session.open(reader, writer)
    assert session.greeting == "hello"

    peer.write(b"OK\r\n")
    await peer.drain()
    await session.reset()
    assert await peer_reader.readline() == b"RESET\n"
