from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from assuan import __version__
from assuan.protocol import AssuanError, ErrorCode, ErrorSource
from assuan.server import ConnectionContext, ProtoInfo, serve_stdio

from .settings import PinentrySettings

logger = logging.getLogger(__name__)

FLAVOR = "python"


def pinentry_error(code: ErrorCode, message: str) -> AssuanError:
    return AssuanError(ErrorSource.PINENTRY, code, "pinentry", message)


@dataclass
class PinentryCallbacks:
    """User interface hooks; each receives a snapshot of the connection's settings.

    ``get_pin`` returns the entered PIN (None when the user cancels),
    ``confirm`` returns whether the user accepted, ``message`` returns
    nothing. Any of them may be coroutine functions or raise AssuanError.
    """

    get_pin: Optional[Callable[[PinentrySettings], Any]] = None
    confirm: Optional[Callable[[PinentrySettings], Any]] = None
    message: Optional[Callable[[PinentrySettings], Any]] = None


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _setter(field: str):
    def handler(ctx: ConnectionContext, params: str) -> None:
        setattr(ctx.state, field, params)

    return handler


def set_timeout(ctx: ConnectionContext, params: str) -> None:
    try:
        ctx.state.timeout = int(params)
    except ValueError:
        raise pinentry_error(ErrorCode.INV_VALUE, "invalid timeout value") from None


def reset_state(ctx: ConnectionContext, params: str) -> None:
    ctx.state = PinentrySettings()


async def get_info(ctx: ConnectionContext, params: str) -> None:
    what = params.strip().lower()
    if what == "version":
        await ctx.send_data(__version__)
    elif what == "pid":
        await ctx.send_data(str(os.getpid()))
    elif what == "flavor":
        await ctx.send_data(FLAVOR)
    else:
        raise AssuanError(ErrorSource.ASSUAN, ErrorCode.ASS_PARAMETER, "assuan", "unknown value for WHAT")


# OPTION key -> (options attribute, value used instead of the given one)
_OPTION_FIELDS: Dict[str, Tuple[str, Any]] = {
    "grab": ("grab", True),
    "no-grab": ("grab", False),
    "ttytype": ("tty_type", None),
    "ttyname": ("tty_name", None),
    "ttyalert": ("tty_alert", None),
    "lc-ctype": ("lc_ctype", None),
    "lc-messages": ("lc_messages", None),
    "owner": ("owner", None),
    "touch-file": ("touch_file", None),
    "parent-wid": ("parent_wid", None),
    "invisible-char": ("invisible_char", None),
    "allow-external-password-cache": ("allow_external_password_cache", True),
}


def set_option(state: PinentrySettings, key: str, value: str) -> None:
    entry = _OPTION_FIELDS.get(key)
    if entry is not None:
        attr, fixed = entry
        setattr(state.options, attr, value if fixed is None else fixed)
        return
    if key.startswith("default-"):
        return
    raise pinentry_error(ErrorCode.UNKNOWN_OPTION, f"unknown option: {key}")


PINENTRY_PROTO = ProtoInfo(
    greeting="assuan pinentry",
    handlers={
        "SETDESC": _setter("desc"),
        "SETPROMPT": _setter("prompt"),
        "SETREPEAT": _setter("repeat_prompt"),
        "SETREPEATERROR": _setter("repeat_error"),
        "SETERROR": _setter("error"),
        "SETOK": _setter("ok_button"),
        "SETNOTOK": _setter("not_ok_button"),
        "SETCANCEL": _setter("cancel_button"),
        "SETQUALITYBAR": _setter("quality_bar"),
        "SETTITLE": _setter("title"),
        "SETTIMEOUT": set_timeout,
        "RESET": reset_state,
        "GETINFO": get_info,
    },
    help={
        "SETDESC": ["SETDESC <text>", "Set the long description of the dialog."],
        "SETPROMPT": ["SETPROMPT <text>", "Set the label of the entry field."],
        "SETTIMEOUT": ["SETTIMEOUT <seconds>", "Give up after this many seconds, 0 waits forever."],
        "GETPIN": ["GETPIN", "Ask the user for a PIN and return it as data."],
        "CONFIRM": ["CONFIRM", "Ask the user to accept or cancel."],
        "MESSAGE": ["MESSAGE", "Show the description with a single button."],
        "GETINFO": ["GETINFO version|pid|flavor", "Return information about this pinentry."],
    },
    state_factory=PinentrySettings,
    set_option=set_option,
)


def build_proto(callbacks: PinentryCallbacks, greeting: str = "") -> ProtoInfo:
    """Pinentry blueprint wired to ``callbacks``; the shared base is left untouched."""

    async def get_pin(ctx: ConnectionContext, params: str) -> None:
        if callbacks.get_pin is None:
            logger.info("GETPIN requested but not supported")
            raise pinentry_error(ErrorCode.NOT_IMPLEMENTED, "GETPIN op is not supported")
        pin = await _call(callbacks.get_pin, ctx.state.snapshot())
        if pin is None:
            raise pinentry_error(ErrorCode.CANCELED, "operation canceled")
        await ctx.send_data(pin)

    async def confirm(ctx: ConnectionContext, params: str) -> None:
        if callbacks.confirm is None:
            logger.info("CONFIRM requested but not supported")
            raise pinentry_error(ErrorCode.NOT_IMPLEMENTED, "CONFIRM op is not supported")
        if not await _call(callbacks.confirm, ctx.state.snapshot()):
            raise pinentry_error(ErrorCode.CANCELED, "operation canceled")

    async def message(ctx: ConnectionContext, params: str) -> Optional[AssuanError]:
        if callbacks.message is None:
            logger.info("MESSAGE requested but not supported")
            raise pinentry_error(ErrorCode.NOT_IMPLEMENTED, "MESSAGE op is not supported")
        return await _call(callbacks.message, ctx.state.snapshot())

    changes = {"greeting": greeting} if greeting else {}
    return PINENTRY_PROTO.with_handlers(
        {"GETPIN": get_pin, "CONFIRM": confirm, "MESSAGE": message},
        **changes,
    )


async def serve_pinentry(callbacks: PinentryCallbacks, greeting: str = "") -> None:
    """Run a pinentry over stdin/stdout until the client says BYE."""
    await serve_stdio(build_proto(callbacks, greeting))


__all__ = [
    "FLAVOR",
    "PinentryCallbacks",
    "PINENTRY_PROTO",
    "build_proto",
    "pinentry_error",
    "serve_pinentry",
]
