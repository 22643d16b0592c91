"""Terminal pinentry: speaks Assuan on stdin/stdout and prompts on /dev/tty."""

from __future__ import annotations

import asyncio
import getpass
import logging
import sys
from typing import Optional

from assuan.protocol import ConnectionClosed
from assuan.settings import load_settings

from .server import PinentryCallbacks, serve_pinentry
from .settings import PinentrySettings

TTY = "/dev/tty"

logger = logging.getLogger("assuan.pinentry")


def _banner(settings: PinentrySettings, tty) -> None:
    if settings.title:
        tty.write(settings.title + "\n")
    if settings.error:
        tty.write(settings.error + "\n")
    if settings.desc:
        tty.write(settings.desc + "\n")


def tty_get_pin(settings: PinentrySettings) -> Optional[str]:
    with open(TTY, "w") as tty:
        _banner(settings, tty)
    try:
        pin = getpass.getpass((settings.prompt or "PIN:") + " ")
        if settings.repeat_prompt:
            again = getpass.getpass(settings.repeat_prompt + " ")
            if again != pin:
                with open(TTY, "w") as tty:
                    tty.write((settings.repeat_error or "PINs do not match") + "\n")
                return None
    except (EOFError, KeyboardInterrupt):
        return None
    return pin


def tty_confirm(settings: PinentrySettings) -> bool:
    with open(TTY, "r+") as tty:
        _banner(settings, tty)
        ok = settings.ok_button or "y"
        tty.write(f"Confirm? [{ok}/N] ")
        tty.flush()
        answer = tty.readline().strip()
    return bool(answer) and answer.lower() in {ok.lower(), "y", "yes"}


def tty_message(settings: PinentrySettings) -> None:
    with open(TTY, "r+") as tty:
        _banner(settings, tty)
        tty.write("Press Enter to continue")
        tty.flush()
        tty.readline()


def main() -> int:
    settings = load_settings()
    if settings.log_file is not None:
        logging.basicConfig(level=settings.log_level, filename=str(settings.log_file))
    else:
        logging.basicConfig(level=settings.log_level, stream=sys.stderr)

    callbacks = PinentryCallbacks(
        get_pin=lambda s: asyncio.to_thread(tty_get_pin, s),
        confirm=lambda s: asyncio.to_thread(tty_confirm, s),
        message=lambda s: asyncio.to_thread(tty_message, s),
    )
    try:
        asyncio.run(serve_pinentry(callbacks, settings.pinentry_greeting))
    except ConnectionClosed:
        logger.info("Client went away without BYE")
    except OSError as exc:
        logger.error("Pinentry failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
