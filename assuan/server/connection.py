from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from assuan.protocol import Pipe
from assuan.protocol.framing import Params


@dataclass
class ConnectionContext:
    """Per-connection view handed to command handlers.

    ``state`` belongs to this connection alone; the dispatcher replaces it on
    RESET unless the protocol defines its own RESET handler.
    """

    pipe: Pipe
    state: Any = None
    peername: str = ""

    async def send_data(self, raw: Params) -> None:
        await self.pipe.write_data(raw)

    async def send_status(self, keyword: str, text: Params = "") -> None:
        await self.pipe.write_status(keyword, text)

    async def inquire(self, keyword: str, params: Optional[str] = None) -> bytes:
        return await self.pipe.inquire(keyword, params)
