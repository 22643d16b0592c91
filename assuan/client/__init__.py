from .session import Session
from .transport import ProcessSession, TransportError, open_tcp, open_unix, spawn

__all__ = ["Session", "ProcessSession", "TransportError", "open_tcp", "open_unix", "spawn"]
