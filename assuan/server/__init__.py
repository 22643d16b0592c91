from .connection import ConnectionContext
from .dispatcher import Dispatcher, serve, split_option
from .proto import CommandHandler, OptionSetter, ProtoInfo
from .server import AssuanServer, serve_stdio

__all__ = [
    "ConnectionContext",
    "Dispatcher",
    "serve",
    "split_option",
    "CommandHandler",
    "OptionSetter",
    "ProtoInfo",
    "AssuanServer",
    "serve_stdio",
]
