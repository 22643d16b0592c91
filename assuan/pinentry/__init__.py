from .server import FLAVOR, PINENTRY_PROTO, PinentryCallbacks, build_proto, pinentry_error, serve_pinentry
from .settings import PinentryOptions, PinentrySettings

__all__ = [
    "FLAVOR",
    "PINENTRY_PROTO",
    "PinentryCallbacks",
    "PinentryOptions",
    "PinentrySettings",
    "build_proto",
    "pinentry_error",
    "serve_pinentry",
]
