"""
Lambda entry points. Each module exposes ``handler(event, context)``.

    start.handler    POST /start   (authorized)
    stop.handler     POST /stop    (authorized)
    status.handler   GET  /status  (public)
    auth.handler     REQUEST authorizer for start/stop
"""

from .auth import PasswordAuthorizer
from .start import StartHandler
from .status import StatusHandler
from .stop import StopHandler

__all__ = ["PasswordAuthorizer", "StartHandler", "StatusHandler", "StopHandler"]
