"""Services layer for livescribe session logic."""

from .control_client import ControlClient
from .session_controller import SessionController

__all__ = [
    "ControlClient",
    "SessionController",
]
