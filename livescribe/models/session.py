"""Session-related data models."""

import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

ROOM_ID_ALPHABET = string.ascii_lowercase + string.digits
ROOM_ID_LENGTH = 8


class SessionState(Enum):
    """Lifecycle state of a recording session."""
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"


def generate_room_id(length: int = ROOM_ID_LENGTH) -> str:
    """Generate an opaque base-36 room identifier."""
    return "".join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(length))


@dataclass
class SessionContext:
    """Per-client session context owned by the SessionController."""
    room_id: str = field(default_factory=generate_room_id)
    state: SessionState = SessionState.IDLE
    started_at: Optional[datetime] = None
    chunks_sent: int = 0
    channel_lost: bool = False

    @property
    def is_recording(self) -> bool:
        return self.state in (SessionState.STARTING, SessionState.ACTIVE)
