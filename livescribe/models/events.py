"""Event models carried through the dispatcher."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class AudioChunk:
    """One encoded recording interval, ready to be streamed."""
    data: bytes  # WAV-encoded audio
    sequence_number: int  # 1-based, per session
    captured_at: float  # Unix timestamp when the interval closed
    sample_rate: int = 16000
    channels: int = 1
    duration_ms: Optional[int] = None
    final: bool = False  # True for the tail chunk flushed on stop


@dataclass
class InboundEvent:
    """An event pushed by the backend over the streaming channel."""
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    received_at: float = field(default_factory=time.time)

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)
