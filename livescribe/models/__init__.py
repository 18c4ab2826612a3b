"""Data models for the livescribe client."""

from .transcript import Finality, TranscriptSegment, TranscriptSnapshot, UNKNOWN_SPEAKER
from .session import SessionState, SessionContext, generate_room_id
from .audio import CaptureStats
from .events import AudioChunk, InboundEvent

__all__ = [
    "Finality",
    "TranscriptSegment",
    "TranscriptSnapshot",
    "UNKNOWN_SPEAKER",
    "SessionState",
    "SessionContext",
    "generate_room_id",
    "CaptureStats",
    "AudioChunk",
    "InboundEvent",
]
