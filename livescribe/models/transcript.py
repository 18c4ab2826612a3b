"""Transcript-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Tuple

UNKNOWN_SPEAKER = "?"


class Finality(Enum):
    """Whether a segment may still be superseded by the backend."""
    PARTIAL = "partial"
    FINAL = "final"


@dataclass(frozen=True)
class TranscriptSegment:
    """One transcript entry, exactly as received from the backend."""
    text: str
    speaker_id: str = UNKNOWN_SPEAKER
    finality: Finality = Finality.PARTIAL
    source_event: str = ""  # Inbound event name this segment came from
    received_at: datetime = field(default_factory=datetime.now, compare=False)

    def __post_init__(self):
        if not self.text:
            raise ValueError("TranscriptSegment text must be non-empty")

    @property
    def is_final(self) -> bool:
        return self.finality is Finality.FINAL


@dataclass(frozen=True)
class TranscriptSnapshot:
    """Read-only view of the client state for presentation."""
    recording: bool
    segments: Tuple[TranscriptSegment, ...]
    progress: float
    chapter_titles: str
    room_id: str = ""
    channel_lost: bool = False
