"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class CaptureStats:
    """Audio capture statistics."""
    is_capturing: bool
    duration_seconds: float
    sample_rate: int
    chunk_interval_ms: int
    total_chunks: int
