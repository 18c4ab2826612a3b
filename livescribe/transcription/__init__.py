"""Transcript aggregation for livescribe."""

from .aggregator import TranscriptAggregator, SEGMENT_EVENTS

__all__ = [
    "TranscriptAggregator",
    "SEGMENT_EVENTS",
]
