"""Terminal presentation for livescribe."""

from .console import TranscriptView

__all__ = ["TranscriptView"]
