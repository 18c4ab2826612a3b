"""Streaming transport and event dispatch."""

from .channel import StreamingChannel
from .dispatcher import EventDispatcher
from . import topics

__all__ = [
    "StreamingChannel",
    "EventDispatcher",
    "topics",
]
