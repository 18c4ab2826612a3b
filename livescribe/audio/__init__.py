"""Audio capture and encoding module."""

from .capture import AudioCapture
from .encoder import WavChunkEncoder

__all__ = [
    'AudioCapture',
    'WavChunkEncoder'
]
