"""livescribe - real-time speech transcription client."""

__version__ = "0.1.0"
