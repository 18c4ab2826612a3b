"""Error taxonomy for the live transcription client."""


class LiveScribeError(Exception):
    """Base class for livescribe errors."""


class MicrophonePermissionError(LiveScribeError, PermissionError):
    """Microphone access was denied or no input device is available.

    Fatal to a session start: the caller must surface it to the user.
    """

    def __init__(self, message: str = None):
        super().__init__(
            message or
            "Microphone access failed. Check that an input device is connected "
            "and that this application is allowed to use it."
        )


class MicrophoneBusyError(MicrophonePermissionError):
    """The microphone is already held by another capture."""


class ControlRequestError(LiveScribeError):
    """A start/stop control request to the backend failed."""

    def __init__(self, endpoint: str, message: str, status: int = None):
        self.endpoint = endpoint
        self.status = status
        super().__init__(f"{endpoint}: {message}")


class TransportError(LiveScribeError):
    """The streaming connection could not be established."""
