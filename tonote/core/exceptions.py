"""
Exception hierarchy for toNote.
"""


class ToNoteError(Exception):
    """Base exception for all toNote errors."""


class DecodeError(ToNoteError, ValueError):
    """Raised when a serialized record cannot be turned back into a model."""


class UnparseableContentError(DecodeError):
    """Raised when a content item record matches none of the known variants."""

    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record


class CommandError(ToNoteError):
    """Raised when a command cannot be executed or undone."""


class RecordingStateError(ToNoteError, RuntimeError):
    """Raised when start() is called while a recording session is active."""


class AudioDeviceError(ToNoteError):
    """Base class for audio device failures."""


class CaptureDeviceError(AudioDeviceError):
    """Capture device is busy, denied, misconfigured or unreadable."""


class PlaybackDeviceError(AudioDeviceError):
    """Playback device could not start playing a buffer."""
