"""
Audio device interfaces consumed by the recording and playback services.

The services only talk to these abstractions; sounddevice_backend provides
the PortAudio implementations and tests substitute in-memory fakes.
"""
from abc import ABC, abstractmethod
from typing import Callable

from tonote.config import AudioSettings


class CaptureSession(ABC):
    """One open capture, writing into its own fresh buffer."""

    @abstractmethod
    def stop(self) -> bytes:
        """
        Halt capture and read back everything captured.

        Returns:
            Captured audio bytes (empty if nothing was captured)

        Raises:
            CaptureDeviceError: If the captured data cannot be read back
        """
        raise NotImplementedError()


class CaptureDevice(ABC):
    """Microphone-like device."""

    @abstractmethod
    def open(self, settings: AudioSettings) -> CaptureSession:
        """
        Begin capturing into a fresh buffer.

        Raises:
            CaptureDeviceError: If the device is busy, denied or misconfigured
        """
        raise NotImplementedError()


class PlaybackDevice(ABC):
    """Speaker-like device playing one buffer at a time."""

    @abstractmethod
    def play(self, data: bytes, on_finished: Callable[[], None]):
        """
        Start playing data without blocking.

        Args:
            data: Audio bytes as produced by a capture session
            on_finished: End-of-playback signal; may be called from the
                audio thread, and also fires when playback is stopped

        Raises:
            PlaybackDeviceError: If playback cannot start
        """
        raise NotImplementedError()

    @abstractmethod
    def stop(self):
        """Halt the active playback, if any."""
        raise NotImplementedError()

    def close(self):
        """Release device resources."""
        self.stop()
