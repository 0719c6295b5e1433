"""
PortAudio capture and playback devices via sounddevice.

Captured frames are collected by the stream callback and wrapped in WAV
bytes when the session stops. Playback streams a decoded WAV buffer from
the output callback and reports completion through finished_callback.
"""
import logging
import threading
from typing import Callable, List, Optional, Union

import numpy as np
import sounddevice as sd

from tonote.audio.devices import CaptureDevice, CaptureSession, PlaybackDevice
from tonote.audio.wav import decode_wav, encode_wav
from tonote.config import AudioSettings
from tonote.core.exceptions import CaptureDeviceError, PlaybackDeviceError

logger = logging.getLogger(__name__)


class SoundDeviceCaptureSession(CaptureSession):
    """Input stream capturing into an in-memory frame list."""

    def __init__(self, settings: AudioSettings):
        self.settings = settings
        self._chunks: List[np.ndarray] = []
        self._lock = threading.Lock()
        self._stream: Optional[sd.InputStream] = sd.InputStream(
            samplerate=settings.sample_rate,
            channels=settings.channels,
            dtype=settings.dtype,
            device=settings.input_device,
            callback=self._callback,
        )

    def _callback(self, indata, frames, time_info, status):
        """Sounddevice callback for audio input."""
        if status:
            logger.debug("Capture status: %s", status)
        with self._lock:
            self._chunks.append(indata.copy())

    def start(self):
        self._stream.start()

    def stop(self) -> bytes:
        stream, self._stream = self._stream, None
        if stream is None:
            return b""
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as e:
            raise CaptureDeviceError(f"Failed to stop capture: {e}") from e

        with self._lock:
            chunks, self._chunks = self._chunks, []
        if not chunks:
            return b""
        return encode_wav(np.concatenate(chunks), self.settings.sample_rate)


class SoundDeviceCapture(CaptureDevice):
    """Default (or configured) microphone."""

    def open(self, settings: AudioSettings) -> CaptureSession:
        try:
            session = SoundDeviceCaptureSession(settings)
        except (sd.PortAudioError, ValueError) as e:
            raise CaptureDeviceError(f"Could not open input device: {e}") from e

        try:
            session.start()
        except sd.PortAudioError as e:
            session.stop()
            raise CaptureDeviceError(f"Could not start capture: {e}") from e

        logger.debug("Capture started at %d Hz, %d channel(s)",
                     settings.sample_rate, settings.channels)
        return session


class SoundDevicePlayback(PlaybackDevice):
    """Default (or configured) speaker."""

    def __init__(self, device: Optional[Union[str, int]] = None):
        """
        Args:
            device: Output device name or index (None = system default)
        """
        self.device = device
        self._stream: Optional[sd.OutputStream] = None
        self._lock = threading.Lock()

    def play(self, data: bytes, on_finished: Callable[[], None]):
        self.stop()

        try:
            samples, sample_rate = decode_wav(data)
        except ValueError as e:
            raise PlaybackDeviceError(f"Could not decode recording: {e}") from e

        position = 0

        def callback(outdata, frames, time_info, status):
            """Sounddevice callback for audio output."""
            nonlocal position
            if status:
                logger.debug("Playback status: %s", status)
            chunk = samples[position:position + frames]
            outdata[:len(chunk)] = chunk
            outdata[len(chunk):] = 0
            position += len(chunk)
            if position >= len(samples):
                raise sd.CallbackStop()

        try:
            stream = sd.OutputStream(
                samplerate=sample_rate,
                channels=samples.shape[1],
                dtype=samples.dtype.name,
                device=self.device,
                callback=callback,
                finished_callback=on_finished,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise PlaybackDeviceError(f"Could not start playback: {e}") from e

        with self._lock:
            self._stream = stream

    def stop(self):
        with self._lock:
            stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            # Closing an active stream discards pending buffers
            stream.close()
        except sd.PortAudioError as e:
            logger.warning("Error closing playback stream: %s", e)
