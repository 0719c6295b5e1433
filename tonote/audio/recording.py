"""
Voice recording state machine.

States: Idle -> Recording -> Idle. While recording, a repeating tick adds
exactly one tick interval (0.1 s by default) to the elapsed time; the
value is a fixed-increment count, not measured wall time. The ticker is
cancelled on every way out of Recording: stop(), force_stop() and close().
"""
import logging
import threading
from typing import Callable, Optional

from tonote.audio.devices import CaptureDevice, CaptureSession
from tonote.audio.ticker import RepeatingTicker
from tonote.config import AudioSettings
from tonote.core.events import EventBus, RecordingElapsed, RecordingStateChanged
from tonote.core.exceptions import CaptureDeviceError, RecordingStateError

logger = logging.getLogger(__name__)

# completion(data, duration); both None when there is nothing to keep
RecordingCompletion = Callable[[Optional[bytes], Optional[float]], None]


class RecordingService:
    """
    Captures one voice note at a time from a capture device.

    Callers check is_recording before start(); starting twice is a contract
    violation and raises RecordingStateError. Capture-init failures are
    logged and leave the service idle.
    """

    def __init__(self, device: CaptureDevice, settings: Optional[AudioSettings] = None,
                 event_bus: Optional[EventBus] = None,
                 ticker_factory: Callable[..., RepeatingTicker] = RepeatingTicker):
        """
        Args:
            device: Microphone-like capture device
            settings: Audio settings (sample rate, channels, tick interval)
            event_bus: Receives RecordingStateChanged and RecordingElapsed
            ticker_factory: Builds the tick source, called as
                ticker_factory(interval, callback)
        """
        self.device = device
        self.settings = settings or AudioSettings()
        self.event_bus = event_bus
        self._ticker_factory = ticker_factory
        self._lock = threading.Lock()
        self._session: Optional[CaptureSession] = None
        self._ticker = None
        self._token: Optional[object] = None
        self._ticks = 0
        self.last_error: Optional[Exception] = None

    @property
    def is_recording(self) -> bool:
        return self._session is not None

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed recording time in whole tick intervals."""
        with self._lock:
            return self._ticks * self.settings.tick_interval

    def _publish(self, event):
        if self.event_bus is not None:
            self.event_bus.publish(event)

    def start(self) -> bool:
        """
        Begin capturing into a fresh buffer and start the tick.

        Returns:
            True if recording started, False if the capture device failed

        Raises:
            RecordingStateError: If a recording is already in progress
        """
        if self.is_recording:
            raise RecordingStateError("Recording already in progress")

        try:
            session = self.device.open(self.settings)
        except CaptureDeviceError as e:
            self.last_error = e
            logger.warning("Could not start recording: %s", e)
            return False

        token = object()
        ticker = self._ticker_factory(self.settings.tick_interval, lambda: self._on_tick(token))
        with self._lock:
            self._session = session
            self._ticker = ticker
            self._token = token
            self._ticks = 0
        self.last_error = None
        ticker.start()

        logger.debug("Recording started")
        self._publish(RecordingStateChanged(is_recording=True))
        return True

    def _on_tick(self, token: object):
        with self._lock:
            # Late ticks from a finished session are dropped
            if token is not self._token:
                return
            self._ticks += 1
            seconds = self._ticks * self.settings.tick_interval
        self._publish(RecordingElapsed(seconds=seconds))

    def _end_session(self):
        """Leave Recording; returns the session and its elapsed time."""
        with self._lock:
            session, ticker = self._session, self._ticker
            duration = self._ticks * self.settings.tick_interval
            self._session = None
            self._ticker = None
            self._token = None
        if ticker is not None:
            ticker.cancel()
        return session, duration

    def stop(self, completion: RecordingCompletion):
        """
        Stop recording and deliver the captured audio.

        Calls completion(data, duration) with the captured bytes and the
        accumulated elapsed time, or completion(None, None) when there is no
        valid capture (not recording, unreadable or empty buffer). Callers
        discard the None result instead of adding a content item.
        """
        session, duration = self._end_session()
        if session is None:
            completion(None, None)
            return

        data = None
        try:
            data = session.stop()
        except CaptureDeviceError as e:
            self.last_error = e
            logger.warning("Could not read back recording: %s", e)

        logger.debug("Recording stopped after %.1fs", duration)
        self._publish(RecordingStateChanged(is_recording=False))

        if not data:
            completion(None, None)
        else:
            completion(bytes(data), duration)

    def force_stop(self):
        """Abandon the recording without delivering data. No-op when idle."""
        session, duration = self._end_session()
        if session is None:
            return

        try:
            session.stop()
        except CaptureDeviceError as e:
            logger.warning("Error discarding recording: %s", e)

        logger.debug("Recording discarded after %.1fs", duration)
        self._publish(RecordingStateChanged(is_recording=False))

    def close(self):
        """Dispose of the service, discarding any active recording."""
        self.force_stop()
