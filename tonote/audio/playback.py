"""
Voice note playback state machine.

States: Idle -> Playing -> Idle. At most one buffer plays at a time;
starting another buffer always stops the current one first. The playback
device is owned by the service and reports natural completion through the
on_finished callback passed to each play() call.
"""
import logging
import threading
from typing import Optional

from tonote.audio.devices import PlaybackDevice
from tonote.core.events import EventBus, PlaybackStateChanged
from tonote.core.exceptions import PlaybackDeviceError

logger = logging.getLogger(__name__)


class PlaybackService:
    """Plays voice note buffers and tracks which one is playing."""

    def __init__(self, device: PlaybackDevice, event_bus: Optional[EventBus] = None):
        """
        Args:
            device: Speaker-like playback device (owned by this service)
            event_bus: Receives PlaybackStateChanged on every transition
        """
        self.device = device
        self.event_bus = event_bus
        self._lock = threading.Lock()
        self._current: Optional[bytes] = None
        # Bumped on every start/stop so stale end signals can be told apart
        self._generation = 0
        self.last_error: Optional[Exception] = None

    @property
    def currently_playing(self) -> Optional[bytes]:
        return self._current

    def is_playing(self, buffer: bytes) -> bool:
        """True iff buffer equals the buffer currently playing."""
        current = self._current
        return current is not None and current == buffer

    def _publish(self, event):
        if self.event_bus is not None:
            self.event_bus.publish(event)

    def toggle_playback(self, buffer: bytes):
        """Stop buffer if it is playing, otherwise play it (stopping any other first)."""
        if self.is_playing(buffer):
            self.stop_playback()
        else:
            self._play(buffer)

    def _play(self, buffer: bytes) -> bool:
        self.stop_playback()

        data = bytes(buffer)
        with self._lock:
            self._generation += 1
            generation = self._generation
            # Marked before play() so an immediate end signal finds it
            self._current = data

        try:
            self.device.play(data, lambda: self._on_finished(generation))
        except PlaybackDeviceError as e:
            self.last_error = e
            logger.warning("Could not play recording: %s", e)
            with self._lock:
                if self._generation == generation:
                    self._current = None
            return False

        with self._lock:
            still_playing = self._generation == generation and self._current is not None
        if not still_playing:
            # Short buffers can finish inside play(); Idle was already published
            logger.debug("Playback ended before play() returned")
            return True

        logger.debug("Playback started (%d bytes)", len(data))
        self._publish(PlaybackStateChanged(playing=data))
        return True

    def _on_finished(self, generation: int):
        with self._lock:
            if generation != self._generation or self._current is None:
                return
            self._current = None
            self._generation += 1
        logger.debug("Playback finished")
        self._publish(PlaybackStateChanged(playing=None))

    def stop_playback(self):
        """Stop any active playback. Safe to call when idle."""
        with self._lock:
            was_playing = self._current is not None
            self._current = None
            self._generation += 1
        if not was_playing:
            return
        self.device.stop()
        logger.debug("Playback stopped")
        self._publish(PlaybackStateChanged(playing=None))

    def close(self):
        """Dispose of the service and release the device."""
        self.stop_playback()
        self.device.close()
