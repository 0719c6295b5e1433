"""
Event bus for UI observation of the core.

The UI never relies on implicit field-level change propagation; it
subscribes to explicit events published by the command history and the
audio services.
"""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """Base class for all core events."""


@dataclass(frozen=True)
class NoteChanged(Event):
    """Items or title of a note changed."""
    list_id: uuid.UUID
    note_id: uuid.UUID


@dataclass(frozen=True)
class NoteListChanged(Event):
    """Notes were added to, removed from or reordered within a list."""
    list_id: uuid.UUID


@dataclass(frozen=True)
class DataStoreChanged(Event):
    """The set of note lists changed."""


@dataclass(frozen=True)
class RecordingStateChanged(Event):
    is_recording: bool


@dataclass(frozen=True)
class RecordingElapsed(Event):
    """Published on every recording tick."""
    seconds: float


@dataclass(frozen=True)
class PlaybackStateChanged(Event):
    """Playback started or stopped; playing is None when idle."""
    playing: Optional[bytes]


Handler = Callable[[Event], None]


class EventBus:
    """
    Synchronous publish/subscribe registry keyed by event type.

    Handlers subscribed to a base class also receive its subclasses, so
    subscribing to Event observes everything. Handlers run in the
    publisher's thread (the recording ticker and audio device callbacks
    publish from their own threads).
    """

    def __init__(self):
        self._subscribers: Dict[Type[Event], List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[Event], handler: Handler) -> Callable[[], None]:
        """
        Register handler for event_type.

        Returns:
            Function that removes the subscription
        """
        self._subscribers[event_type].append(handler)
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: Type[Event], handler: Handler):
        """Remove handler; no-op if it was not subscribed."""
        handlers = self._subscribers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Event):
        """Deliver event to every handler subscribed to its type or a base type."""
        logger.debug("Publishing %s", event)
        for event_type in type(event).__mro__:
            for handler in list(self._subscribers.get(event_type, ())):
                handler(event)
