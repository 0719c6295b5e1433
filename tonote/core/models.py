"""
Note content data model for toNote.

Content items are immutable dataclasses forming a tagged union of text,
image and voice payloads. Notes, note lists and the data store are mutable
entities with a stable id:
- Mutations go through their methods (wrapped by core.commands for undo/redo)
- Records follow the toNote wire shape (to_dict / from_dict)
- Ownership is a strict tree: DataStore -> NoteList -> Note -> ContentItem
"""
import base64
import binascii
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Tuple, Union

from tonote.core.exceptions import DecodeError, UnparseableContentError

# Maximum number of characters in a text preview
PREVIEW_LENGTH = 100

DATA_STORE_VERSION = "1.0"

# List created when a note is added to a store without lists
DEFAULT_LIST_NAME = "Notes"

# Decode trial order for content item records. If a malformed record carries
# several of these keys, the first one in this order wins.
CONTENT_KEYS = ("text", "imageData", "voiceRecording")

IdLike = Union[uuid.UUID, str]


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Format an instant as UTC ISO-8601.

    Args:
        value: Instant to format (naive values are taken as UTC)

    Returns:
        ISO-8601 string with a 'Z' suffix (e.g., "2024-01-01T00:00:00Z")
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 instant.

    Accepts a 'Z' suffix or an explicit UTC offset. Naive values are taken
    as UTC.

    Raises:
        DecodeError: If value is not a valid ISO-8601 string
    """
    if not isinstance(value, str):
        raise DecodeError(f"Timestamp must be an ISO-8601 string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise DecodeError(f"Invalid ISO-8601 timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def coerce_id(value: IdLike) -> uuid.UUID:
    """Accept a UUID or its string form."""
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _encode_bytes(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _decode_bytes(value: Any, record: Any) -> bytes:
    if not isinstance(value, str):
        raise UnparseableContentError(
            f"Binary payload must be a base64 string, got {type(value).__name__}", record
        )
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnparseableContentError(f"Invalid base64 payload: {e}", record) from e


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"Binary payload must be bytes-like, got {type(value).__name__}")


def _decode_id(data: Dict[str, Any]) -> uuid.UUID:
    # Records without an id get a fresh one
    if "id" not in data:
        return uuid.uuid4()
    try:
        return coerce_id(data["id"])
    except (TypeError, ValueError, AttributeError) as e:
        raise DecodeError(f"Invalid id: {data['id']!r}") from e


def _require(data: Any, key: str, kind: type, what: str) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(f"{what} record must be a mapping, got {type(data).__name__}")
    if key not in data:
        raise DecodeError(f"{what} record is missing '{key}'")
    value = data[key]
    if not isinstance(value, kind):
        raise DecodeError(f"{what} '{key}' must be {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ContentItem:
    """
    One unit of note content.

    Tagged union base class. Exactly one concrete variant (TextItem,
    ImageItem, VoiceItem) is ever instantiated. Items are immutable;
    editing an item means replacing its slot in Note.items.
    """
    variant_name: ClassVar[str] = ""
    record_key: ClassVar[str] = ""

    @property
    def text_value(self) -> Optional[str]:
        """Text content for text items, None for every other variant."""
        return None

    def preview_text(self) -> Optional[str]:
        """First PREVIEW_LENGTH characters of non-empty text, else None."""
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {self.record_key: self._payload()}

    def _payload(self) -> Any:
        raise NotImplementedError()

    @classmethod
    def _from_payload(cls, payload: Any, record: Dict[str, Any]) -> "ContentItem":
        raise NotImplementedError()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ContentItem":
        """
        Create a content item from its record.

        Candidate keys are tried in CONTENT_KEYS order ("text", then
        "imageData", then "voiceRecording"); the first key present decides
        the variant.

        Args:
            data: Record such as {"text": "hello"}

        Returns:
            Decoded content item

        Raises:
            UnparseableContentError: If no known key is present, or the
                payload under the matched key is malformed
        """
        if not isinstance(data, dict):
            raise UnparseableContentError(
                f"Content item record must be a mapping, got {type(data).__name__}", data
            )
        for key in CONTENT_KEYS:
            if key in data:
                return _VARIANTS_BY_KEY[key]._from_payload(data[key], data)
        raise UnparseableContentError("Content item record matches no known variant", data)


@dataclass(frozen=True)
class TextItem(ContentItem):
    """Plain text content."""
    content: str = ""

    variant_name: ClassVar[str] = "Text"
    record_key: ClassVar[str] = "text"

    def __post_init__(self):
        if not isinstance(self.content, str):
            raise TypeError(f"Text content must be str, got {type(self.content).__name__}")

    @property
    def text_value(self) -> Optional[str]:
        return self.content

    def preview_text(self) -> Optional[str]:
        if not self.content:
            return None
        # str slicing counts code points, not bytes
        return self.content[:PREVIEW_LENGTH]

    def _payload(self) -> Any:
        return self.content

    @classmethod
    def _from_payload(cls, payload: Any, record: Dict[str, Any]) -> "TextItem":
        if not isinstance(payload, str):
            raise UnparseableContentError(
                f"'text' must be a string, got {type(payload).__name__}", record
            )
        return cls(content=payload)


@dataclass(frozen=True)
class ImageItem(ContentItem):
    """Opaque image bytes (no structural validation)."""
    data: bytes = field(default=b"", repr=False)

    variant_name: ClassVar[str] = "Image"
    record_key: ClassVar[str] = "imageData"

    def __post_init__(self):
        # Use object.__setattr__ to normalise bytes-like input on a frozen dataclass
        object.__setattr__(self, "data", _as_bytes(self.data))

    def __repr__(self) -> str:
        return f"ImageItem(<{len(self.data)} bytes>)"

    def _payload(self) -> Any:
        return _encode_bytes(self.data)

    @classmethod
    def _from_payload(cls, payload: Any, record: Dict[str, Any]) -> "ImageItem":
        return cls(data=_decode_bytes(payload, record))


@dataclass(frozen=True)
class VoiceItem(ContentItem):
    """
    Recorded voice note.

    Attributes:
        data: Opaque audio bytes as delivered by the capture device
        duration: Recording length in seconds (>= 0)
    """
    data: bytes = field(default=b"", repr=False)
    duration: float = 0.0

    variant_name: ClassVar[str] = "Voice"
    record_key: ClassVar[str] = "voiceRecording"

    def __post_init__(self):
        object.__setattr__(self, "data", _as_bytes(self.data))
        if isinstance(self.duration, bool) or not isinstance(self.duration, (int, float)):
            raise TypeError(f"Duration must be a number, got {type(self.duration).__name__}")
        # NaN fails this comparison too
        if not self.duration >= 0:
            raise ValueError(f"Duration must be non-negative, got {self.duration}")
        object.__setattr__(self, "duration", float(self.duration))

    def __repr__(self) -> str:
        return f"VoiceItem(<{len(self.data)} bytes>, duration={self.duration})"

    def _payload(self) -> Any:
        return {"data": _encode_bytes(self.data), "duration": self.duration}

    @classmethod
    def _from_payload(cls, payload: Any, record: Dict[str, Any]) -> "VoiceItem":
        if not isinstance(payload, dict):
            raise UnparseableContentError("'voiceRecording' must be a mapping", record)
        if "data" not in payload or "duration" not in payload:
            raise UnparseableContentError("'voiceRecording' needs 'data' and 'duration'", record)
        data = _decode_bytes(payload["data"], record)
        try:
            return cls(data=data, duration=payload["duration"])
        except (TypeError, ValueError) as e:
            raise UnparseableContentError(f"Invalid voice duration: {e}", record) from e


_VARIANTS_BY_KEY = {
    TextItem.record_key: TextItem,
    ImageItem.record_key: ImageItem,
    VoiceItem.record_key: VoiceItem,
}


class _StableIdentity:
    """Mixin making `id` write-once and equality/hashing id-based."""

    def __setattr__(self, name, value):
        if name == "id" and "id" in self.__dict__:
            raise AttributeError(f"{type(self).__name__}.id is immutable")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(eq=False)
class Note(_StableIdentity):
    """
    A single note: a title plus an ordered sequence of content items.

    Item order is the user-visible order (insertion/edit order). Every item
    or title mutation moves last_modified_at forward; it never falls behind
    created_at.

    Attributes:
        title: Note title (may be blank)
        items: Ordered content items
        id: Stable unique identifier
        created_at: Creation instant (UTC)
        last_modified_at: Last mutation instant (UTC), defaults to created_at
    """
    title: str = ""
    items: List[ContentItem] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utc_now)
    last_modified_at: Optional[datetime] = None

    def __post_init__(self):
        self.items = list(self.items)
        self.created_at = _as_utc(self.created_at)
        if self.last_modified_at is None:
            self.last_modified_at = self.created_at
        else:
            self.last_modified_at = max(_as_utc(self.last_modified_at), self.created_at)

    def _touch(self):
        self.last_modified_at = max(utc_now(), self.created_at)

    def _append(self, item: ContentItem):
        self.items.append(item)
        self._touch()

    def add_text_item(self, text: str = "") -> TextItem:
        """Append a text item."""
        item = TextItem(text)
        self._append(item)
        return item

    def add_image_item(self, data: bytes) -> ImageItem:
        """Append an image item (bytes as supplied by the image picker)."""
        item = ImageItem(data)
        self._append(item)
        return item

    def add_voice_item(self, data: bytes, duration: float) -> VoiceItem:
        """Append a voice item (bytes and duration from RecordingService.stop)."""
        item = VoiceItem(data, duration)
        self._append(item)
        return item

    def add_item(self, item: ContentItem):
        """Append an already-constructed content item of any variant."""
        if not isinstance(item, ContentItem) or type(item) is ContentItem:
            raise TypeError(f"Expected a content item variant, got {type(item).__name__}")
        self._append(item)

    def remove_item(self, index: int) -> Optional[ContentItem]:
        """
        Remove the item at index.

        Out-of-range indices (including negative ones) are a silent no-op.

        Returns:
            The removed item, or None if nothing was removed
        """
        if not 0 <= index < len(self.items):
            return None
        removed = self.items.pop(index)
        self._touch()
        return removed

    def remove_items(self, indices: Iterable[int]) -> List[ContentItem]:
        """
        Remove several items by position (swipe-to-delete of a selection).

        Positions outside the item list are ignored.

        Returns:
            Removed items in their original order
        """
        doomed = {i for i in indices if 0 <= i < len(self.items)}
        if not doomed:
            return []
        removed = [item for i, item in enumerate(self.items) if i in doomed]
        self.items = [item for i, item in enumerate(self.items) if i not in doomed]
        self._touch()
        return removed

    def replace_item(self, index: int, item: ContentItem) -> Optional[ContentItem]:
        """
        Replace the item at index (how a text item gets edited).

        Same range policy as remove_item.

        Returns:
            The replaced item, or None if index was out of range
        """
        if not isinstance(item, ContentItem) or type(item) is ContentItem:
            raise TypeError(f"Expected a content item variant, got {type(item).__name__}")
        if not 0 <= index < len(self.items):
            return None
        previous = self.items[index]
        self.items[index] = item
        self._touch()
        return previous

    def set_title(self, title: str):
        """Change the title."""
        self.title = title
        self._touch()

    def preview(self) -> str:
        """
        One-line preview for note cards.

        Priority:
        1. The title, if not blank
        2. The preview text of the first item with non-blank text
        3. A content summary such as "1 text, 2 images, 1 voice note",
           or "Empty note" when there are no items
        """
        if self.title.strip():
            return self.title

        for item in self.items:
            text = item.preview_text()
            if text is not None and text.strip():
                return text

        # Blank text items still count towards the text tally
        text_count = sum(1 for item in self.items if item.text_value is not None)
        image_count = sum(1 for item in self.items if isinstance(item, ImageItem))
        voice_count = sum(1 for item in self.items if isinstance(item, VoiceItem))

        components = []
        if text_count > 0:
            components.append(f"{text_count} text")
        if image_count > 0:
            components.append(f"{image_count} image{'s' if image_count > 1 else ''}")
        if voice_count > 0:
            components.append(f"{voice_count} voice note{'s' if voice_count > 1 else ''}")

        return ", ".join(components) if components else "Empty note"

    def is_empty(self) -> bool:
        """
        True if the title is blank and every item is blank text.

        Any image or voice item makes the note non-empty, whatever the title.
        """
        return not self.title.strip() and all(
            isinstance(item, TextItem) and not item.content.strip()
            for item in self.items
        )

    def snapshot(self) -> Tuple[str, Tuple[ContentItem, ...], datetime]:
        """Capture mutable state for undo."""
        return self.title, tuple(self.items), self.last_modified_at

    def restore(self, snapshot: Tuple[str, Tuple[ContentItem, ...], datetime]):
        """Restore state captured by snapshot()."""
        self.title, items, self.last_modified_at = snapshot
        self.items = list(items)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": str(self.id),
            "title": self.title,
            "items": [item.to_dict() for item in self.items],
            "timestamp": format_timestamp(self.created_at),
            "lastModified": format_timestamp(self.last_modified_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        """
        Create Note from dictionary.

        A missing "lastModified" defaults to "timestamp".

        Raises:
            DecodeError: If a required field is missing or malformed
            UnparseableContentError: If any content item is unparseable
        """
        title = _require(data, "title", str, "Note")
        raw_items = _require(data, "items", list, "Note")
        created_at = parse_timestamp(_require(data, "timestamp", str, "Note"))

        last_modified_at = created_at
        if data.get("lastModified") is not None:
            last_modified_at = parse_timestamp(data["lastModified"])

        return cls(
            title=title,
            items=[ContentItem.from_dict(item) for item in raw_items],
            id=_decode_id(data),
            created_at=created_at,
            last_modified_at=last_modified_at,
        )


@dataclass(eq=False)
class NoteList(_StableIdentity):
    """
    Named, ordered collection of notes.

    New notes go to the front (most recent first); otherwise the order is
    user-controlled.
    """
    name: str
    notes: List[Note] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        self.notes = list(self.notes)

    def add_note(self, title: str) -> Note:
        """Create a note and insert it at index 0."""
        note = Note(title=title)
        self.notes.insert(0, note)
        return note

    def insert_note(self, index: int, note: Note):
        """Put an existing note back at a position (used by undo)."""
        self.notes.insert(index, note)

    def remove_notes(self, indices: Iterable[int]) -> List[Note]:
        """
        Remove notes by position.

        Positions outside the list are ignored.

        Returns:
            Removed notes in their original order
        """
        doomed = {i for i in indices if 0 <= i < len(self.notes)}
        removed = [note for i, note in enumerate(self.notes) if i in doomed]
        self.notes[:] = [note for i, note in enumerate(self.notes) if i not in doomed]
        return removed

    def remove_note(self, note_id: IdLike) -> Optional[Note]:
        """Remove the note with note_id; no-op if it is not in this list."""
        note_id = coerce_id(note_id)
        for i, note in enumerate(self.notes):
            if note.id == note_id:
                return self.notes.pop(i)
        return None

    def get_note(self, note_id: IdLike) -> Optional[Note]:
        note_id = coerce_id(note_id)
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def index_of(self, note_id: IdLike) -> Optional[int]:
        note_id = coerce_id(note_id)
        for i, note in enumerate(self.notes):
            if note.id == note_id:
                return i
        return None

    def sort_by_last_modified(self):
        """Sort newest-modified first; ties keep their current relative order."""
        # list.sort stays stable with reverse=True
        self.notes.sort(key=lambda note: note.last_modified_at, reverse=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": str(self.id),
            "name": self.name,
            "notes": [note.to_dict() for note in self.notes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NoteList":
        """Create NoteList from dictionary."""
        name = _require(data, "name", str, "NoteList")
        raw_notes = _require(data, "notes", list, "NoteList")
        return cls(
            name=name,
            notes=[Note.from_dict(note) for note in raw_notes],
            id=_decode_id(data),
        )


@dataclass
class DataStore:
    """
    Root aggregate owning every note list.

    One instance lives for the whole process (see seed_data.create_seed_store).
    """
    note_lists: List[NoteList] = field(default_factory=list)

    def add_note_list(self, name: str) -> NoteList:
        """Append a new empty note list (names are not deduplicated)."""
        note_list = NoteList(name=name)
        self.note_lists.append(note_list)
        return note_list

    def add_note(self, title: str) -> Note:
        """
        Create a note at the top of the first list.

        An empty store first gets a default "Notes" list.
        """
        if not self.note_lists:
            self.add_note_list(DEFAULT_LIST_NAME)
        return self.note_lists[0].add_note(title)

    def all_notes(self) -> List[Note]:
        """Every note across all lists, list by list in list order."""
        return [note for note_list in self.note_lists for note in note_list.notes]

    def get_note_list(self, list_id: IdLike) -> Optional[NoteList]:
        list_id = coerce_id(list_id)
        for note_list in self.note_lists:
            if note_list.id == list_id:
                return note_list
        return None

    def find_note(self, note_id: IdLike) -> Optional[Tuple[NoteList, Note]]:
        """Locate a note anywhere in the tree, with its owning list."""
        note_id = coerce_id(note_id)
        for note_list in self.note_lists:
            note = note_list.get_note(note_id)
            if note is not None:
                return note_list, note
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": DATA_STORE_VERSION,
            "noteLists": [note_list.to_dict() for note_list in self.note_lists],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataStore":
        """
        Create DataStore from dictionary.

        Raises:
            DecodeError: If the record is malformed or from an incompatible version
        """
        raw_lists = _require(data, "noteLists", list, "DataStore")
        version = str(data.get("version", DATA_STORE_VERSION))
        if version.split(".")[0] != DATA_STORE_VERSION.split(".")[0]:
            raise DecodeError(
                f"Incompatible data store version: {version}. Expected {DATA_STORE_VERSION[0]}.x"
            )
        return cls(note_lists=[NoteList.from_dict(raw) for raw in raw_lists])
