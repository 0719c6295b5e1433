"""
Record encoding for the note model.

Formats:
- JSON text: the toNote wire shape (base64 binaries, ISO-8601 instants)
- MessagePack binary (fast, compact) carrying the same records

Both work in memory only; where the bytes end up is the caller's concern.
"""
import json
from typing import Type, TypeVar, Union

import msgpack

from tonote.core.exceptions import DecodeError
from tonote.core.models import ContentItem, DataStore, Note, NoteList

Model = Union[ContentItem, Note, NoteList, DataStore]
M = TypeVar("M", ContentItem, Note, NoteList, DataStore)


def encode_json(obj: Model, indent: int = None) -> str:
    """
    Encode a model as JSON text.

    Args:
        obj: Content item, note, note list or data store
        indent: Optional pretty-print indent

    Returns:
        JSON document
    """
    return json.dumps(obj.to_dict(), indent=indent, ensure_ascii=False)


def decode_json(text: Union[str, bytes], kind: Type[M]) -> M:
    """
    Decode JSON text into a model.

    Args:
        text: JSON document
        kind: Model class to build (ContentItem, Note, NoteList or DataStore)

    Raises:
        DecodeError: If the text is not valid JSON or the record is malformed
        UnparseableContentError: If a content item matches no known variant
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid JSON document: {e}") from e
    return kind.from_dict(data)


def pack(obj: Model) -> bytes:
    """Encode a model as MessagePack bytes."""
    return msgpack.packb(obj.to_dict(), use_bin_type=True)


def unpack(data: bytes, kind: Type[M]) -> M:
    """
    Decode MessagePack bytes into a model.

    Raises:
        DecodeError: If the bytes are not a valid MessagePack document or
            the record is malformed
    """
    try:
        record = msgpack.unpackb(data, raw=False)
    except msgpack.exceptions.ExtraData as e:
        raise DecodeError(f"Invalid MessagePack document: {e}") from e
    except (TypeError, ValueError, msgpack.exceptions.UnpackException) as e:
        raise DecodeError(f"Failed to unpack record: {e}") from e
    return kind.from_dict(record)
