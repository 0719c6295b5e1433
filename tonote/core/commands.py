"""
Command pattern for undo/redo support.

All UI-issued changes to the note tree go through commands to enable:
- Full undo/redo history
- Explicit change events for the UI (published by CommandHistory)
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from tonote.core.events import (
    DataStoreChanged,
    Event,
    EventBus,
    NoteChanged,
    NoteListChanged,
)
from tonote.core.exceptions import CommandError
from tonote.core.models import (
    ContentItem,
    DataStore,
    IdLike,
    Note,
    NoteList,
    coerce_id,
)

logger = logging.getLogger(__name__)


class Command(ABC):
    """Base class for all commands."""

    @abstractmethod
    def execute(self, store: DataStore) -> Event:
        """
        Execute command against the store.

        Args:
            store: Data store to mutate

        Returns:
            Event describing what changed
        """
        raise NotImplementedError()

    @abstractmethod
    def undo(self, store: DataStore) -> Event:
        """
        Revert the command.

        Args:
            store: Data store to mutate

        Returns:
            Event describing what changed
        """
        raise NotImplementedError()

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable command description for UI."""
        raise NotImplementedError()


def _find_list(store: DataStore, list_id: IdLike) -> NoteList:
    note_list = store.get_note_list(list_id)
    if note_list is None:
        raise CommandError(f"Note list {list_id} not found")
    return note_list


def _find_note(store: DataStore, list_id: IdLike, note_id: IdLike) -> Note:
    note = _find_list(store, list_id).get_note(note_id)
    if note is None:
        raise CommandError(f"Note {note_id} not found in list {list_id}")
    return note


class _NoteCommand(Command):
    """Shared snapshot-based undo for commands touching a single note."""

    def __init__(self, list_id: IdLike, note_id: IdLike):
        self.list_id = coerce_id(list_id)
        self.note_id = coerce_id(note_id)
        self._previous: Optional[Tuple] = None

    def execute(self, store: DataStore) -> Event:
        note = _find_note(store, self.list_id, self.note_id)
        # Store previous state for undo
        self._previous = note.snapshot()
        self._apply(note)
        return NoteChanged(self.list_id, self.note_id)

    def undo(self, store: DataStore) -> Event:
        if self._previous is None:
            raise CommandError("Command has not been executed yet")
        _find_note(store, self.list_id, self.note_id).restore(self._previous)
        return NoteChanged(self.list_id, self.note_id)

    @abstractmethod
    def _apply(self, note: Note):
        raise NotImplementedError()


class AddItemCommand(_NoteCommand):
    """Append a content item (text, image or freshly recorded voice) to a note."""

    def __init__(self, list_id: IdLike, note_id: IdLike, item: ContentItem):
        super().__init__(list_id, note_id)
        self.item = item

    def _apply(self, note: Note):
        note.add_item(self.item)

    @property
    def description(self) -> str:
        return f"Add {self.item.variant_name}"


class RemoveItemCommand(_NoteCommand):
    """Remove a content item by index (out-of-range is a no-op)."""

    def __init__(self, list_id: IdLike, note_id: IdLike, index: int):
        super().__init__(list_id, note_id)
        self.index = index

    def _apply(self, note: Note):
        note.remove_item(self.index)

    @property
    def description(self) -> str:
        return "Remove Item"


class RemoveItemsCommand(_NoteCommand):
    """Remove a selection of content items by position."""

    def __init__(self, list_id: IdLike, note_id: IdLike, indices: Iterable[int]):
        super().__init__(list_id, note_id)
        self.indices = tuple(indices)

    def _apply(self, note: Note):
        note.remove_items(self.indices)

    @property
    def description(self) -> str:
        return "Remove Items" if len(self.indices) > 1 else "Remove Item"


class ReplaceItemCommand(_NoteCommand):
    """Replace the content item in one slot (text edits)."""

    def __init__(self, list_id: IdLike, note_id: IdLike, index: int, item: ContentItem):
        super().__init__(list_id, note_id)
        self.index = index
        self.item = item

    def _apply(self, note: Note):
        note.replace_item(self.index, self.item)

    @property
    def description(self) -> str:
        return f"Edit {self.item.variant_name}"


class SetTitleCommand(_NoteCommand):
    """Change a note's title."""

    def __init__(self, list_id: IdLike, note_id: IdLike, title: str):
        super().__init__(list_id, note_id)
        self.title = title

    def _apply(self, note: Note):
        note.set_title(self.title)

    @property
    def description(self) -> str:
        return "Rename Note"


class _ListCommand(Command):
    """Shared undo for commands reordering or resizing one note list."""

    def __init__(self, list_id: IdLike):
        self.list_id = coerce_id(list_id)
        self._previous_notes: Optional[List[Note]] = None

    def execute(self, store: DataStore) -> Event:
        note_list = _find_list(store, self.list_id)
        self._previous_notes = list(note_list.notes)
        self._apply(note_list)
        return NoteListChanged(self.list_id)

    def undo(self, store: DataStore) -> Event:
        if self._previous_notes is None:
            raise CommandError("Command has not been executed yet")
        _find_list(store, self.list_id).notes[:] = self._previous_notes
        return NoteListChanged(self.list_id)

    @abstractmethod
    def _apply(self, note_list: NoteList):
        raise NotImplementedError()


class AddNoteCommand(_ListCommand):
    """Create a note at the top of a list."""

    def __init__(self, list_id: IdLike, title: str = ""):
        super().__init__(list_id)
        self.title = title
        self._note: Optional[Note] = None

    def _apply(self, note_list: NoteList):
        if self._note is None:
            self._note = note_list.add_note(self.title)
        else:
            # Redo puts the same note (same id) back on top
            note_list.insert_note(0, self._note)

    @property
    def note(self) -> Optional[Note]:
        """The note created by the first execution."""
        return self._note

    @property
    def description(self) -> str:
        return "Add Note"


class RemoveNotesCommand(_ListCommand):
    """Remove notes from a list by position."""

    def __init__(self, list_id: IdLike, indices: Iterable[int]):
        super().__init__(list_id)
        self.indices = tuple(indices)

    def _apply(self, note_list: NoteList):
        note_list.remove_notes(self.indices)

    @property
    def description(self) -> str:
        return "Delete Notes" if len(self.indices) > 1 else "Delete Note"


class RemoveNoteCommand(_ListCommand):
    """Remove one note from a list by id (no-op if absent)."""

    def __init__(self, list_id: IdLike, note_id: IdLike):
        super().__init__(list_id)
        self.note_id = coerce_id(note_id)

    def _apply(self, note_list: NoteList):
        note_list.remove_note(self.note_id)

    @property
    def description(self) -> str:
        return "Delete Note"


class SortNotesCommand(_ListCommand):
    """Sort a list by last modification, newest first."""

    def _apply(self, note_list: NoteList):
        note_list.sort_by_last_modified()

    @property
    def description(self) -> str:
        return "Sort Notes"


class AddNoteListCommand(Command):
    """Append a new empty note list to the store."""

    def __init__(self, name: str):
        self.name = name
        self._note_list: Optional[NoteList] = None

    def execute(self, store: DataStore) -> Event:
        if self._note_list is None:
            self._note_list = store.add_note_list(self.name)
        else:
            store.note_lists.append(self._note_list)
        return DataStoreChanged()

    def undo(self, store: DataStore) -> Event:
        if self._note_list is None:
            raise CommandError("Command has not been executed yet")
        store.note_lists[:] = [nl for nl in store.note_lists if nl.id != self._note_list.id]
        return DataStoreChanged()

    @property
    def note_list(self) -> Optional[NoteList]:
        return self._note_list

    @property
    def description(self) -> str:
        return "Add List"


class CommandHistory:
    """
    Undo/redo stacks over one data store.

    Every execute, undo and redo publishes the command's change event. A
    command only moves between the stacks once it has run successfully, so
    a CommandError leaves the history as it was.
    """

    def __init__(self, store: DataStore, event_bus: Optional[EventBus] = None,
                 max_history: int = 100):
        """
        Args:
            store: Data store commands operate on
            event_bus: Bus receiving the change event of every execute/undo/redo
            max_history: Maximum number of undoable commands kept
        """
        self.store = store
        self.event_bus = event_bus
        self.max_history = max_history
        self._undo_stack: List[Command] = []
        self._redo_stack: List[Command] = []

    def _publish(self, event: Event):
        if self.event_bus is not None:
            self.event_bus.publish(event)

    def _push_undo(self, command: Command):
        self._undo_stack.append(command)
        overflow = len(self._undo_stack) - self.max_history
        if overflow > 0:
            del self._undo_stack[:overflow]

    def execute(self, command: Command) -> Command:
        """
        Run a new command and make it undoable.

        Returns:
            The command, so callers can read results such as AddNoteCommand.note

        Raises:
            CommandError: If the command's list or note no longer exists
        """
        event = command.execute(self.store)
        self._push_undo(command)
        # A new edit invalidates everything that was undone
        self._redo_stack.clear()
        logger.debug("Executed %s", command.description)
        self._publish(event)
        return command

    def undo(self) -> bool:
        """Revert the latest command. Returns False when there is nothing to undo."""
        if not self._undo_stack:
            return False
        command = self._undo_stack[-1]
        event = command.undo(self.store)
        self._redo_stack.append(self._undo_stack.pop())
        logger.debug("Undid %s", command.description)
        self._publish(event)
        return True

    def redo(self) -> bool:
        """Re-apply the latest undone command. Returns False when there is nothing to redo."""
        if not self._redo_stack:
            return False
        command = self._redo_stack[-1]
        event = command.execute(self.store)
        self._push_undo(self._redo_stack.pop())
        logger.debug("Redid %s", command.description)
        self._publish(event)
        return True

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_description(self) -> Optional[str]:
        """Label for an "Undo ..." menu entry, or None."""
        return self._undo_stack[-1].description if self._undo_stack else None
