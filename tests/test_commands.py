"""Tests for commands, undo/redo history and change events."""
import uuid
from datetime import timedelta

import pytest

from tonote.core.commands import (
    AddItemCommand,
    AddNoteCommand,
    AddNoteListCommand,
    CommandHistory,
    RemoveItemCommand,
    RemoveItemsCommand,
    RemoveNoteCommand,
    RemoveNotesCommand,
    ReplaceItemCommand,
    SetTitleCommand,
    SortNotesCommand,
)
from tonote.core.events import DataStoreChanged, NoteChanged, NoteListChanged
from tonote.core.exceptions import CommandError
from tonote.core.models import DataStore, ImageItem, TextItem, VoiceItem


@pytest.fixture
def store():
    store = DataStore()
    work = store.add_note_list("Work")
    work.add_note("Older")
    work.add_note("Newer")
    return store


@pytest.fixture
def history(store, event_bus):
    return CommandHistory(store, event_bus, max_history=10)


def first_list(store):
    return store.note_lists[0]


class TestNoteCommands:
    def test_add_item_and_undo(self, store, history, published):
        work = first_list(store)
        note = work.notes[0]
        before = note.last_modified_at

        history.execute(AddItemCommand(work.id, note.id, VoiceItem(b"RIFF", 1.2)))
        assert note.items == [VoiceItem(b"RIFF", 1.2)]
        assert published == [NoteChanged(work.id, note.id)]

        assert history.undo()
        assert note.items == []
        assert note.last_modified_at == before
        assert published[-1] == NoteChanged(work.id, note.id)

    def test_redo_reapplies(self, store, history):
        work = first_list(store)
        note = work.notes[0]
        history.execute(AddItemCommand(work.id, note.id, TextItem("x")))
        history.undo()
        assert history.redo()
        assert note.items == [TextItem("x")]

    def test_remove_replace_and_title(self, store, history):
        work = first_list(store)
        note = work.notes[0]
        note.add_text_item("draft")
        note.add_image_item(b"img")

        history.execute(ReplaceItemCommand(work.id, note.id, 0, TextItem("final")))
        history.execute(RemoveItemCommand(work.id, note.id, 1))
        history.execute(SetTitleCommand(work.id, note.id, "Renamed"))
        assert note.items == [TextItem("final")]
        assert note.title == "Renamed"

        history.undo()
        history.undo()
        history.undo()
        assert note.items == [TextItem("draft"), ImageItem(b"img")]
        assert note.title == "Newer"

    def test_remove_items_and_undo(self, store, history):
        work = first_list(store)
        note = work.notes[0]
        for text in ("a", "b", "c"):
            note.add_text_item(text)

        command = history.execute(RemoveItemsCommand(work.id, note.id, [0, 2]))
        assert note.items == [TextItem("b")]
        assert command.description == "Remove Items"

        history.undo()
        assert note.items == [TextItem("a"), TextItem("b"), TextItem("c")]

    def test_unknown_note_raises(self, store, history):
        work = first_list(store)
        with pytest.raises(CommandError):
            history.execute(AddItemCommand(work.id, uuid.uuid4(), TextItem("x")))
        with pytest.raises(CommandError):
            history.execute(AddItemCommand(uuid.uuid4(), uuid.uuid4(), TextItem("x")))
        assert not history.can_undo()

    def test_undo_before_execute_raises(self, store):
        work = first_list(store)
        command = SetTitleCommand(work.id, work.notes[0].id, "x")
        with pytest.raises(CommandError):
            command.undo(store)

    def test_descriptions(self, store, history):
        work = first_list(store)
        note = work.notes[0]
        history.execute(AddItemCommand(work.id, note.id, ImageItem(b"x")))
        assert history.undo_description == "Add Image"
        history.undo()
        assert history.undo_description is None
        history.redo()
        assert history.undo_description == "Add Image"


class TestListCommands:
    def test_add_note_goes_to_front_and_undo_restores(self, store, history, published):
        work = first_list(store)
        command = history.execute(AddNoteCommand(work.id, "Newest"))
        assert work.notes[0] is command.note
        assert [n.title for n in work.notes] == ["Newest", "Newer", "Older"]
        assert published == [NoteListChanged(work.id)]

        history.undo()
        assert [n.title for n in work.notes] == ["Newer", "Older"]

        history.redo()
        assert work.notes[0] is command.note

    def test_remove_notes_by_position(self, store, history):
        work = first_list(store)
        history.execute(RemoveNotesCommand(work.id, [0]))
        assert [n.title for n in work.notes] == ["Older"]
        history.undo()
        assert [n.title for n in work.notes] == ["Newer", "Older"]

    def test_remove_note_by_id(self, store, history):
        work = first_list(store)
        older = work.notes[1]
        history.execute(RemoveNoteCommand(work.id, older.id))
        assert older not in work.notes
        history.execute(RemoveNoteCommand(work.id, uuid.uuid4()))
        assert len(work.notes) == 1

    def test_sort_and_undo(self, store, history):
        work = first_list(store)
        older = work.notes[1]
        older.last_modified_at = work.notes[0].last_modified_at + timedelta(minutes=1)
        history.execute(SortNotesCommand(work.id))
        assert work.notes[0] is older
        history.undo()
        assert work.notes[1] is older

    def test_add_note_list(self, store, history, published):
        command = history.execute(AddNoteListCommand("Ideas"))
        assert store.note_lists[-1] is command.note_list
        assert published == [DataStoreChanged()]
        history.undo()
        assert [nl.name for nl in store.note_lists] == ["Work"]
        history.redo()
        assert store.note_lists[-1] is command.note_list


class TestHistory:
    def test_new_command_clears_redo(self, store, history):
        work = first_list(store)
        history.execute(AddNoteCommand(work.id, "a"))
        history.undo()
        assert history.can_redo()
        history.execute(AddNoteCommand(work.id, "b"))
        assert not history.can_redo()

    def test_max_history(self, store, event_bus):
        work = first_list(store)
        history = CommandHistory(store, event_bus, max_history=2)
        for title in ("a", "b", "c"):
            history.execute(AddNoteCommand(work.id, title))
        assert history.undo()
        assert history.undo()
        assert not history.undo()
        assert [n.title for n in work.notes] == ["a", "Newer", "Older"]

    def test_failed_undo_keeps_history(self, store, history):
        command = history.execute(AddNoteCommand(first_list(store).id, "a"))
        store.note_lists.clear()
        with pytest.raises(CommandError):
            history.undo()
        assert history.can_undo()
        assert not history.can_redo()
        assert history.undo_description == command.description

    def test_zero_history_keeps_nothing(self, store, event_bus):
        history = CommandHistory(store, event_bus, max_history=0)
        history.execute(AddNoteListCommand("x"))
        assert not history.can_undo()
        assert [nl.name for nl in store.note_lists] == ["Work", "x"]

    def test_works_without_event_bus(self, store):
        history = CommandHistory(store)
        history.execute(AddNoteListCommand("x"))
        assert history.undo()
