"""Tests for the note content model."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from tonote.core.models import (
    ContentItem,
    DataStore,
    ImageItem,
    Note,
    NoteList,
    TextItem,
    VoiceItem,
)
from tonote.core.seed_data import create_seed_store

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestContentItem:
    def test_variant_names(self):
        assert TextItem("a").variant_name == "Text"
        assert ImageItem(b"x").variant_name == "Image"
        assert VoiceItem(b"x", 1.0).variant_name == "Voice"

    def test_items_are_immutable(self):
        item = TextItem("hello")
        with pytest.raises(Exception):
            item.content = "changed"

    def test_value_equality(self):
        assert TextItem("a") == TextItem("a")
        assert ImageItem(bytearray(b"ab")) == ImageItem(b"ab")
        assert VoiceItem(b"v", 1) == VoiceItem(b"v", 1.0)
        assert TextItem("a") != ImageItem(b"a")

    def test_voice_duration_must_be_non_negative(self):
        with pytest.raises(ValueError):
            VoiceItem(b"v", -0.1)
        assert VoiceItem(b"v", 0).duration == 0.0

    def test_preview_text_truncates_to_100_code_points(self):
        text = "é" * 150
        preview = TextItem(text).preview_text()
        assert preview == "é" * 100
        assert len(preview.encode("utf-8")) == 200

    def test_preview_text_absent_for_empty_text_and_other_variants(self):
        assert TextItem("").preview_text() is None
        assert ImageItem(b"x").preview_text() is None
        assert VoiceItem(b"x", 2.0).preview_text() is None

    def test_text_value(self):
        assert TextItem("").text_value == ""
        assert ImageItem(b"x").text_value is None

    def test_repr_hides_payload(self):
        assert repr(ImageItem(b"\x00" * 4096)) == "ImageItem(<4096 bytes>)"

    def test_base_class_is_not_a_variant(self):
        note = Note()
        with pytest.raises(TypeError):
            note.add_item(ContentItem())


class TestNoteMutation:
    def test_new_note_timestamps(self):
        note = Note(title="t", created_at=T0)
        assert note.last_modified_at == T0

    def test_add_items_append_in_order_and_touch(self):
        note = Note(created_at=T0)
        note.add_text_item("first")
        note.add_image_item(b"img")
        note.add_voice_item(b"voice", 2.5)
        assert note.items == [TextItem("first"), ImageItem(b"img"), VoiceItem(b"voice", 2.5)]
        assert note.last_modified_at > T0

    def test_add_text_item_defaults_to_empty(self):
        note = Note()
        note.add_text_item()
        assert note.items == [TextItem("")]

    def test_remove_item_in_range(self):
        note = Note(items=[TextItem("a"), TextItem("b")], created_at=T0)
        removed = note.remove_item(0)
        assert removed == TextItem("a")
        assert note.items == [TextItem("b")]
        assert note.last_modified_at > T0

    @pytest.mark.parametrize("index", [-1, 2, 99])
    def test_remove_item_out_of_range_is_noop(self, index):
        note = Note(items=[TextItem("a"), TextItem("b")], created_at=T0)
        assert note.remove_item(index) is None
        assert len(note.items) == 2
        assert note.last_modified_at == T0

    def test_remove_items_by_position(self):
        note = Note(items=[TextItem("a"), ImageItem(b"b"), TextItem("c"), TextItem("d")], created_at=T0)
        removed = note.remove_items([3, 0, 7, -1])
        assert removed == [TextItem("a"), TextItem("d")]
        assert note.items == [ImageItem(b"b"), TextItem("c")]
        assert note.last_modified_at > T0

    def test_remove_items_out_of_range_is_noop(self):
        note = Note(items=[TextItem("a")], created_at=T0)
        assert note.remove_items([1, 5]) == []
        assert note.items == [TextItem("a")]
        assert note.last_modified_at == T0

    def test_replace_item(self):
        note = Note(items=[TextItem("draft")], created_at=T0)
        assert note.replace_item(0, TextItem("final")) == TextItem("draft")
        assert note.items == [TextItem("final")]
        assert note.replace_item(5, TextItem("x")) is None

    def test_set_title_touches(self):
        note = Note(title="old", created_at=T0)
        note.set_title("new")
        assert note.title == "new"
        assert note.last_modified_at > T0

    def test_last_modified_never_before_created(self):
        note = Note(created_at=T0, last_modified_at=T0 - timedelta(days=1))
        assert note.last_modified_at == T0

    def test_naive_timestamps_are_utc(self):
        note = Note(created_at=datetime(2024, 1, 1))
        assert note.created_at == T0

    def test_id_is_immutable(self):
        note = Note()
        with pytest.raises(AttributeError):
            note.id = uuid.uuid4()

    def test_equality_is_by_id(self):
        note = Note(title="a")
        twin = Note(title="b", id=note.id)
        assert note == twin
        assert len({note, twin}) == 1
        assert note != Note(title="a")


class TestNotePreview:
    def test_title_wins(self):
        note = Note(title="Groceries", items=[TextItem("milk")])
        assert note.preview() == "Groceries"

    def test_whitespace_title_is_blank(self):
        note = Note(title="   ", items=[TextItem("milk")])
        assert note.preview() == "milk"

    def test_first_non_blank_text(self):
        note = Note(items=[ImageItem(b"x"), TextItem("  "), TextItem("second"), TextItem("third")])
        assert note.preview() == "second"

    def test_long_text_preview_is_truncated(self):
        note = Note(items=[TextItem("x" * 250)])
        assert note.preview() == "x" * 100

    def test_blank_text_counts_in_summary(self):
        note = Note(title="", items=[TextItem("  "), ImageItem(b"b")])
        assert note.preview() == "1 text, 1 image"

    def test_summary_pluralisation(self):
        note = Note(items=[
            ImageItem(b"1"), ImageItem(b"2"),
            VoiceItem(b"v", 1.0),
        ])
        assert note.preview() == "2 images, 1 voice note"

        note.add_voice_item(b"w", 2.0)
        assert note.preview() == "2 images, 2 voice notes"

    def test_summary_text_is_never_pluralised(self):
        note = Note(items=[TextItem(""), TextItem(" ")])
        assert note.preview() == "2 text"

    def test_empty_note(self):
        assert Note().preview() == "Empty note"


class TestNoteIsEmpty:
    def test_image_forces_non_empty(self):
        assert Note(title="", items=[TextItem(""), ImageItem(b"X")]).is_empty() is False

    def test_voice_forces_non_empty(self):
        assert Note(items=[VoiceItem(b"", 0.0)]).is_empty() is False

    def test_blank_text_only_is_empty(self):
        assert Note(title="", items=[TextItem("  ")]).is_empty() is True

    def test_no_items_blank_title_is_empty(self):
        assert Note(title=" \n").is_empty() is True

    def test_title_makes_non_empty(self):
        assert Note(title="t", items=[TextItem("")]).is_empty() is False

    def test_text_makes_non_empty(self):
        assert Note(items=[TextItem("x")]).is_empty() is False


class TestNoteList:
    def test_add_note_inserts_at_front(self):
        a = Note(title="A")
        note_list = NoteList(name="L", notes=[a])
        b = note_list.add_note("B")
        assert [n.title for n in note_list.notes] == ["B", "A"]
        assert note_list.notes[0] is b

    def test_remove_notes_by_positions(self):
        note_list = NoteList(name="L", notes=[Note(title=t) for t in "ABCD"])
        removed = note_list.remove_notes({0, 2, 10})
        assert [n.title for n in removed] == ["A", "C"]
        assert [n.title for n in note_list.notes] == ["B", "D"]

    def test_remove_note_by_id(self):
        a, b = Note(title="A"), Note(title="B")
        note_list = NoteList(name="L", notes=[a, b])
        assert note_list.remove_note(a.id) is a
        assert note_list.notes == [b]

    def test_remove_note_absent_id_is_noop(self):
        note_list = NoteList(name="L", notes=[Note(title="A")])
        assert note_list.remove_note(uuid.uuid4()) is None
        assert len(note_list.notes) == 1

    def test_get_note_accepts_string_id(self):
        a = Note(title="A")
        note_list = NoteList(name="L", notes=[a])
        assert note_list.get_note(str(a.id)) is a
        assert note_list.index_of(a.id) == 0

    def test_sort_by_last_modified_is_descending_and_stable(self):
        def note(title, minutes):
            return Note(title=title, created_at=T0, last_modified_at=T0 + timedelta(minutes=minutes))

        note_list = NoteList(name="L", notes=[
            note("old", 1), note("tie-1", 5), note("new", 9), note("tie-2", 5),
        ])
        note_list.sort_by_last_modified()
        assert [n.title for n in note_list.notes] == ["new", "tie-1", "tie-2", "old"]


class TestDataStore:
    def test_add_note_list_appends_without_dedup(self):
        store = DataStore()
        first = store.add_note_list("Inbox")
        second = store.add_note_list("Inbox")
        assert store.note_lists == [first, second]
        assert first.id != second.id
        assert first.notes == []

    def test_lookups(self):
        store = DataStore()
        work = store.add_note_list("Work")
        note = work.add_note("Meeting")
        assert store.get_note_list(work.id) is work
        assert store.find_note(note.id) == (work, note)
        assert store.find_note(uuid.uuid4()) is None
        assert store.get_note_list(uuid.uuid4()) is None

    def test_add_note_goes_to_first_list(self):
        store = DataStore()
        work = store.add_note_list("Work")
        store.add_note_list("Ideas")
        note = store.add_note("Standup")
        assert work.notes == [note]

    def test_add_note_to_empty_store_creates_default_list(self):
        store = DataStore()
        note = store.add_note("First")
        assert [nl.name for nl in store.note_lists] == ["Notes"]
        assert store.note_lists[0].notes == [note]

    def test_all_notes_flattens_in_list_order(self):
        store = create_seed_store()
        journal, work, _ = store.note_lists
        assert store.all_notes() == journal.notes + work.notes
        assert DataStore().all_notes() == []

    def test_seed_store(self):
        store = create_seed_store()
        assert [nl.name for nl in store.note_lists] == ["Journal", "Work", "Ideas"]
        assert len(store.note_lists[0].notes) == 3
        assert store.note_lists[1].notes[0].preview() == "Meeting Q3"
        assert store.note_lists[2].notes == []
