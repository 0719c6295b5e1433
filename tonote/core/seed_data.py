"""
Seed data for toNote.

Provides the note tree the application starts with.
"""
from tonote.core.models import DataStore, Note, NoteList, TextItem


def create_seed_store() -> DataStore:
    """
    Create the data store used at process start.

    Lists:
        Journal: three sample notes
        Work: one meeting note
        Ideas: empty

    Returns:
        DataStore with the three seed lists
    """
    journal = NoteList(name="Journal", notes=[
        Note(
            title="Morning thoughts about creativity and finding inspiration in everyday...",
            items=[TextItem("Today, 9:30 AM")],
        ),
        Note(title="Coffee shop sketching session", items=[TextItem("Yesterday, 2:15 PM")]),
        Note(title="Design inspiration from Behance", items=[TextItem("behance.net/gallery/somet...")]),
    ])

    work = NoteList(name="Work", notes=[
        Note(title="Meeting Q3", items=[TextItem("Discussed Q3 roadmap.")]),
    ])

    ideas = NoteList(name="Ideas")

    return DataStore(note_lists=[journal, work, ideas])
