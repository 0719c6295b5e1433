"""
Core data structures and state management for toNote.

Modules:
- models: Content items and the Note / NoteList / DataStore tree
- commands: Command pattern for undo/redo
- events: Event bus the UI subscribes to
- codec: JSON and MessagePack record encoding
- seed_data: Seed tree used at process start
- exceptions: Error hierarchy
"""
