"""
toNote - note content core
Main entry point

Usage:
    python main.py                  Print the seed notebook as JSON
    python main.py record [secs]    Record a voice note, play it back, print the note
"""
import logging
import sys
import threading
import time

from tonote.audio.playback import PlaybackService
from tonote.audio.recording import RecordingService
from tonote.audio.wav import duration_seconds
from tonote.config import AudioSettings, load_settings, setup_logging
from tonote.core.codec import encode_json
from tonote.core.commands import AddItemCommand, AddNoteCommand, CommandHistory
from tonote.core.events import EventBus, NoteChanged, PlaybackStateChanged, RecordingElapsed
from tonote.core.models import VoiceItem
from tonote.core.seed_data import create_seed_store

logger = logging.getLogger("tonote")


def record_voice_note(settings: dict, seconds: float) -> int:
    """Record into a new note in the Ideas list and play the result back."""
    # Imported here so printing the notebook works without PortAudio
    from tonote.audio.sounddevice_backend import SoundDeviceCapture, SoundDevicePlayback

    audio_settings = AudioSettings.from_settings(settings)

    store = create_seed_store()
    bus = EventBus()
    history = CommandHistory(store, bus, max_history=settings["general"]["undo_limit"])

    bus.subscribe(RecordingElapsed, lambda e: print(f"\rRecording... {e.seconds:.1f}s", end=""))
    bus.subscribe(NoteChanged, lambda e: logger.info("Note %s changed", e.note_id))

    ideas = next(nl for nl in store.note_lists if nl.name == "Ideas")
    note = history.execute(AddNoteCommand(ideas.id, "Voice memo")).note

    recorder = RecordingService(SoundDeviceCapture(), audio_settings, bus)
    player = PlaybackService(SoundDevicePlayback(audio_settings.output_device), bus)

    if not recorder.start():
        print(f"Could not start recording: {recorder.last_error}")
        return 1
    time.sleep(seconds)

    result = {}

    def on_recorded(data, duration):
        if data is None:
            return
        result["data"] = data
        history.execute(AddItemCommand(ideas.id, note.id, VoiceItem(data, duration)))

    recorder.stop(on_recorded)
    print()

    if "data" not in result:
        print("Nothing was captured")
        return 1

    data = result["data"]
    print(f"Captured {len(data)} bytes ({duration_seconds(data):.2f}s of audio)")
    print(f"Undo: {history.undo_description}")

    finished = threading.Event()
    bus.subscribe(PlaybackStateChanged, lambda e: finished.set() if e.playing is None else None)
    player.toggle_playback(data)
    if player.is_playing(data):
        finished.wait(timeout=seconds + 5)
    player.close()

    print(f"Preview: {note.preview()}")
    print(encode_json(note, indent=2))
    return 0


def main():
    """Launch toNote."""
    settings = load_settings()
    setup_logging(settings["general"]["log_level"])

    args = sys.argv[1:]
    if args and args[0] == "record":
        seconds = float(args[1]) if len(args) > 1 else 3.0
        return record_voice_note(settings, seconds)

    store = create_seed_store()
    for note_list in store.note_lists:
        print(f"{note_list.name} ({len(note_list.notes)} notes)")
        for note in note_list.notes:
            print(f"  - {note.preview()}")
    print(f"{len(store.all_notes())} notes in {len(store.note_lists)} lists")
    print(encode_json(store, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
