"""
Audio layer for toNote.

Modules:
- devices: Capture/playback device interfaces
- sounddevice_backend: PortAudio devices via sounddevice
- wav: WAV container helpers (numpy <-> bytes)
- ticker: Cancelable repeating callback
- recording: RecordingService state machine
- playback: PlaybackService state machine
"""
