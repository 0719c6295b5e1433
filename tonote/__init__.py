"""
toNote - note content model and voice recording core.

Packages:
- core: Note content data model, commands, events, codecs
- audio: Voice recording and playback services
"""
__version__ = "1.0.0"
