"""VoiceCraft practice core: phrase timing, shadowing and dictation."""

__version__ = "1.0.0"
