"""cranki: add notes to an Anki collection from the command line."""

__version__ = "0.3.0"
