"""pomerge — fill untranslated PO entries from a sibling language."""

__version__ = "1.0.0"
