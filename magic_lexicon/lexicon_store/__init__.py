"""Persisted word collections.

Key Components:
    - LexicalEntry: One learned word with its analysis fields
    - LexiconStore: JSON-backed collection with serialized mutations
    - LexiconCatalog: Management of several named collections

Usage Example:
    from magic_lexicon.lexicon_store import LexiconStore

    store = LexiconStore(base_dir=Path("data"))
    entry = store.create({"word": "serendipity", "definition": "..."})
    matches = store.search("seren")
"""

from .catalog import JSON_EXT, LexiconCatalog, sanitize_name
from .models import CEFR_LEVELS, LexicalEntry
from .store import LexiconStore

__all__ = [
    "CEFR_LEVELS",
    "JSON_EXT",
    "LexicalEntry",
    "LexiconCatalog",
    "LexiconStore",
    "sanitize_name",
]
