"""Data models for the persisted word collection.

Entries are stored as JSON objects using camel-case keys. Imported records
may use either camel-case or snake-case keys for the multi-word fields.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

CEFR_LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")

# attribute name -> (canonical key, snake-case alias)
_FIELD_KEYS: Dict[str, tuple[str, Optional[str]]] = {
    "id": ("id", None),
    "word": ("word", None),
    "definition": ("definition", None),
    "word_type": ("wordType", "word_type"),
    "cefr_level": ("cefrLevel", "cefr_level"),
    "ipa_pronunciation": ("ipaPronunciation", "ipa_pronunciation"),
    "example_sentence": ("exampleSentence", "example_sentence"),
    "notes": ("notes", None),
    "tags": ("tags", None),
    "created_at": ("createdAt", "created_at"),
    "updated_at": ("updatedAt", "updated_at"),
}

IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
SEARCHABLE_FIELDS = (
    "word",
    "definition",
    "word_type",
    "cefr_level",
    "example_sentence",
    "notes",
)


def new_entry_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(moment: datetime) -> str:
    """Return ``moment`` as an ISO-8601 UTC string with millisecond precision."""

    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def utc_now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(previous: str) -> str:
    """Return the current time, nudged forward so it sorts after ``previous``."""

    now = datetime.now(timezone.utc)
    earlier = parse_timestamp(previous)
    if earlier is not None and now <= earlier:
        now = earlier + timedelta(milliseconds=1)
    return format_timestamp(now)


def lookup_field(data: Mapping[str, Any], attribute: str) -> Any:
    """Return the value of ``attribute`` from ``data`` under either key spelling."""

    canonical, alias = _FIELD_KEYS[attribute]
    value = data.get(canonical)
    if value is None and alias is not None:
        value = data.get(alias)
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _tags(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    cleaned: List[str] = []
    for tag in value:
        text = _text(tag)
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


@dataclass(slots=True)
class LexicalEntry:
    """One learned word."""

    word: str
    id: str = field(default_factory=new_entry_id)
    definition: str = ""
    word_type: str = ""
    cefr_level: str = ""
    ipa_pronunciation: str = ""
    example_sentence: str = ""
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        payload: Dict[str, Any] = {}
        for attribute, (canonical, _alias) in _FIELD_KEYS.items():
            value = getattr(self, attribute)
            payload[canonical] = list(value) if attribute == "tags" else value
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LexicalEntry":
        """Create from a stored or imported record.

        Missing identifiers and timestamps are filled in; string values are
        trimmed and the CEFR level upper-cased.
        """
        now = utc_now()
        return cls(
            id=_text(lookup_field(data, "id")) or new_entry_id(),
            word=_text(lookup_field(data, "word")),
            definition=_text(lookup_field(data, "definition")),
            word_type=_text(lookup_field(data, "word_type")),
            cefr_level=_text(lookup_field(data, "cefr_level")).upper(),
            ipa_pronunciation=_text(lookup_field(data, "ipa_pronunciation")),
            example_sentence=_text(lookup_field(data, "example_sentence")),
            notes=_text(lookup_field(data, "notes")),
            tags=_tags(lookup_field(data, "tags")),
            created_at=_text(lookup_field(data, "created_at")) or now,
            updated_at=_text(lookup_field(data, "updated_at")) or now,
        )

    def merged_with(self, payload: Mapping[str, Any], *, updated_at: str) -> "LexicalEntry":
        """Return a copy with the fields present in ``payload`` applied.

        ``id`` and ``createdAt`` in the payload are ignored.
        """
        changes: Dict[str, Any] = {}
        for attribute in _FIELD_KEYS:
            if attribute in IMMUTABLE_FIELDS or attribute == "updated_at":
                continue
            canonical, alias = _FIELD_KEYS[attribute]
            if canonical not in payload and (alias is None or alias not in payload):
                continue
            value = lookup_field(payload, attribute)
            if attribute == "tags":
                changes[attribute] = _tags(value)
            elif attribute == "cefr_level":
                changes[attribute] = _text(value).upper()
            else:
                changes[attribute] = _text(value)
        changes["updated_at"] = updated_at
        return replace(self, **changes)

    def search_text(self) -> str:
        """Return the lower-cased haystack used by substring search."""
        parts = [getattr(self, attribute) for attribute in SEARCHABLE_FIELDS]
        parts.extend(self.tags)
        return " ".join(part for part in parts if part).lower()


__all__ = [
    "CEFR_LEVELS",
    "LexicalEntry",
    "format_timestamp",
    "lookup_field",
    "new_entry_id",
    "next_timestamp",
    "parse_timestamp",
    "utc_now",
]
