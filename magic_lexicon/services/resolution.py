"""Cache-aside resolution of word lookups and free-form questions.

A single English word is answered from the local collection when any entry
matches it and otherwise generated by the model and stored. Anything else is
forwarded to the model as a chat question and never touches the store.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from magic_lexicon import logging_manager as log_mgr
from magic_lexicon.errors import DeliveryError, LexiconError
from magic_lexicon.lexicon_store import LexicalEntry, LexiconStore

from .inference import ChunkCallback, InferenceClient

logger = log_mgr.get_logger().getChild("services.resolution")

_WORD_PATTERN = re.compile(r"^[A-Za-z-]+$")


class QueryMode(str, Enum):
    WORD = "word"
    CHAT = "chat"


def classify_query(text: Optional[str]) -> Optional[QueryMode]:
    """Return the mode for ``text``, or ``None`` when it is blank."""

    trimmed = (text or "").strip()
    if not trimmed:
        return None
    tokens = trimmed.split()
    if len(tokens) == 1 and _WORD_PATTERN.match(trimmed):
        return QueryMode.WORD
    return QueryMode.CHAT


@dataclass(frozen=True, slots=True)
class Found:
    """The word was already in the collection."""

    entry: LexicalEntry


@dataclass(frozen=True, slots=True)
class Generated:
    """The word was analysed by the model and stored."""

    entry: LexicalEntry


@dataclass(frozen=True, slots=True)
class Answered:
    """A chat question was answered."""

    text: str


@dataclass(frozen=True, slots=True)
class Failed:
    kind: str
    message: str


ResolutionOutcome = Union[Found, Generated, Answered, Failed]


def entry_payload_from_analysis(word: str, analysis: Mapping[str, Any]) -> dict:
    """Map a word analysis onto the fields of a new :class:`LexicalEntry`."""

    def _field(key: str) -> str:
        value = analysis.get(key)
        return "" if value is None else str(value)

    return {
        "word": word,
        "definition": _field("definition"),
        "wordType": _field("word_type"),
        "cefrLevel": _field("cefr_level"),
        "ipaPronunciation": _field("ipa_pronunciation"),
        "exampleSentence": _field("example_sentence"),
        "notes": "",
        "tags": [],
    }


class ResolutionCoordinator:
    """Dispatch queries between the store and the inference client.

    Calls are independent: two concurrent lookups of the same missing word
    both reach the model and both store an entry.
    """

    def __init__(self, store: LexiconStore, inference: InferenceClient) -> None:
        self._store = store
        self._inference = inference

    def resolve(
        self, query: str, *, on_chunk: Optional[ChunkCallback] = None
    ) -> ResolutionOutcome:
        mode = classify_query(query)
        if mode is None:
            raise ValueError("Query cannot be empty.")
        cleaned = query.strip()
        start = time.perf_counter()
        with log_mgr.log_context(query_mode=mode.value):
            if mode is QueryMode.WORD:
                outcome = self.resolve_word(cleaned)
            else:
                outcome = self.resolve_chat(cleaned, on_chunk=on_chunk)
            logger.info(
                "Query resolved",
                extra={
                    "event": "resolution.completed",
                    "status": type(outcome).__name__.lower(),
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
        return outcome

    def resolve_word(self, word: str) -> ResolutionOutcome:
        matches = self._store.search(word)
        if matches:
            return Found(matches[0])
        try:
            analysis = self._inference.analyze_word(word)
        except LexiconError as exc:
            return Failed(exc.kind, exc.message)
        if not isinstance(analysis, Mapping):
            return Failed("malformed_response", "AI response is not a JSON object.")
        entry = self._store.create(entry_payload_from_analysis(word, analysis))
        return Generated(entry)

    def resolve_chat(
        self, question: str, *, on_chunk: Optional[ChunkCallback] = None
    ) -> ResolutionOutcome:
        def _deliver(delta: str, total: str) -> None:
            if on_chunk is None:
                return
            try:
                on_chunk(delta, total)
            except Exception as exc:
                raise DeliveryError(f"Chunk delivery failed: {exc}") from exc

        try:
            text = self._inference.chat(question, stream=True, on_chunk=_deliver)
        except LexiconError as exc:
            return Failed(exc.kind, exc.message)
        return Answered(text)


__all__ = [
    "Answered",
    "Failed",
    "Found",
    "Generated",
    "QueryMode",
    "ResolutionCoordinator",
    "ResolutionOutcome",
    "classify_query",
    "entry_payload_from_analysis",
]
