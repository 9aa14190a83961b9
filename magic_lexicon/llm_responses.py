"""Helpers for reading chat endpoint responses.

Endpoints speaking the Ollama and OpenAI dialects disagree on where the
generated text lives, both for complete bodies and for streamed events.
The functions here reduce every known envelope to plain text, pull embedded
JSON objects out of free text, and reassemble streamed bodies line by line.
"""

from __future__ import annotations

import codecs
import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from magic_lexicon import logging_manager as log_mgr
from magic_lexicon.errors import MalformedResponseError

logger = log_mgr.get_logger().getChild("llm_responses")

TokenUsage = Dict[str, int]

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
STREAMING_CONTENT_TYPES = ("text/event-stream", "application/x-ndjson")
EXCERPT_LIMIT = 400


def _string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _first_choice(body: Mapping[str, Any]) -> Mapping[str, Any]:
    choices = body.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], Mapping):
        return choices[0]
    return {}


def _nested(container: Any, key: str, inner: str) -> Optional[str]:
    if not isinstance(container, Mapping):
        return None
    value = container.get(key)
    if not isinstance(value, Mapping):
        return None
    return _string(value.get(inner))


def normalize_response_text(body: Any) -> str:
    """Return the generated text carried by a complete response ``body``.

    Looks, in order, at ``message.content``, ``choices[0].message.content``,
    the body itself when it is a string, then ``content`` and ``response``.
    Anything else is serialized whole so callers can still search it for JSON.
    """

    if isinstance(body, Mapping):
        text = _nested(body, "message", "content") or _nested(
            _first_choice(body), "message", "content"
        )
        if text is not None:
            return text
    if isinstance(body, str):
        return body
    if isinstance(body, Mapping):
        for key in ("content", "response"):
            text = _string(body.get(key))
            if text is not None:
                return text
    return json.dumps(body, ensure_ascii=False)


def extract_delta_text(event: Any) -> str:
    """Return the incremental text carried by one streamed ``event``."""

    if not isinstance(event, Mapping):
        return ""
    text = _nested(event, "message", "content") or _nested(
        _first_choice(event), "delta", "content"
    )
    if text is not None:
        return text
    for key in ("content", "response"):
        text = _string(event.get(key))
        if text is not None:
            return text
    return ""


def extract_json_object(text: str) -> Any:
    """Parse the span between the first ``{`` and the last ``}`` of ``text``.

    Raises :class:`MalformedResponseError` when no such span exists or it is
    not valid JSON; the error carries a compacted excerpt for diagnostics.
    """

    content = text or ""
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise MalformedResponseError(
            "AI response does not contain a JSON object.",
            excerpt=log_mgr.compact_excerpt(content, EXCERPT_LIMIT),
        )
    json_slice = content[start : end + 1]
    try:
        return json.loads(json_slice)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            "AI response is not valid JSON.",
            excerpt=log_mgr.compact_excerpt(json_slice, EXCERPT_LIMIT),
        ) from exc


def extract_token_usage(data: Any) -> TokenUsage:
    usage: TokenUsage = {}
    if not isinstance(data, Mapping):
        return usage
    for key in ("prompt_eval_count", "eval_count"):
        value = data.get(key)
        if isinstance(value, int):
            usage[key] = value
    return usage


def is_streaming_content_type(content_type: Optional[str]) -> bool:
    lowered = (content_type or "").lower()
    return any(marker in lowered for marker in STREAMING_CONTENT_TYPES)


class StreamState(str, Enum):
    """Lifecycle of a :class:`StreamDecoder`."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"
    TERMINATED = "terminated"


class StreamDecoder:
    """Incrementally rebuild generated text from a streamed response body.

    Bytes are decoded as UTF-8 across chunk boundaries and split into lines;
    an unterminated trailing line is held back until the next chunk. Each
    complete line is either a ``data:`` framed event, a bare JSON event
    (newline-delimited JSON), or the ``[DONE]`` sentinel which ends the stream.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self.state = StreamState.IDLE
        self.text = ""
        self.token_usage: TokenUsage = {}
        self.event_count = 0

    def feed(self, chunk: bytes) -> List[Tuple[str, str]]:
        """Consume ``chunk`` and return ``(delta, running_total)`` pairs."""

        if self.state is StreamState.TERMINATED:
            return []
        self.state = StreamState.ACCUMULATING
        self._pending += self._decoder.decode(chunk)
        lines = self._pending.split("\n")
        self._pending = lines.pop()
        return self._consume_lines(lines)

    def finish(self) -> List[Tuple[str, str]]:
        """Flush buffered input at end of stream."""

        if self.state is StreamState.TERMINATED:
            return []
        self._pending += self._decoder.decode(b"", final=True)
        remainder, self._pending = self._pending, ""
        updates = self._consume_lines([remainder])
        self.state = StreamState.TERMINATED
        return updates

    def _consume_lines(self, lines: List[str]) -> List[Tuple[str, str]]:
        updates: List[Tuple[str, str]] = []
        for line in lines:
            if self.state is StreamState.TERMINATED:
                break
            delta = self._consume_line(line)
            if delta:
                self.text += delta
                updates.append((delta, self.text))
        return updates

    def _consume_line(self, line: str) -> str:
        stripped = line.strip()
        if not stripped:
            return ""
        payload = stripped
        if payload.startswith(DATA_PREFIX):
            payload = payload[len(DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            self.state = StreamState.TERMINATED
            return ""
        try:
            event = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug(
                "Skipping non-JSON line from stream: %s",
                log_mgr.compact_excerpt(payload, 120),
            )
            return ""
        self.event_count += 1
        self.token_usage.update(extract_token_usage(event))
        return extract_delta_text(event)


__all__ = [
    "DONE_SENTINEL",
    "EXCERPT_LIMIT",
    "StreamDecoder",
    "StreamState",
    "TokenUsage",
    "extract_delta_text",
    "extract_json_object",
    "extract_token_usage",
    "is_streaming_content_type",
    "normalize_response_text",
]
