from __future__ import annotations

import json

import pytest

from magic_lexicon.errors import MalformedResponseError
from magic_lexicon.llm_responses import (
    StreamDecoder,
    StreamState,
    extract_delta_text,
    extract_json_object,
    extract_token_usage,
    is_streaming_content_type,
    normalize_response_text,
)


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"message": {"content": "ollama"}, "content": "other"}, "ollama"),
        ({"choices": [{"message": {"content": "openai"}}], "response": "other"}, "openai"),
        ("plain text", "plain text"),
        ({"content": "top-level"}, "top-level"),
        ({"response": "generate-style"}, "generate-style"),
    ],
)
def test_normalize_response_text_known_shapes(body, expected):
    assert normalize_response_text(body) == expected


def test_normalize_response_text_serializes_unknown_shapes():
    body = {"unexpected": {"value": 1}}

    assert json.loads(normalize_response_text(body)) == body


def test_extract_delta_text_order():
    assert extract_delta_text({"message": {"content": "a"}}) == "a"
    assert extract_delta_text({"choices": [{"delta": {"content": "b"}}]}) == "b"
    assert extract_delta_text({"content": "c"}) == "c"
    assert extract_delta_text({"response": "d"}) == "d"
    assert extract_delta_text({"done": True}) == ""
    assert extract_delta_text("nope") == ""


def test_extract_json_object_from_surrounding_text():
    assert extract_json_object('prefix {"a":1} suffix') == {"a": 1}
    assert extract_json_object('```json\n{"a": {"b": [1, 2]}}\n```') == {"a": {"b": [1, 2]}}


def test_extract_json_object_without_braces():
    with pytest.raises(MalformedResponseError) as excinfo:
        extract_json_object("no json here")

    assert excinfo.value.kind == "malformed_response"
    assert excinfo.value.excerpt == "no json here"


def test_extract_json_object_invalid_json_has_compact_excerpt():
    text = "{" + "bad   \n\n value " * 100 + "}"

    with pytest.raises(MalformedResponseError) as excinfo:
        extract_json_object(text)

    excerpt = excinfo.value.excerpt
    assert len(excerpt) <= 400
    assert "  " not in excerpt
    assert "\n" not in excerpt


def test_extract_token_usage_keeps_integer_counts():
    assert extract_token_usage({"prompt_eval_count": 3, "eval_count": 7, "x": 1}) == {
        "prompt_eval_count": 3,
        "eval_count": 7,
    }
    assert extract_token_usage(None) == {}


def test_is_streaming_content_type():
    assert is_streaming_content_type("text/event-stream; charset=utf-8")
    assert is_streaming_content_type("application/x-ndjson")
    assert not is_streaming_content_type("application/json")
    assert not is_streaming_content_type(None)


def test_stream_decoder_reports_running_total():
    decoder = StreamDecoder()
    updates = decoder.feed(
        b'data: {"message":{"content":"Hel"}}\n'
        b'data: {"message":{"content":"lo"}}\n'
        b"data: [DONE]\n"
    )

    assert updates == [("Hel", "Hel"), ("lo", "Hello")]
    assert decoder.text == "Hello"
    assert decoder.state is StreamState.TERMINATED


def test_stream_decoder_holds_partial_lines_and_multibyte_characters():
    payload = 'data: {"message":{"content":"café ☕"}}\n'.encode("utf-8")
    split_at = payload.index("☕".encode("utf-8")) + 1
    decoder = StreamDecoder()

    assert decoder.feed(payload[:split_at]) == []
    assert decoder.feed(payload[split_at:]) == [("café ☕", "café ☕")]


def test_stream_decoder_ignores_noise_and_lines_after_done():
    decoder = StreamDecoder()
    decoder.feed(b": keep-alive\n\nnot json\n")
    decoder.feed(b'data: {"message":{"content":"ok"}}\ndata: [DONE]\n')
    late = decoder.feed(b'data: {"message":{"content":"late"}}\n')

    assert late == []
    assert decoder.text == "ok"
    assert decoder.finish() == []


def test_stream_decoder_parses_ndjson_and_trailing_line():
    decoder = StreamDecoder()
    decoder.feed(b'{"message":{"content":"a"}}\n{"message":{"content":"b"},')
    decoder.feed(b'"done":false}\n{"message":{"content":"c"},"done":true,"eval_count":5}')

    assert decoder.text == "ab"
    assert decoder.finish() == [("c", "abc")]
    assert decoder.token_usage == {"eval_count": 5}
    assert decoder.event_count == 3
    assert decoder.state is StreamState.TERMINATED
