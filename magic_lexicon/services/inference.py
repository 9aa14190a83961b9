"""Word, sentence and chat analysis backed by a remote chat model."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Protocol

import requests

from magic_lexicon import logging_manager as log_mgr
from magic_lexicon import prompt_templates
from magic_lexicon.config_manager import (
    DEFAULT_CHAT_TIMEOUT_SECONDS,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_HOST,
    DEFAULT_SENTENCE_TIMEOUT_SECONDS,
    DEFAULT_WORD_TIMEOUT_SECONDS,
)
from magic_lexicon.errors import ConfigurationError, ValidationError
from magic_lexicon.llm_client import ClientSettings, LLMClient, RequestDeadline
from magic_lexicon.llm_responses import (
    StreamDecoder,
    extract_json_object,
    extract_token_usage,
    is_streaming_content_type,
    normalize_response_text,
)

logger = log_mgr.get_logger().getChild("services.inference")

ChunkCallback = Callable[[str, str], None]
"""Receives ``(delta, running_total)`` for every piece of streamed text."""

MISSING_API_KEY_MESSAGE = (
    "Missing API key. Please configure your Ollama Cloud API key in Settings."
)

WORD_TEMPERATURE = 0.3
WORD_MAX_TOKENS = 500
SENTENCE_TEMPERATURE = 0.3
SENTENCE_MAX_TOKENS = 2000


class ConfigProvider(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


class InferenceClient:
    """Turn words, sentences and questions into model answers.

    Every call reads host, API key and model from ``preferences`` first, so
    configuration changes apply to the next request.
    """

    def __init__(
        self,
        preferences: ConfigProvider,
        *,
        session: Optional[requests.Session] = None,
        replay_chunk_size: int = 10,
        replay_delay_seconds: float = 0.02,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._preferences = preferences
        self._session = session or requests.Session()
        self._replay_chunk_size = max(1, replay_chunk_size)
        self._replay_delay_seconds = replay_delay_seconds
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def _client(self) -> LLMClient:
        api_key = str(self._preferences.get("ollama_api_key", "") or "").strip()
        if not api_key:
            raise ConfigurationError(MISSING_API_KEY_MESSAGE)
        settings = ClientSettings(
            host=str(self._preferences.get("ollama_host", DEFAULT_OLLAMA_HOST) or DEFAULT_OLLAMA_HOST),
            api_key=api_key,
            model=str(self._preferences.get("ollama_model", DEFAULT_MODEL) or DEFAULT_MODEL),
            debug=bool(self._preferences.get("debug", False)),
        )
        return LLMClient(settings, session=self._session)

    def _timeout(self, key: str, default: float) -> float:
        value = self._preferences.get(key, default)
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return default
        return seconds if seconds > 0 else default

    def _definition_language(self) -> str:
        return str(
            self._preferences.get(
                "definition_language", prompt_templates.DEFAULT_DEFINITION_LANGUAGE
            )
        )

    # ------------------------------------------------------------------
    # Shared request paths
    # ------------------------------------------------------------------
    def _request_text(self, client: LLMClient, payload: Dict[str, Any], timeout: float) -> str:
        deadline = RequestDeadline(timeout)
        response = client.post_chat(payload, deadline=deadline)
        body = client.read_json(response)
        client.log_token_usage(extract_token_usage(body))
        return normalize_response_text(body)

    def _request_stream(
        self,
        client: LLMClient,
        response: requests.Response,
        deadline: RequestDeadline,
        on_chunk: Optional[ChunkCallback],
    ) -> str:
        decoder = StreamDecoder()
        for chunk in client.iter_stream(response, deadline=deadline):
            for delta, total in decoder.feed(chunk):
                if on_chunk is not None:
                    on_chunk(delta, total)
        for delta, total in decoder.finish():
            if on_chunk is not None:
                on_chunk(delta, total)
        client.log_token_usage(decoder.token_usage)
        return decoder.text

    def _replay(self, text: str, on_chunk: ChunkCallback) -> None:
        size = self._replay_chunk_size
        running = ""
        for start in range(0, len(text), size):
            if start:
                self._sleep(self._replay_delay_seconds)
            piece = text[start : start + size]
            running += piece
            on_chunk(piece, running)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def analyze_word(self, word: str) -> Dict[str, Any]:
        """Return the model's JSON analysis of ``word``.

        The object carries ``definition``, ``word_type``, ``cefr_level``,
        ``ipa_pronunciation`` and ``example_sentence``.
        """

        cleaned = (word or "").strip()
        if not cleaned:
            raise ValidationError("Word must not be empty.")
        client = self._client()
        payload = prompt_templates.make_chat_payload(
            prompt_templates.build_word_prompt(
                cleaned, definition_language=self._definition_language()
            ),
            model=client.model,
            stream=False,
            temperature=WORD_TEMPERATURE,
            max_tokens=WORD_MAX_TOKENS,
            json_mode=True,
        )
        start = time.perf_counter()
        text = self._request_text(
            client, payload, self._timeout("word_timeout_seconds", DEFAULT_WORD_TIMEOUT_SECONDS)
        )
        analysis = extract_json_object(text)
        logger.info(
            "Word analysis completed",
            extra={
                "event": "inference.word.completed",
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return analysis

    def analyze_sentence(
        self,
        sentence: str,
        *,
        stream: bool = True,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> Dict[str, Any]:
        """Return a scored JSON review of ``sentence``.

        Streaming is attempted first when ``stream`` is true; if that path
        fails for any reason the same prompt is sent once more without
        streaming and only that second failure reaches the caller.
        """

        cleaned = (sentence or "").strip()
        if not cleaned:
            raise ValidationError("Sentence must not be empty.")
        client = self._client()
        timeout = self._timeout("sentence_timeout_seconds", DEFAULT_SENTENCE_TIMEOUT_SECONDS)
        prompt = prompt_templates.build_sentence_analysis_prompt(
            cleaned, definition_language=self._definition_language()
        )

        if stream:
            payload = prompt_templates.make_chat_payload(
                prompt,
                model=client.model,
                stream=True,
                temperature=SENTENCE_TEMPERATURE,
                max_tokens=SENTENCE_MAX_TOKENS,
                json_mode=True,
            )
            try:
                deadline = RequestDeadline(timeout)
                response = client.post_chat(payload, deadline=deadline)
                text = self._request_stream(client, response, deadline, on_chunk)
                return extract_json_object(text)
            except Exception as exc:
                # Any streaming failure, including one raised by on_chunk, gets one retry.
                logger.warning(
                    "Streaming failed, falling back to non-streaming: %s",
                    exc,
                    extra={
                        "event": "inference.sentence.stream_fallback",
                        "status": getattr(exc, "kind", type(exc).__name__),
                    },
                )

        payload = prompt_templates.make_chat_payload(
            prompt,
            model=client.model,
            stream=False,
            temperature=SENTENCE_TEMPERATURE,
            max_tokens=SENTENCE_MAX_TOKENS,
            json_mode=True,
        )
        return extract_json_object(self._request_text(client, payload, timeout))

    def chat(
        self,
        message: str,
        *,
        stream: bool = False,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> str:
        """Answer a free-form question.

        With ``stream`` the answer is also delivered piece by piece through
        ``on_chunk``. Endpoints that ignore the streaming flag get their
        complete answer replayed in small slices so callers see the same
        progressive delivery either way.
        """

        question = (message or "").strip()
        if not question:
            raise ValidationError("Message must not be empty.")
        if stream and not callable(on_chunk):
            raise ValidationError("on_chunk callback is required for streaming.")
        client = self._client()
        payload = prompt_templates.make_chat_payload(
            question,
            model=client.model,
            stream=stream,
            system_prompt=prompt_templates.CHAT_SYSTEM_PROMPT,
        )
        timeout = self._timeout("chat_timeout_seconds", DEFAULT_CHAT_TIMEOUT_SECONDS)

        if not stream:
            return self._request_text(client, payload, timeout).strip()

        deadline = RequestDeadline(timeout)
        response = client.post_chat(payload, deadline=deadline)
        if is_streaming_content_type(response.headers.get("Content-Type")):
            return self._request_stream(client, response, deadline, on_chunk)

        body = client.read_json(response)
        client.log_token_usage(extract_token_usage(body))
        text = normalize_response_text(body)
        self._replay(text, on_chunk)
        return text

    def close(self) -> None:
        self._session.close()


__all__ = [
    "ChunkCallback",
    "ConfigProvider",
    "InferenceClient",
    "MISSING_API_KEY_MESSAGE",
]
