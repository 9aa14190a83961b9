"""HTTP transport for Ollama-compatible ``/api/chat`` endpoints."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple
from urllib.parse import urljoin

import requests

from magic_lexicon import logging_manager as log_mgr
from magic_lexicon.config_manager import CHAT_ENDPOINT_PATH, DEFAULT_MODEL, DEFAULT_OLLAMA_HOST
from magic_lexicon.errors import InferenceTimeoutError, MalformedResponseError, TransportError
from magic_lexicon.llm_responses import EXCERPT_LIMIT, TokenUsage

logger = log_mgr.get_logger().getChild("llm_client")

_ERROR_BODY_PREVIEW = 300
CONNECT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class ClientSettings:
    """Endpoint, credentials and model for one request."""

    host: str = DEFAULT_OLLAMA_HOST
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    debug: bool = False

    def resolve_api_url(self) -> str:
        """Return the chat endpoint URL under ``host``."""

        return urljoin(self.host or DEFAULT_OLLAMA_HOST, CHAT_ENDPOINT_PATH)


class RequestDeadline:
    """Wall-clock budget armed when a request starts."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = float(timeout_seconds)
        self._expires_at = time.monotonic() + self.timeout_seconds

    def remaining(self) -> float:
        return max(self._expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def timeout_error(self) -> InferenceTimeoutError:
        return InferenceTimeoutError(
            f"AI request timeout after {self.timeout_seconds:g} seconds.",
            timeout_seconds=self.timeout_seconds,
        )

    def check(self) -> None:
        if self.expired():
            raise self.timeout_error()

    def request_timeout(self) -> Tuple[float, float]:
        """Return the ``(connect, read)`` timeout pair for ``requests``.

        Both are capped by the remaining budget. ``requests`` applies the read
        timeout to each socket read, so a stream that stalls late in the budget
        can run past the deadline by up to one read timeout before it is
        aborted; the deadline itself is re-checked after every chunk.
        """

        remaining = self.remaining() or self.timeout_seconds
        return (min(CONNECT_TIMEOUT_SECONDS, remaining), remaining)


class LLMClient:
    """Chat transport bound to one endpoint and a caller-owned session.

    The client never closes the session; whoever created it does.
    """

    def __init__(self, settings: ClientSettings, *, session: requests.Session) -> None:
        self._settings = settings
        self._session = session

    @property
    def model(self) -> str:
        return self._settings.model

    @property
    def api_url(self) -> str:
        return self._settings.resolve_api_url()

    def _log_debug(self, message: str, *args: Any) -> None:
        if self._settings.debug:
            logger.debug(message, *args)

    def log_token_usage(self, usage: TokenUsage) -> None:
        """Debug-log the prompt and completion token counts the endpoint reported."""

        if usage:
            self._log_debug(
                "Tokens used: %d prompt, %d completion",
                usage.get("prompt_eval_count", 0),
                usage.get("eval_count", 0),
            )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        return headers

    def post_chat(
        self, payload: Dict[str, Any], *, deadline: RequestDeadline
    ) -> requests.Response:
        """POST ``payload`` and return the successful response.

        Raises :class:`TransportError` for network failures and non-2xx
        statuses, :class:`InferenceTimeoutError` once ``deadline`` elapses.
        """

        stream = bool(payload.get("stream", False))
        api_url = self.api_url
        self._log_debug("Dispatching LLM request to %s with stream=%s", api_url, stream)
        self._log_debug(
            "Payload: %s",
            log_mgr.compact_excerpt(json.dumps(payload, ensure_ascii=False), EXCERPT_LIMIT),
        )

        deadline.check()
        try:
            response = self._session.post(
                api_url,
                json=payload,
                headers=self._headers(),
                stream=stream,
                timeout=deadline.request_timeout(),
            )
        except requests.exceptions.Timeout as exc:
            raise deadline.timeout_error() from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"AI request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            body_preview = (response.text or "")[:_ERROR_BODY_PREVIEW]
            response.close()
            self._log_debug(
                "Received non-2xx response: %s - %s", response.status_code, body_preview
            )
            detail = body_preview or getattr(response, "reason", "") or "request failed"
            raise TransportError(
                f"AI HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        if deadline.expired():
            response.close()
            raise deadline.timeout_error()
        return response

    def read_json(self, response: requests.Response) -> Any:
        """Return the decoded body of a non-streaming response."""

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                "AI response body is not valid JSON.",
                excerpt=log_mgr.compact_excerpt(response.text, EXCERPT_LIMIT),
            ) from exc
        finally:
            response.close()

    def iter_stream(
        self, response: requests.Response, *, deadline: RequestDeadline
    ) -> Iterator[bytes]:
        """Yield raw body chunks as they arrive, enforcing ``deadline``."""

        try:
            for chunk in response.iter_content(chunk_size=None):
                deadline.check()
                if chunk:
                    yield chunk
        except requests.exceptions.Timeout as exc:
            raise deadline.timeout_error() from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"AI stream interrupted: {exc}") from exc
        finally:
            response.close()


__all__ = [
    "ClientSettings",
    "LLMClient",
    "RequestDeadline",
]
