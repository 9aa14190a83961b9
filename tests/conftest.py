import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import pytest
from requests.structures import CaseInsensitiveDict

from magic_lexicon.config_manager import PreferencesStore
from magic_lexicon.lexicon_store import LexiconStore


class FakeResponse:
    """Minimal stand-in for :class:`requests.Response`."""

    def __init__(
        self,
        *,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        chunks: Sequence[bytes] = (),
        content_type: str = "application/json",
        error: Optional[BaseException] = None,
    ) -> None:
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Error"
        self.headers = CaseInsensitiveDict({"Content-Type": content_type})
        self.text = text if text is not None else json.dumps(json_body)
        self._chunks = list(chunks)
        self._error = error
        self.closed = False

    def json(self) -> Any:
        return json.loads(self.text)

    def iter_content(self, chunk_size: Optional[int] = None) -> Iterable[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Replays queued responses (or raises queued exceptions) for each POST."""

    def __init__(self, responses: Sequence[Union[FakeResponse, BaseException]] = ()) -> None:
        self.responses: List[Union[FakeResponse, BaseException]] = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def queue(self, *responses: Union[FakeResponse, BaseException]) -> None:
        self.responses.extend(responses)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request to {url}")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


def sse_lines(*deltas: str, done: bool = True) -> bytes:
    """Encode ``deltas`` as ``data:`` framed Ollama chat events."""

    lines = [
        "data: " + json.dumps({"message": {"role": "assistant", "content": delta}})
        for delta in deltas
    ]
    if done:
        lines.append("data: [DONE]")
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def sse():
    return sse_lines


@pytest.fixture
def preferences(tmp_path) -> PreferencesStore:
    return PreferencesStore(
        tmp_path / "preferences.json",
        use_environment=False,
        overrides={
            "ollama_api_key": "test-key",
            "ollama_host": "https://llm.example.test",
            "ollama_model": "test-model",
        },
    )


@pytest.fixture
def store(tmp_path):
    lexicon = LexiconStore(tmp_path / "data")
    yield lexicon
    lexicon.close()
