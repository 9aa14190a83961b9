"""JSON document store for learned words.

All mutations run on a single writer thread owned by the store, one at a
time and in submission order. Each mutation re-reads the document, applies
its change and rewrites the whole file atomically. Reads bypass the writer
and see the last committed document.
"""

from __future__ import annotations

import json
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar, Union

from magic_lexicon import logging_manager as log_mgr
from magic_lexicon.config_manager import DEFAULT_WORDS_FILE
from magic_lexicon.errors import NotFoundError, ValidationError
from magic_lexicon.fsutils import atomic_write_json, read_json

from .catalog import sanitize_name
from .models import LexicalEntry, lookup_field, next_timestamp

logger = log_mgr.get_logger().getChild("lexicon_store")

T = TypeVar("T")
EntryPayload = Union[Mapping[str, Any], LexicalEntry]

_SERVER_ASSIGNED_KEYS = frozenset(
    {"id", "createdAt", "created_at", "updatedAt", "updated_at"}
)


def _payload_dict(payload: EntryPayload) -> Dict[str, Any]:
    if isinstance(payload, LexicalEntry):
        return payload.to_dict()
    if not isinstance(payload, Mapping):
        raise ValidationError("Entry payload must be a mapping.")
    return dict(payload)


class LexiconStore:
    """Persisted collection of :class:`LexicalEntry` records."""

    def __init__(self, base_dir: Path | str, file_name: str = DEFAULT_WORDS_FILE) -> None:
        if not base_dir:
            raise ValidationError("LexiconStore requires a base directory.")
        self._base_dir = Path(base_dir)
        self._file_name = sanitize_name(file_name)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lexicon-store")
        self._ensure_document()

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------
    @property
    def path(self) -> Path:
        """Return the path of the backing JSON document."""

        return self._base_dir / self._file_name

    @property
    def collection(self) -> str:
        return self._file_name

    def _ensure_document(self) -> None:
        self._base_dir.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            atomic_write_json(self.path, [])

    def _read_entries(self) -> List[LexicalEntry]:
        try:
            data = read_json(self.path)
        except FileNotFoundError:
            return []
        if not isinstance(data, list):
            return []
        return [LexicalEntry.from_dict(item) for item in data if isinstance(item, Mapping)]

    def _write_entries(self, entries: Iterable[LexicalEntry]) -> None:
        atomic_write_json(self.path, [entry.to_dict() for entry in entries])

    def _enqueue(self, operation: str, task: Callable[[], T]) -> "Future[T]":
        def _run() -> T:
            start = time.perf_counter()
            try:
                result = task()
            except Exception as exc:
                logger.error(
                    "Store operation %s failed: %s",
                    operation,
                    exc,
                    extra={"event": "lexicon_store.operation_failed", "operation": operation},
                )
                raise
            logger.debug(
                "Store operation %s committed",
                operation,
                extra={
                    "event": "lexicon_store.operation_committed",
                    "operation": operation,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            return result

        return self._executor.submit(_run)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_entries(self) -> List[LexicalEntry]:
        """Return every entry sorted by ``word``."""

        return sorted(self._read_entries(), key=lambda entry: entry.word)

    def get_by_id(self, entry_id: str) -> Optional[LexicalEntry]:
        for entry in self._read_entries():
            if entry.id == entry_id:
                return entry
        return None

    def search(self, query: Optional[str]) -> List[LexicalEntry]:
        """Return entries whose text fields or tags contain ``query``.

        Matching is a case-insensitive substring test; a blank query returns
        :meth:`list_entries`.
        """

        normalized = (query or "").strip().lower()
        if not normalized:
            return self.list_entries()
        return [entry for entry in self._read_entries() if normalized in entry.search_text()]

    def export_all(self) -> List[LexicalEntry]:
        """Return the collection in stored order."""

        return self._read_entries()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def submit_create(self, payload: EntryPayload) -> "Future[LexicalEntry]":
        data = {
            key: value
            for key, value in _payload_dict(payload).items()
            if key not in _SERVER_ASSIGNED_KEYS
        }
        entry = LexicalEntry.from_dict(data)
        if not entry.word:
            raise ValidationError("Entry word must not be empty.")

        def _task() -> LexicalEntry:
            existing = self._read_entries()
            existing.append(entry)
            self._write_entries(existing)
            logger.info(
                "Entry created",
                extra={"event": "lexicon_store.created", "entry_id": entry.id},
            )
            return entry

        return self._enqueue("create", _task)

    def create(self, payload: EntryPayload) -> LexicalEntry:
        """Store a new entry with a fresh id and timestamps and return it."""

        return self.submit_create(payload).result()

    def submit_update(self, entry_id: str, payload: EntryPayload) -> "Future[LexicalEntry]":
        changes = _payload_dict(payload)

        def _task() -> LexicalEntry:
            existing = self._read_entries()
            for index, current in enumerate(existing):
                if current.id == entry_id:
                    break
            else:
                raise NotFoundError(f"Word with id {entry_id} not found.")
            updated = current.merged_with(changes, updated_at=next_timestamp(current.updated_at))
            if not updated.word:
                raise ValidationError("Entry word must not be empty.")
            existing[index] = updated
            self._write_entries(existing)
            logger.info(
                "Entry updated",
                extra={"event": "lexicon_store.updated", "entry_id": entry_id},
            )
            return updated

        return self._enqueue("update", _task)

    def update(self, entry_id: str, payload: EntryPayload) -> LexicalEntry:
        """Merge ``payload`` over the stored entry; ``id`` and ``createdAt`` are kept."""

        return self.submit_update(entry_id, payload).result()

    def submit_remove(self, entry_id: str) -> "Future[bool]":
        def _task() -> bool:
            existing = self._read_entries()
            remaining = [entry for entry in existing if entry.id != entry_id]
            if len(remaining) == len(existing):
                raise NotFoundError(f"Word with id {entry_id} not found.")
            self._write_entries(remaining)
            logger.info(
                "Entry removed",
                extra={"event": "lexicon_store.removed", "entry_id": entry_id},
            )
            return True

        return self._enqueue("remove", _task)

    def remove(self, entry_id: str) -> bool:
        return self.submit_remove(entry_id).result()

    def submit_import_merge(self, entries: Iterable[Mapping[str, Any]]) -> "Future[int]":
        incoming = [
            LexicalEntry.from_dict(item)
            for item in entries
            if isinstance(item, Mapping) and lookup_field(item, "word")
        ]

        def _task() -> int:
            deduped: Dict[str, LexicalEntry] = {
                entry.word.lower(): entry for entry in self._read_entries()
            }
            for entry in incoming:
                if entry.word:
                    deduped[entry.word.lower()] = entry
            merged = list(deduped.values())
            self._write_entries(merged)
            logger.info(
                "Imported %d entries (%d in collection)",
                len(incoming),
                len(merged),
                extra={"event": "lexicon_store.imported"},
            )
            return len(merged)

        return self._enqueue("import_merge", _task)

    def import_merge(self, entries: Iterable[Mapping[str, Any]]) -> int:
        """Merge ``entries`` into the collection keyed by lower-cased word.

        An incoming record replaces any stored entry with the same word,
        including its id. Returns the size of the merged collection.
        """

        return self.submit_import_merge(entries).result()

    def use_collection(self, name: str) -> Path:
        """Point the store at another collection file in the same directory."""

        filename = sanitize_name(name)

        def _task() -> Path:
            self._file_name = filename
            self._ensure_document()
            logger.info(
                "Switched collection",
                extra={"event": "lexicon_store.collection_switched", "collection": filename},
            )
            return self.path

        return self._enqueue("use_collection", _task).result()

    # ------------------------------------------------------------------
    # File exchange
    # ------------------------------------------------------------------
    def import_file(self, path: Path | str) -> int:
        """Merge the JSON array stored at ``path`` into the collection."""

        try:
            incoming = read_json(path)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Unable to parse JSON: {exc}") from exc
        if not isinstance(incoming, list):
            raise ValidationError("Imported JSON must be an array of word objects.")
        return self.import_merge(incoming)

    def export_file(self, path: Path | str) -> Dict[str, int]:
        entries = self.export_all()
        atomic_write_json(path, [entry.to_dict() for entry in entries])
        return {"exported": len(entries)}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Wait for pending mutations and stop the writer thread."""

        self._executor.shutdown(wait=True)

    def __enter__(self) -> "LexiconStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


__all__ = ["LexiconStore"]
