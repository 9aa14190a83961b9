"""Named word collections, one JSON document per collection."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from magic_lexicon import logging_manager as log_mgr
from magic_lexicon.errors import NotFoundError, ValidationError
from magic_lexicon.fsutils import atomic_write_json

logger = log_mgr.get_logger().getChild("lexicon_store.catalog")

JSON_EXT = ".json"
_INVALID_NAME_CHARS = re.compile(r'[\\/:*?"<>|]')


def sanitize_name(name: object) -> str:
    """Return a collection file name for ``name``.

    Raises :class:`ValidationError` for empty names and names containing
    path separators or other characters that are illegal in file names.
    """

    trimmed = str(name or "").strip()
    if not trimmed:
        raise ValidationError("Name must not be empty.")
    if _INVALID_NAME_CHARS.search(trimmed):
        raise ValidationError("Name contains invalid characters.")
    return trimmed if trimmed.endswith(JSON_EXT) else trimmed + JSON_EXT


class LexiconCatalog:
    """List, create, remove and rename collections inside ``base_dir``."""

    def __init__(self, base_dir: Path | str) -> None:
        if not base_dir:
            raise ValidationError("LexiconCatalog requires a base directory.")
        self._dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._dir

    def set_base_dir(self, base_dir: Path | str) -> None:
        if not base_dir:
            raise ValidationError("base_dir is required.")
        self._dir = Path(base_dir)

    def path_for(self, name: str) -> Path:
        return self._dir / sanitize_name(name)

    def list_collections(self) -> List[str]:
        self._dir.mkdir(parents=True, exist_ok=True)
        return sorted(
            path.name
            for path in self._dir.iterdir()
            if path.is_file() and path.name.lower().endswith(JSON_EXT)
        )

    def create_collection(self, name: str) -> str:
        filename = sanitize_name(name)
        target = self._dir / filename
        if target.exists():
            raise ValidationError(f"Collection {filename} already exists.")
        atomic_write_json(target, [])
        logger.info(
            "Collection created",
            extra={"event": "catalog.created", "collection": filename},
        )
        return filename

    def remove_collection(self, name: str) -> bool:
        filename = sanitize_name(name)
        target = self._dir / filename
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise NotFoundError(f"Collection {filename} not found.") from exc
        logger.info(
            "Collection removed",
            extra={"event": "catalog.removed", "collection": filename},
        )
        return True

    def rename_collection(self, old_name: str, new_name: str) -> str:
        source = self._dir / sanitize_name(old_name)
        destination = self._dir / sanitize_name(new_name)
        if source == destination:
            return destination.name
        if not source.exists():
            raise NotFoundError(f"Collection {source.name} not found.")
        if destination.exists():
            raise ValidationError(f"Collection {destination.name} already exists.")
        source.replace(destination)
        logger.info(
            "Collection renamed",
            extra={
                "event": "catalog.renamed",
                "collection": destination.name,
                "previous": source.name,
            },
        )
        return destination.name


__all__ = ["JSON_EXT", "LexiconCatalog", "sanitize_name"]
