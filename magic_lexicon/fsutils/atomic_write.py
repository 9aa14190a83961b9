"""Atomic JSON document writes."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any
from uuid import uuid4


def atomic_write_json(path: Path | str, payload: Any, *, indent: int = 2) -> None:
    """Serialize ``payload`` to ``path`` so readers never observe a partial file.

    The document is written to a uniquely named sibling and then swapped into
    place with :func:`os.replace`.
    """

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = target.with_name(f".{target.name}.tmp-{uuid4().hex}")
    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=indent)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except Exception:
        try:
            tmp_path.unlink()
        except OSError:
            pass
        raise


def read_json(path: Path | str) -> Any:
    """Return the decoded JSON document stored at ``path``."""

    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle)
