"""Filesystem utility helpers for magic-lexicon."""

from __future__ import annotations

from .atomic_write import atomic_write_json, read_json

__all__ = [
    "atomic_write_json",
    "read_json",
]
