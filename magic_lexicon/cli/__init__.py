"""Command line interface for magic-lexicon."""

from .main import main

__all__ = ["main"]
