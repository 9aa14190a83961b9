"""Argument parsing helpers for the magic-lexicon CLI."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence


def _add_shared_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the preferences JSON file (defaults to conf/preferences.json).",
    )
    parser.add_argument("--data-dir", help="Directory holding the word collections.")
    parser.add_argument(
        "--collection",
        help="Collection file to use inside the data directory (defaults to words.json).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging output.")
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="magic-lexicon",
        description="Look up English words and ask questions, caching word analyses locally.",
    )
    _add_shared_arguments(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    lookup = subparsers.add_parser(
        "lookup", help="Resolve a word from the collection or the model, or ask a question."
    )
    lookup.add_argument("query", nargs="+", help="A single word or a free-form question.")

    analyze = subparsers.add_parser("analyze", help="Score and review an English sentence.")
    analyze.add_argument("sentence", nargs="+", help="Sentence to analyse.")
    analyze.add_argument(
        "--no-stream",
        action="store_true",
        help="Request the analysis without streaming.",
    )

    subparsers.add_parser("list", help="List stored words.")

    search = subparsers.add_parser("search", help="Search stored words.")
    search.add_argument("query", nargs="?", default="", help="Case-insensitive substring.")

    import_parser = subparsers.add_parser("import", help="Merge a JSON array of words.")
    import_parser.add_argument("path", help="JSON file to import.")

    export_parser = subparsers.add_parser("export", help="Write the collection to a JSON file.")
    export_parser.add_argument("path", help="Destination file.")

    subparsers.add_parser("collections", help="List collections in the data directory.")
    return parser


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse ``argv`` using the magic-lexicon parser."""

    return build_parser().parse_args(list(argv) if argv is not None else None)


__all__ = ["build_parser", "parse_cli_args"]
