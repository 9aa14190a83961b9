"""Console-script entry point for magic-lexicon."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Iterable, Optional, Sequence, TextIO

from magic_lexicon import logging_manager as log_mgr
from magic_lexicon.config_manager import PreferencesStore
from magic_lexicon.errors import LexiconError
from magic_lexicon.lexicon_store import LexicalEntry, LexiconCatalog, LexiconStore
from magic_lexicon.services import (
    Answered,
    Failed,
    Found,
    Generated,
    InferenceClient,
    ResolutionCoordinator,
)

from .args import parse_cli_args

logger = log_mgr.get_logger().getChild("cli")


def _dump(payload: Any, stream: TextIO) -> None:
    stream.write(json.dumps(payload, ensure_ascii=False, indent=2))
    stream.write("\n")


def _dump_entries(entries: Iterable[LexicalEntry], stream: TextIO) -> None:
    _dump([entry.to_dict() for entry in entries], stream)


def _run_lookup(
    args: argparse.Namespace,
    store: LexiconStore,
    inference: InferenceClient,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    coordinator = ResolutionCoordinator(store, inference)

    def _echo(delta: str, _total: str) -> None:
        stdout.write(delta)
        stdout.flush()

    outcome = coordinator.resolve(" ".join(args.query), on_chunk=_echo)
    if isinstance(outcome, Failed):
        stderr.write(f"Error ({outcome.kind}): {outcome.message}\n")
        return 1
    if isinstance(outcome, Answered):
        stdout.write("\n")
        return 0
    if isinstance(outcome, (Found, Generated)):
        _dump({"source": type(outcome).__name__.lower(), "entry": outcome.entry.to_dict()}, stdout)
    return 0


def _run_command(
    args: argparse.Namespace,
    preferences: PreferencesStore,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    settings = preferences.settings()
    data_dir = args.data_dir or settings.data_dir

    if args.command == "collections":
        _dump(LexiconCatalog(data_dir).list_collections(), stdout)
        return 0

    with LexiconStore(data_dir, args.collection or settings.words_file) as store:
        if args.command == "list":
            _dump_entries(store.list_entries(), stdout)
            return 0
        if args.command == "search":
            _dump_entries(store.search(args.query), stdout)
            return 0
        if args.command == "import":
            _dump({"merged": store.import_file(args.path)}, stdout)
            return 0
        if args.command == "export":
            _dump(store.export_file(args.path), stdout)
            return 0

        inference = InferenceClient(preferences)
        try:
            if args.command == "analyze":
                analysis = inference.analyze_sentence(
                    " ".join(args.sentence), stream=not args.no_stream
                )
                _dump(analysis, stdout)
                return 0
            return _run_lookup(args, store, inference, stdout, stderr)
        finally:
            inference.close()


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Run the magic-lexicon CLI and return its exit code."""

    out = stdout or sys.stdout
    err = stderr or sys.stderr
    args = parse_cli_args(argv)
    preferences = PreferencesStore(args.config)
    log_mgr.configure_logging_level(
        debug_enabled=bool(args.debug or preferences.get("debug", False))
    )
    try:
        return _run_command(args, preferences, out, err)
    except LexiconError as exc:
        logger.error(
            "Command %s failed: %s",
            args.command,
            exc,
            extra={"event": "cli.command_failed", "status": exc.kind},
        )
        err.write(f"Error ({exc.kind}): {exc.message}\n")
        return 1


if __name__ == "__main__":  # pragma: no cover - manual execution
    sys.exit(main())
