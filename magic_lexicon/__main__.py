"""Allow ``python -m magic_lexicon``."""

from __future__ import annotations

import sys

from magic_lexicon.cli.main import main

if __name__ == "__main__":  # pragma: no cover - manual execution
    sys.exit(main())
