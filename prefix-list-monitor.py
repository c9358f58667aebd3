#!/usr/bin/env python3

"""Run the monitor straight from a checkout.

Handy for a quick `./prefix-list-monitor.py --once --prefix-list-id pl-...`
against a real prefix list before installing the package or building an
image. Puts `src/` on sys.path, then hands off to the packaged entry point.
"""

import sys
from pathlib import Path


sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from prefix_list_monitor.cli import main  # noqa: E402


if __name__ == "__main__":
    main()
