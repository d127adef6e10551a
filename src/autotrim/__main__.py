"""
autotrim package entry point.

Supports:
  - python -m autotrim [args...]
  - PyInstaller bundled executable (where __package__ can be empty)
"""

from __future__ import annotations

import os
import sys


def _ensure_import_path() -> None:
    """
    When executed by PyInstaller, __package__ may be empty and relative imports break.
    Ensure src/ is on sys.path so `autotrim.cli` resolves.
    """
    if __package__:
        return

    pkg_dir = os.path.dirname(os.path.abspath(__file__))  # .../src/autotrim
    src_dir = os.path.dirname(pkg_dir)                    # .../src
    if src_dir not in sys.path:
        sys.path.insert(0, src_dir)


def main() -> None:
    _ensure_import_path()

    from autotrim.cli import main as cli_main
    cli_main()


if __name__ == "__main__":
    main()
