#!/usr/bin/env python3
"""Forumops CLI entrypoint -- run without pip install.

Usage:
    python fopsrun.py up --wait
    python fopsrun.py --help
"""

import sys
from pathlib import Path

# Add src/ to import path so the forumops package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from forumops.cli import app

if __name__ == "__main__":
    app()
