#!/usr/bin/env python3
"""
NoteTogether CLI.

Entry point for running the command-line client from a checkout.
Installed environments get the same app as the `notetogether` command.

Usage:
    python cli.py --help
    python cli.py auth login -e ana@example.com
    python cli.py notes list
"""

import sys
from pathlib import Path

# Add project root to path for absolute imports
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from notetogether.cli.app import app  # noqa: E402

if __name__ == "__main__":
    app()
