"""Make the top-level packages and the shared test fixtures importable."""
from __future__ import annotations

import sys
from pathlib import Path

TEST_DIR = Path(__file__).resolve().parent
ROOT = TEST_DIR.parent

for path in (str(TEST_DIR), str(ROOT)):
    if path not in sys.path:
        sys.path.insert(0, path)
