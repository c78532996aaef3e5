"""
The processing core must stay importable without a display stack.

Each check runs in a fresh interpreter so modules already imported by other
tests (e.g. PySide6 via the GUI tests) cannot mask a regression.
"""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.parametrize(
    "module",
    [
        "shared",
        "shared.app_settings",
        "core",
        "core.pipeline",
        "daq.frames",
        "daq.device_client",
        "daq.simulated_source",
        "daq.websocket_source",
    ],
)
def test_module_imports_without_qt(module):
    code = (
        "import importlib, sys\n"
        f"importlib.import_module({module!r})\n"
        "assert 'PySide6' not in sys.modules, 'PySide6 imported'\n"
    )
    result = subprocess.run(
        [sys.executable, "-c", code],
        cwd=str(ROOT),
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert result.returncode == 0, result.stderr
