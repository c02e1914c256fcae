"""Root pytest configuration for all tests.

Adds the project root and src/ to sys.path when the package is not
installed, so that ``domain``, ``infrastructure`` and ``tests.conftest_utils``
import the same way they do under ``pythonpath`` in pyproject.toml.
"""

import sys
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Ensure project root and src/ are importable (idempotent)."""
    project_root = Path(__file__).parent.parent.resolve()
    resolved_sys_paths = {str(Path(p).resolve()) for p in sys.path if p}

    for path in (project_root / "src", project_root):
        path_str = str(path)
        if path_str not in resolved_sys_paths:
            sys.path.insert(0, path_str)
