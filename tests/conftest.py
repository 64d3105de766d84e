"""Pytest configuration for test isolation.

The package reads its anchor date, field-mapping path and log level from
``STUDIO_PIVOT_*`` environment variables, and the CLI loads a ``.env`` from
the working directory. A developer's shell or ``.env`` could therefore shift
every bucket window under test. An autouse fixture clears those variables and
runs each test from its own temporary directory.
"""

from __future__ import annotations

from pathlib import Path

import pytest

_ENV_VARS = (
    "STUDIO_PIVOT_ANCHOR_DATE",
    "STUDIO_PIVOT_FIELD_MAPPING",
    "STUDIO_PIVOT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop package env vars and chdir into the test's temporary directory."""

    for name in _ENV_VARS:
        # setenv first so teardown also removes values a test (or the CLI's
        # load_dotenv) writes straight into os.environ.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
