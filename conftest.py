"""
================================================================================
Repository Pytest Configuration
================================================================================

Command line options shared by every suite, and the demo credentials the
end-to-end tests log in with.

The credentials are the public ones published on
https://the-internet.herokuapp.com/login. CI can point the tests at other
accounts by exporting UI_USERNAME / UI_PASSWORD before the run.

================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


DEMO_CREDENTIALS = {
    "UI_USERNAME": "tomsmith",
    "UI_PASSWORD": "SuperSecretPassword!",
}


def pytest_addoption(parser):
    """Register harness command line options."""
    group = parser.getgroup("uisuites", "UI session harness")
    group.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run end-to-end tests that launch a real browser against baseUrl",
    )


@pytest.fixture(scope="session")
def project_root() -> Path:
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def demo_credentials() -> Generator[dict, None, None]:
    """Login credentials for the demo site; exported values win."""
    for key, value in DEMO_CREDENTIALS.items():
        os.environ.setdefault(key, value)
    yield {key: os.environ[key] for key in DEMO_CREDENTIALS}
