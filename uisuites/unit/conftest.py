"""
Unit test fixtures: isolated configuration and fake Playwright handles.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import pytest
import yaml

from uisuites.framework.artifacts import ArtifactLayout
from uisuites.framework.config_loader import DEFAULTS, ConfigLoader
from uisuites.framework.session_manager import SessionManager
from uisuites.framework.session_registry import SessionRegistry
from uisuites.unit.fakes import FakePlaywright, RecordingSink


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Fresh ConfigLoader per test, with no harness env overrides leaking in."""
    for key in list(DEFAULTS) + ["UI_CONFIG_PATH"]:
        monkeypatch.delenv(key.upper().replace(".", "_"), raising=False)
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def make_config(tmp_path):
    def _make(data: Optional[Dict[str, Any]] = None) -> ConfigLoader:
        data = dict(data or {})
        data.setdefault("artifacts.root", str(tmp_path / "reports"))
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump(data), encoding="utf-8")
        ConfigLoader.reset()
        return ConfigLoader(config_path=config_path)

    return _make


@pytest.fixture
def playwright_world() -> FakePlaywright:
    return FakePlaywright()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_manager(make_config, playwright_world, sink):
    """Build a SessionManager wired to fakes; config keys may be overridden."""

    def _make(config_data: Optional[Dict[str, Any]] = None, **kwargs: Any) -> SessionManager:
        config = make_config(config_data)
        kwargs.setdefault("registry", SessionRegistry())
        kwargs.setdefault("sink", sink)
        kwargs.setdefault("artifacts", ArtifactLayout(Path(config.get("artifacts.root"))))
        kwargs.setdefault("engine_factory", playwright_world.start)
        return SessionManager(config=config, **kwargs)

    return _make
