"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures that wire the session harness into pytest:

- One ConfigLoader, SessionRegistry, reporting sink and SessionManager per
  worker process
- A function-scoped ``ui_session`` that begins a browser session before the
  test and always ends it afterwards with the test's real outcome
- Page object fixtures resolving their page through the registry

================================================================================
"""

from typing import Generator

import pytest
from loguru import logger

from uisuites.framework.artifacts import ArtifactLayout
from uisuites.framework.config_loader import ConfigLoader
from uisuites.framework.log_config import init_logger
from uisuites.framework.models import Session, SessionOverrides, TestStatus
from uisuites.framework.reporting import AllureReportingSink, write_environment
from uisuites.framework.session_manager import SessionManager
from uisuites.framework.session_registry import SessionRegistry
from uisuites.pages.herokuapp_page import HerokuAppPage


def _is_controller(config) -> bool:
    """True outside pytest-xdist workers."""
    return not hasattr(config, "workerinput")


# ================================================================================
# Harness Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def framework_config() -> ConfigLoader:
    """Process-wide configuration; the logger is initialised from it once."""
    config = ConfigLoader()
    init_logger(config)
    return config


@pytest.fixture(scope="session")
def artifact_layout(request, framework_config: ConfigLoader) -> ArtifactLayout:
    """
    Artifact folders for this run.

    Only the controlling process clears the "latest" screenshots, so xdist
    workers never wipe each other's files.
    """
    layout = ArtifactLayout.from_config(framework_config)
    layout.prepare(clear_latest=_is_controller(request.config))
    return layout


@pytest.fixture(scope="session")
def session_registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture(scope="session")
def reporting_sink(request, framework_config: ConfigLoader, artifact_layout: ArtifactLayout):
    sink = AllureReportingSink.from_config(framework_config)
    sink.artifacts = artifact_layout

    results_dir = request.config.getoption("--alluredir", default=None)
    if results_dir and _is_controller(request.config):
        write_environment(results_dir, framework_config)
    return sink


@pytest.fixture(scope="session")
def session_manager(
    framework_config: ConfigLoader,
    session_registry: SessionRegistry,
    reporting_sink: AllureReportingSink,
    artifact_layout: ArtifactLayout,
) -> SessionManager:
    """Session-scoped lifecycle manager shared by all tests of this worker."""
    return SessionManager(
        config=framework_config,
        registry=session_registry,
        sink=reporting_sink,
        artifacts=artifact_layout,
    )


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase report as item.rep_setup / rep_call / rep_teardown."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


def _outcome_of(item):
    """Map the pytest reports of item to a TestStatus and a detail string."""
    report = getattr(item, "rep_call", None) or getattr(item, "rep_setup", None)
    if report is None:
        return TestStatus.FAILED, "test did not run"
    if report.passed:
        return TestStatus.PASSED, None
    if report.skipped:
        reason = report.longrepr[2] if isinstance(report.longrepr, tuple) else str(report.longrepr)
        return TestStatus.SKIPPED, reason
    return TestStatus.FAILED, (report.longreprtext or "")[-2000:]


@pytest.fixture
def ui_session(request, session_manager: SessionManager) -> Generator[Session, None, None]:
    """
    Browser session for one test.

    Overrides come from @pytest.mark.browser_overrides(...), then the
    thread's override channel, then configuration. The session is always
    ended, with the outcome pytest recorded for the test body.
    """
    marker = request.node.get_closest_marker("browser_overrides")
    overrides = SessionOverrides.from_mapping(marker.kwargs if marker else None)

    test_name = request.node.name
    session = session_manager.begin_session(test_name, overrides)
    try:
        yield session
    finally:
        status, detail = _outcome_of(request.node)
        record = session_manager.end_session(test_name, status, detail)
        if not record.clean_teardown:
            logger.warning(f"{test_name}: {len(record.teardown_errors)} teardown errors")


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def heroku_page(ui_session: Session, session_registry: SessionRegistry,
                session_manager: SessionManager) -> HerokuAppPage:
    """HerokuAppPage bound to the current test's session."""
    return HerokuAppPage(session_registry, session_manager)
