"""
================================================================================
Suite Pytest Configuration
================================================================================

Markers, collection rules and data-driven parametrization shared by the
unit and UI suites.

================================================================================
"""

from pathlib import Path

import pytest
from loguru import logger

from uisuites.framework.data_feed import load_records, record_id, resolve_data_path


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that launch a real browser (need --run-e2e)"
    )
    config.addinivalue_line(
        "markers", "ui: UI-specific tests"
    )
    config.addinivalue_line(
        "markers", "unit: Unit tests that run without a browser"
    )

    # Harness markers
    config.addinivalue_line(
        "markers",
        "datafile(path, sheet=None): parametrize the 'row' argument with the "
        "records of a CSV/XLSX/JSON/XML file",
    )
    config.addinivalue_line(
        "markers",
        "browser_overrides(browser=None, headless=None, url=None): session "
        "overrides for this test only",
    )


def pytest_generate_tests(metafunc):
    """
    Parametrize tests with records from a data file.

    Triggered when the test has @pytest.mark.datafile("file") and declares
    a 'row' argument. A file that cannot be loaded raises DataFeedError and
    fails collection, before any browser session is started.
    """
    marker = metafunc.definition.get_closest_marker("datafile")
    if not marker or not marker.args:
        return
    if "row" not in metafunc.fixturenames:
        return

    test_dir = Path(metafunc.definition.path).parent
    data_path = resolve_data_path(marker.args[0], base_dir=test_dir)
    records = load_records(data_path, sheet=marker.kwargs.get("sheet"))
    if not records:
        logger.warning(f"Data file {data_path} has no records; {metafunc.definition.nodeid} will be skipped")

    metafunc.parametrize(
        "row",
        records,
        ids=[record_id(record, i) for i, record in enumerate(records)],
    )


def pytest_collection_modifyitems(config, items):
    """
    Add suite markers by location and skip e2e tests unless --run-e2e is given.
    """
    run_e2e = config.getoption("--run-e2e")
    skip_e2e = pytest.mark.skip(reason="needs --run-e2e (launches a real browser)")

    for item in items:
        path = str(item.fspath)
        if "uisuites/tests" in path.replace("\\", "/"):
            item.add_marker(pytest.mark.ui)
        if "uisuites/unit" in path.replace("\\", "/"):
            item.add_marker(pytest.mark.unit)

        if "e2e" in item.keywords and not run_e2e:
            item.add_marker(skip_e2e)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Playwright UI Session Harness",
        f"e2e: {'enabled' if config.getoption('--run-e2e') else 'disabled (use --run-e2e)'}",
        "=" * 60,
        "",
    ]
