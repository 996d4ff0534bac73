"""
================================================================================
UI Session Framework
================================================================================

Playwright-based UI automation harness with per-thread session isolation.

Components:
    - session_registry: Per-thread store of the active page/frame
    - session_manager: Session lifecycle (begin/end, video, trace, teardown)
    - reporting: Reporting sinks (Loguru, Allure) and screenshot policy
    - data_feed: CSV/XLSX/JSON/XML records for data-driven tests
    - page_base: Base page object resolving handles from the registry

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError
from .data_feed import load_records
from .exceptions import (
    DataFeedError,
    FrameNotFoundError,
    HarnessError,
    SessionStartError,
    TeardownError,
    UninitializedSessionError,
)
from .models import ExecutionRecord, Session, SessionOverrides, SessionState, TestStatus
from .page_base import BasePage
from .reporting import AllureReportingSink, LoggingSink, ReportingSink, ScreenshotPolicy
from .session_manager import OverrideChannel, SessionManager
from .session_registry import SessionRegistry

__all__ = [
    "AllureReportingSink",
    "BasePage",
    "ConfigLoader",
    "ConfigurationError",
    "DataFeedError",
    "ExecutionRecord",
    "FrameNotFoundError",
    "HarnessError",
    "LoggingSink",
    "OverrideChannel",
    "ReportingSink",
    "ScreenshotPolicy",
    "Session",
    "SessionManager",
    "SessionOverrides",
    "SessionRegistry",
    "SessionStartError",
    "SessionState",
    "TeardownError",
    "TestStatus",
    "UninitializedSessionError",
    "load_records",
]
