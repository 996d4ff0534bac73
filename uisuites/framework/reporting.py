"""
================================================================================
Reporting Sink
================================================================================

Receives pass/fail/info/warning events and execution records from the
session layer.

The session layer only ever calls the three ReportingSink methods; report
layout belongs to Allure.

Screenshot policy (config key ``reporting.screenshots``):
    all     screenshot on every event
    failed  screenshot on "fail" events (default)
    passed  screenshot on "pass" events
    none    never

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import platform
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import allure
from loguru import logger

from .artifacts import ArtifactLayout
from .config_loader import ConfigLoader
from .models import ExecutionRecord, TestStatus


# Event level -> Loguru level
LOG_LEVELS: Dict[str, str] = {
    "info": "INFO",
    "pass": "SUCCESS",
    "fail": "ERROR",
    "warning": "WARNING",
}

STEP_ICONS: Dict[str, str] = {
    "info": "ℹ️",
    "pass": "✅",
    "fail": "❌",
    "warning": "⚠️",
}


class ScreenshotPolicy(str, Enum):
    """Which events carry a screenshot."""
    ALL = "all"
    FAILED = "failed"
    PASSED = "passed"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "ScreenshotPolicy":
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            logger.warning(f"Unknown screenshot policy '{value}', screenshots disabled")
            return cls.NONE

    def applies_to(self, level: str) -> bool:
        level = level.lower()
        if self is ScreenshotPolicy.ALL:
            return True
        if self is ScreenshotPolicy.FAILED:
            return level == "fail"
        if self is ScreenshotPolicy.PASSED:
            return level == "pass"
        return False


class ReportingSink(Protocol):
    """Boundary the session layer reports through."""

    def wants_screenshot(self, level: str) -> bool:
        ...

    def on_event(
        self,
        level: str,
        message: str,
        screenshot: Optional[bytes] = None,
        name: Optional[str] = None,
    ) -> None:
        ...

    def on_session_end(self, record: ExecutionRecord) -> None:
        ...


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data") -> None:
    """Attach JSON data to the Allure report."""
    allure.attach(
        json.dumps(data, indent=2, default=str),
        name=name,
        attachment_type=allure.attachment_type.JSON,
    )


def attach_text(text: str, name: str = "Text") -> None:
    """Attach text content to the Allure report."""
    allure.attach(text, name=name, attachment_type=allure.attachment_type.TEXT)


def write_environment(results_dir: Path, config: ConfigLoader) -> Path:
    """
    Write Allure's environment.properties (shown on the report overview).

    Args:
        results_dir: Allure results directory
        config: Configuration store supplying author/env/url/browser

    Returns:
        Path of the written file
    """
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)
    properties = {
        "Framework": "Playwright Python",
        "Tester": config.get("author"),
        "Environment": config.get("env"),
        "Base.URL": config.get("baseUrl"),
        "Browser": config.get("browser"),
        "Headless": config.get_bool("headless"),
        "OS": platform.platform(),
        "Python.Version": platform.python_version(),
    }
    path = results_dir / "environment.properties"
    path.write_text(
        "\n".join(f"{key}={value}" for key, value in properties.items()) + "\n",
        encoding="utf-8",
    )
    return path


# ================================================================================
# Sinks
# ================================================================================

class LoggingSink:
    """
    Sink that writes events to Loguru and screenshots to the artifact folders.

    Used directly when no report is wanted and as the base of the Allure sink.
    """

    def __init__(
        self,
        policy: ScreenshotPolicy = ScreenshotPolicy.FAILED,
        artifacts: Optional[ArtifactLayout] = None,
    ):
        self.policy = policy
        self.artifacts = artifacts or ArtifactLayout()

    @classmethod
    def from_config(cls, config: ConfigLoader, **kwargs: Any) -> "LoggingSink":
        return cls(
            policy=ScreenshotPolicy.parse(config.get("reporting.screenshots")),
            artifacts=ArtifactLayout.from_config(config),
            **kwargs,
        )

    def wants_screenshot(self, level: str) -> bool:
        return self.policy.applies_to(level)

    def on_event(
        self,
        level: str,
        message: str,
        screenshot: Optional[bytes] = None,
        name: Optional[str] = None,
    ) -> Optional[Path]:
        """
        Log the event; persist the screenshot if one was captured.

        Returns:
            Path of the saved screenshot, if any
        """
        log_level = LOG_LEVELS.get(level.lower(), "INFO")
        logger.opt(depth=1).log(log_level, f"[{level.upper()}] {message}")

        if not screenshot:
            return None
        path = self.artifacts.save_screenshot(name or level.capitalize(), screenshot)
        logger.debug(f"Screenshot for '{message}': {path}")
        return path

    def on_session_end(self, record: ExecutionRecord) -> None:
        level = "SUCCESS" if record.status is TestStatus.PASSED else "WARNING"
        if record.status is TestStatus.FAILED:
            level = "ERROR"
        logger.log(
            level,
            f"Execution record: {record.test_name} -> {record.status.value}"
            + (f" ({len(record.teardown_errors)} teardown errors)" if record.teardown_errors else ""),
        )


class AllureReportingSink(LoggingSink):
    """
    Sink that mirrors every event into the Allure report.

    Events become steps; screenshots are attached as PNG; at session end the
    execution record, trace archive and video are attached.
    """

    def __init__(
        self,
        policy: ScreenshotPolicy = ScreenshotPolicy.FAILED,
        artifacts: Optional[ArtifactLayout] = None,
        author: Optional[str] = None,
    ):
        super().__init__(policy, artifacts)
        self.author = author

    @classmethod
    def from_config(cls, config: ConfigLoader, **kwargs: Any) -> "AllureReportingSink":
        kwargs.setdefault("author", config.get("author"))
        return super().from_config(config, **kwargs)  # type: ignore[return-value]

    def on_event(
        self,
        level: str,
        message: str,
        screenshot: Optional[bytes] = None,
        name: Optional[str] = None,
    ) -> Optional[Path]:
        path = super().on_event(level, message, screenshot, name)

        icon = STEP_ICONS.get(level.lower(), "•")
        with allure.step(f"{icon} {message}"):
            if screenshot:
                allure.attach(
                    screenshot,
                    name=f"📸 {name or level.capitalize()}",
                    attachment_type=allure.attachment_type.PNG,
                )
        return path

    def on_session_end(self, record: ExecutionRecord) -> None:
        super().on_session_end(record)

        if self.author:
            allure.dynamic.label("owner", self.author)

        attach_json(record.to_dict(), name="Execution Record")

        if record.trace_path and Path(record.trace_path).exists():
            allure.attach.file(
                str(record.trace_path),
                name="Playwright Trace",
                extension="zip",
            )
        if record.video_path and Path(record.video_path).exists():
            allure.attach.file(
                str(record.video_path),
                name="Session Video",
                attachment_type=allure.attachment_type.WEBM,
            )
        if record.teardown_errors:
            attach_text(
                "\n".join(str(e) for e in record.teardown_errors),
                name="Teardown Errors",
            )


__all__ = [
    "AllureReportingSink",
    "LoggingSink",
    "ReportingSink",
    "ScreenshotPolicy",
    "attach_json",
    "attach_text",
    "write_environment",
]
