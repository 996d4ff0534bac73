"""
================================================================================
Session Data Models
================================================================================

Data structures shared by the registry, the lifecycle manager and the
reporting sink.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from loguru import logger

from .exceptions import TeardownError


# ================================================================================
# Enums
# ================================================================================

class TestStatus(str, Enum):
    """Outcome of one test execution."""
    __test__ = False  # not a pytest test class

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @classmethod
    def coerce(cls, value: Any) -> "TestStatus":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class SessionState(str, Enum):
    """Per-owner lifecycle state: IDLE -> STARTING -> ACTIVE -> ENDING -> IDLE."""
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    ENDING = "ending"


# ================================================================================
# Configuration
# ================================================================================

@dataclass(frozen=True)
class SessionOverrides:
    """Per-test configuration overrides; None means "use the next fallback"."""
    browser: Optional[str] = None
    headless: Optional[bool] = None
    url: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "SessionOverrides":
        data = data or {}
        return cls(
            browser=data.get("browser"),
            headless=data.get("headless"),
            url=data.get("url", data.get("baseUrl")),
        )

    def merged_over(self, fallback: "SessionOverrides") -> "SessionOverrides":
        """Return overrides where unset fields are taken from fallback."""
        return SessionOverrides(
            browser=self.browser if self.browser is not None else fallback.browser,
            headless=self.headless if self.headless is not None else fallback.headless,
            url=self.url if self.url is not None else fallback.url,
        )


@dataclass(frozen=True)
class SessionSettings:
    """Settings a session was actually started with."""
    browser: str
    headless: bool
    url: str
    viewport: Tuple[int, int] = (1440, 900)


# ================================================================================
# Resource Tracking
# ================================================================================

class CloseList:
    """
    Ordered record of acquired resources and how to release them.

    Resources are pushed in acquisition order and released in reverse.
    Each release runs in its own failure boundary; failures are collected
    as TeardownError rather than raised.
    """

    def __init__(self) -> None:
        self._closers: List[Tuple[str, Callable[[], Any]]] = []

    def push(self, step: str, closer: Callable[[], Any]) -> None:
        self._closers.append((step, closer))

    def steps(self) -> List[str]:
        return [step for step, _ in self._closers]

    def __len__(self) -> int:
        return len(self._closers)

    def close_all(self) -> List[TeardownError]:
        """Release every resource, newest first. Safe to call twice."""
        errors: List[TeardownError] = []
        while self._closers:
            step, closer = self._closers.pop()
            try:
                closer()
                logger.debug(f"Released: {step}")
            except Exception as e:
                error = TeardownError(step, e)
                logger.warning(str(error))
                errors.append(error)
        return errors


# ================================================================================
# Session
# ================================================================================

@dataclass
class Session:
    """
    Resources owned by one test execution on one thread.

    frame is None until a frame is explicitly selected; readers fall back to
    the page's main frame.
    """
    owner: Hashable
    test_name: str = ""
    engine: Any = None
    browser: Any = None
    context: Any = None
    page: Any = None
    frame: Any = None
    settings: Optional[SessionSettings] = None
    video_dir: Optional[Path] = None
    trace_path: Optional[Path] = None
    started_at: datetime = field(default_factory=datetime.now)
    resources: CloseList = field(default_factory=CloseList, repr=False)


@dataclass(frozen=True)
class ExecutionRecord:
    """Immutable summary of one test execution, produced at teardown."""

    test_name: str
    status: TestStatus
    detail: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    trace_path: Optional[Path] = None
    video_path: Optional[Path] = None
    teardown_errors: Tuple[TeardownError, ...] = ()

    @property
    def clean_teardown(self) -> bool:
        return not self.teardown_errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "test_name": self.test_name,
            "status": self.status.value,
            "detail": self.detail,
            "timestamp": self.timestamp.isoformat(),
            "trace_path": str(self.trace_path) if self.trace_path else None,
            "video_path": str(self.video_path) if self.video_path else None,
            "teardown_errors": [str(e) for e in self.teardown_errors],
        }


__all__ = [
    "CloseList",
    "ExecutionRecord",
    "Session",
    "SessionOverrides",
    "SessionSettings",
    "SessionState",
    "TestStatus",
]
