"""
================================================================================
Harness Exceptions
================================================================================

Error taxonomy shared by the session layer, the data feed and the page layer.

    HarnessError
    ├── UninitializedSessionError   registry read before a session exists
    ├── SessionStartError           browser/context/page/trace setup failed
    ├── TeardownError               closing a session resource failed
    ├── DataFeedError               data file missing or malformed
    └── FrameNotFoundError          frame lookup by name/selector failed

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional


class HarnessError(Exception):
    """Base class for all harness errors."""
    pass


class UninitializedSessionError(HarnessError):
    """Raised when the session registry is read before a session is registered."""

    def __init__(self, owner: object, what: str = "page"):
        self.owner = owner
        self.what = what
        super().__init__(
            f"No active {what} for owner {owner!r}. "
            f"begin_session() must complete before page actions run."
        )


class SessionStartError(HarnessError):
    """Raised when any step of session setup fails."""

    def __init__(self, test_name: str, message: str):
        self.test_name = test_name
        super().__init__(f"Session start failed for '{test_name}': {message}")


class TeardownError(HarnessError):
    """
    Failure while releasing one session resource.

    Never raised out of end_session(); instances are collected on the
    ExecutionRecord and reported instead.
    """

    def __init__(self, step: str, cause: Optional[BaseException] = None):
        self.step = step
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause else "unknown error"
        super().__init__(f"Teardown step '{step}' failed: {detail}")


class DataFeedError(HarnessError):
    """Raised when a data file is missing, unsupported or malformed."""
    pass


class FrameNotFoundError(HarnessError):
    """Raised when a frame cannot be found by name, url or selector."""
    pass


__all__ = [
    "HarnessError",
    "UninitializedSessionError",
    "SessionStartError",
    "TeardownError",
    "DataFeedError",
    "FrameNotFoundError",
]
