"""
================================================================================
Session Manager
================================================================================

Browser session lifecycle for UI automation.

One test execution owns one session: its own Playwright engine, browser,
isolated context, page, video directory and trace. Sessions are created on
the thread that runs the test and registered in the SessionRegistry under
that thread's identity, so parallel tests never share a handle.

Features:
    - Per-thread browser/headless/URL overrides
    - Video recording and Playwright tracing for every session
    - Total, ordered, best-effort teardown on every exit path
    - Outcome events forwarded to a ReportingSink

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import dataclasses
import shutil
import threading
import unittest
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple, Union

import pytest
from loguru import logger
from playwright.sync_api import sync_playwright

from .artifacts import ArtifactLayout, latest_file
from .config_loader import ConfigLoader
from .exceptions import SessionStartError, TeardownError
from .models import (
    CloseList,
    ExecutionRecord,
    Session,
    SessionOverrides,
    SessionSettings,
    SessionState,
    TestStatus,
)
from .reporting import LoggingSink, ReportingSink
from .session_registry import SessionRegistry


# Browser kind -> (Playwright browser type, release channel)
BROWSER_KINDS: Dict[str, Tuple[str, Optional[str]]] = {
    "chrome": ("chromium", "chrome"),
    "edge": ("chromium", "msedge"),
    "msedge": ("chromium", "msedge"),
    "chromium": ("chromium", None),
    "firefox": ("firefox", None),
    "webkit": ("webkit", None),
}

DEFAULT_BROWSER_KIND = "chrome"

OverridesLike = Union[SessionOverrides, Dict[str, Any], None]


def start_playwright() -> Any:
    """Start a Playwright engine bound to the calling thread."""
    return sync_playwright().start()


# =============================================================================
# Override Channel
# =============================================================================

class OverrideChannel:
    """
    Per-thread browser/headless/URL overrides.

    Values are only visible to the thread that set them and are read by
    that thread's next begin_session(). Overrides are sticky: a later test
    on the same thread inherits them unless reset() is called or the
    channel is single_use.
    """

    def __init__(
        self,
        identity: Callable[[], Hashable] = threading.get_ident,
        single_use: bool = False,
    ):
        self._identity = identity
        self.single_use = single_use
        self._values: Dict[Hashable, SessionOverrides] = {}

    def set_browser_override(self, kind: str) -> None:
        self._update(browser=kind)

    def set_headless_override(self, headless: bool) -> None:
        self._update(headless=bool(headless))

    def set_url_override(self, url: str) -> None:
        self._update(url=url)

    def current(self) -> SessionOverrides:
        """Overrides of the calling thread (all None when nothing was set)."""
        return self._values.get(self._identity(), SessionOverrides())

    def reset(self) -> None:
        self._values.pop(self._identity(), None)

    def _update(self, **changes: Any) -> None:
        owner = self._identity()
        current = self._values.get(owner, SessionOverrides())
        self._values[owner] = dataclasses.replace(current, **changes)


# =============================================================================
# Session Manager
# =============================================================================

class SessionManager:
    """
    Creates, tracks and tears down one browser session per test.

    Usage:
        manager = SessionManager(ConfigLoader(), SessionRegistry())

        manager.overrides.set_headless_override(True)
        manager.begin_session("test_login")
        try:
            page = manager.registry.get_active_page()
            ...
        finally:
            manager.end_session("test_login", TestStatus.PASSED)

        # Or pair begin/end automatically
        with manager.session("test_login") as session:
            session.page.click("text=Form Authentication")
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        registry: Optional[SessionRegistry] = None,
        sink: Optional[ReportingSink] = None,
        artifacts: Optional[ArtifactLayout] = None,
        engine_factory: Callable[[], Any] = start_playwright,
        overrides: Optional[OverrideChannel] = None,
    ):
        """
        Initialize session manager.

        Args:
            config: Configuration store (process singleton by default)
            registry: Registry the sessions are published in
            sink: Receiver of events and execution records
            artifacts: Where videos, traces and screenshots go
            engine_factory: Starts a Playwright engine; replaced in unit tests
            overrides: Per-thread override channel
        """
        self.config = config or ConfigLoader()
        self.registry = registry or SessionRegistry()
        self.sink: ReportingSink = sink or LoggingSink.from_config(self.config)
        self.artifacts = artifacts or ArtifactLayout.from_config(self.config)
        self.overrides = overrides or OverrideChannel(
            identity=self.registry.current_owner,
            single_use=self.config.get_bool("session.single_use_overrides"),
        )
        self._engine_factory = engine_factory
        self._full_page = self.config.get_bool("screenshot.fullpage")
        self._states: Dict[Hashable, SessionState] = {}

    # =========================================================================
    # State
    # =========================================================================

    def state(self) -> SessionState:
        """Lifecycle state of the calling thread."""
        return self._states.get(self.registry.current_owner(), SessionState.IDLE)

    def resolve_settings(self, overrides: OverridesLike = None) -> SessionSettings:
        """
        Resolve effective settings: explicit overrides, then the calling
        thread's override channel, then configuration defaults.
        """
        if not isinstance(overrides, SessionOverrides):
            overrides = SessionOverrides.from_mapping(overrides)
        effective = overrides.merged_over(self.overrides.current())

        browser = (effective.browser or self.config.get("browser") or DEFAULT_BROWSER_KIND)
        headless = (
            effective.headless
            if effective.headless is not None
            else self.config.get_bool("headless")
        )
        url = effective.url or self.config.get("baseUrl")
        if not url:
            raise ValueError("No target URL: set baseUrl or a URL override")

        return SessionSettings(
            browser=str(browser).strip().lower(),
            headless=bool(headless),
            url=str(url),
            viewport=(
                self.config.get_int("viewport.width"),
                self.config.get_int("viewport.height"),
            ),
        )

    # =========================================================================
    # Begin
    # =========================================================================

    def begin_session(self, test_name: str, overrides: OverridesLike = None) -> Session:
        """
        Start a fully isolated browser session for the calling thread.

        Steps: resolve settings, start engine, launch browser, create a
        recording context, open a page, start tracing, navigate, register.

        Args:
            test_name: Name used for logging and artifact file names
            overrides: Explicit overrides for this session only

        Returns:
            The registered Session

        Raises:
            SessionStartError: a session is already active for this thread,
                or any setup step failed. In the latter case everything that
                was opened has been closed and nothing is registered.
        """
        owner = self.registry.current_owner()
        state = self._states.get(owner, SessionState.IDLE)
        if state is not SessionState.IDLE:
            raise SessionStartError(
                test_name,
                f"thread {owner} is {state.value}; end the current session first",
            )

        self._states[owner] = SessionState.STARTING
        self.report("info", f"Test STARTED: {test_name}")

        resources = CloseList()
        video_dir: Optional[Path] = None
        try:
            settings = self.resolve_settings(overrides)
            if self.overrides.single_use:
                self.overrides.reset()

            self.report(
                "info",
                f"Browser selected = {settings.browser} | Headless = {settings.headless} "
                f"| URL = {settings.url}",
            )

            engine = self._engine_factory()
            resources.push("engine", engine.stop)

            browser = self._launch_browser(engine, settings)
            resources.push("browser", browser.close)

            video_dir = self.artifacts.session_video_dir(test_name)
            width, height = settings.viewport
            context = browser.new_context(
                viewport={"width": width, "height": height},
                record_video_dir=str(video_dir),
                ignore_https_errors=True,
            )
            resources.push("context", context.close)

            page = context.new_page()

            context.tracing.start(screenshots=True, snapshots=True, sources=True)
            trace_path = self.artifacts.trace_path(test_name)
            resources.push(
                "trace",
                lambda path=trace_path: context.tracing.stop(path=str(path)),
            )

            page.goto(settings.url)

        except Exception as e:
            for error in resources.close_all():
                logger.warning(f"Cleanup after failed start of '{test_name}': {error}")
            if video_dir is not None:
                shutil.rmtree(video_dir, ignore_errors=True)
            self.registry.clear()
            self._states.pop(owner, None)
            self.report("fail", f"Browser launch failed: {e}")
            raise SessionStartError(test_name, f"{type(e).__name__}: {e}") from e

        session = Session(
            owner=owner,
            test_name=test_name,
            engine=engine,
            browser=browser,
            context=context,
            page=page,
            settings=settings,
            video_dir=video_dir,
            trace_path=trace_path,
            resources=resources,
        )
        self.registry.register(session)
        self._states[owner] = SessionState.ACTIVE

        self.report("pass", f"Browser started: {settings.browser} | URL: {settings.url}")
        return session

    def _launch_browser(self, engine: Any, settings: SessionSettings) -> Any:
        """Launch the browser kind named in settings."""
        kind = settings.browser
        if kind not in BROWSER_KINDS:
            logger.warning(f"Unknown browser '{kind}', falling back to {DEFAULT_BROWSER_KIND}")
            kind = DEFAULT_BROWSER_KIND
        engine_name, channel = BROWSER_KINDS[kind]

        launch_options: Dict[str, Any] = {"headless": settings.headless}
        if channel:
            launch_options["channel"] = channel
        if settings.headless and engine_name == "chromium":
            launch_options["args"] = ["--headless=new"]

        launcher = getattr(engine, engine_name)
        browser = launcher.launch(**launch_options)
        logger.debug(f"Browser launched: {kind} (headless={settings.headless})")
        return browser

    # =========================================================================
    # End
    # =========================================================================

    def end_session(
        self,
        test_name: str,
        outcome: Union[TestStatus, str],
        detail: Optional[str] = None,
    ) -> ExecutionRecord:
        """
        Tear down the calling thread's session. Never raises.

        Order: outcome event (with screenshot) while the page is alive, stop
        trace, close context, close browser, stop engine, move the video,
        clear the registry entry, hand the ExecutionRecord to the sink.
        Each step runs even when an earlier one failed.

        Args:
            test_name: Test the session belonged to
            outcome: passed / failed / skipped; anything else is recorded as failed
            detail: Failure or skip reason

        Returns:
            ExecutionRecord with any teardown errors attached
        """
        try:
            status = TestStatus.coerce(outcome)
        except ValueError:
            logger.warning(f"Unknown outcome {outcome!r} for '{test_name}', recording it as failed")
            status = TestStatus.FAILED
        owner = self.registry.current_owner()
        session = self.registry.find_session()
        self._states[owner] = SessionState.ENDING

        errors: List[TeardownError] = []
        video_path: Optional[Path] = None
        trace_path: Optional[Path] = None
        try:
            if session is None or session.page is None:
                logger.warning(f"end_session('{test_name}') called without an active session")
            else:
                errors.extend(self._report_outcome(test_name, status, detail))
                errors.extend(session.resources.close_all())

                if session.trace_path and not any(e.step == "trace" for e in errors):
                    trace_path = session.trace_path

                try:
                    video_path = self._rename_video(session, test_name)
                except Exception as e:
                    error = TeardownError("video", e)
                    logger.warning(str(error))
                    errors.append(error)
        finally:
            self.registry.clear()
            self._states.pop(owner, None)

        record = ExecutionRecord(
            test_name=test_name,
            status=status,
            detail=detail,
            trace_path=trace_path,
            video_path=video_path,
            teardown_errors=tuple(errors),
        )

        for error in errors:
            self.report("warning", f"Error during teardown: {error}")
        try:
            self.sink.on_session_end(record)
        except Exception as e:
            logger.warning(f"Reporting sink failed for '{test_name}': {e}")

        logger.info(f"Test ENDED: {test_name} [{status.value}]")
        return record

    def _report_outcome(
        self,
        test_name: str,
        status: TestStatus,
        detail: Optional[str],
    ) -> List[TeardownError]:
        """Emit the outcome event; failures always try to attach a screenshot."""
        if status is TestStatus.PASSED:
            level, message = "pass", "Test Passed Successfully"
        elif status is TestStatus.FAILED:
            level, message = "fail", f"Test Failed: {detail or 'no detail'}"
        else:
            level, message = "warning", f"Test Skipped: {detail or 'no detail'}"

        try:
            screenshot = None
            if status is TestStatus.FAILED or self.sink.wants_screenshot(level):
                screenshot = self.capture_screenshot()
            self.sink.on_event(level, message, screenshot, name=test_name)
        except Exception as e:
            error = TeardownError("report", e)
            logger.warning(str(error))
            return [error]
        return []

    def _rename_video(self, session: Session, test_name: str) -> Optional[Path]:
        """Move the session's newest recording to <videos>/<test>_<stamp>.webm."""
        if session.video_dir is None:
            return None

        recording = latest_file(session.video_dir, "*.webm")
        if recording is None:
            return None

        target = self.artifacts.video_path(test_name)
        shutil.move(str(recording), str(target))
        try:
            session.video_dir.rmdir()
        except OSError:
            pass  # not empty
        self.report("info", f"Video saved as: {target}")
        return target

    # =========================================================================
    # Reporting
    # =========================================================================

    def capture_screenshot(self) -> Optional[bytes]:
        """Screenshot of the caller's active page, or None when unavailable."""
        session = self.registry.find_session()
        if session is None or session.page is None:
            return None
        try:
            return session.page.screenshot(full_page=self._full_page)
        except Exception as e:
            logger.warning(f"Screenshot capture failed: {e}")
            return None

    def report(self, level: str, message: str, name: Optional[str] = None) -> None:
        """
        Forward an event to the sink, attaching a screenshot of the active
        page when the sink's screenshot policy asks for one.

        Reporting problems are logged and never fail the caller.
        """
        try:
            screenshot = self.capture_screenshot() if self.sink.wants_screenshot(level) else None
            self.sink.on_event(level, message, screenshot, name=name)
        except Exception as e:
            logger.warning(f"Reporting sink rejected event '{message}': {e}")

    # =========================================================================
    # Context Manager
    # =========================================================================

    @contextmanager
    def session(self, test_name: str, overrides: OverridesLike = None) -> Iterator[Session]:
        """
        Begin a session and always end it, deriving the outcome from the block.

        pytest.skip() / unittest.SkipTest inside the block end the session
        as skipped; any other exception as failed.
        """
        session = self.begin_session(test_name, overrides)
        status, detail = TestStatus.PASSED, None
        try:
            yield session
        except (pytest.skip.Exception, unittest.SkipTest) as e:
            status, detail = TestStatus.SKIPPED, str(e)
            raise
        except BaseException as e:
            status, detail = TestStatus.FAILED, f"{type(e).__name__}: {e}"
            raise
        finally:
            self.end_session(test_name, status, detail)


__all__ = [
    "BROWSER_KINDS",
    "OverrideChannel",
    "SessionManager",
    "start_playwright",
]
