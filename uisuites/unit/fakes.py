"""
In-memory stand-ins for the Playwright sync API handles the harness uses.

A FakePlaywright world records every open/close call in ``log`` and can be
told to fail any named step, so lifecycle behaviour is testable without a
browser.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Set


class FakeFailure(RuntimeError):
    pass


class FakePlaywright:
    """Shared state for every fake handle started from it."""

    def __init__(self, fail_on: Optional[Set[str]] = None) -> None:
        self.fail_on: Set[str] = set(fail_on or ())
        self.log: List[str] = []
        self.engines: List["FakeEngine"] = []
        self._lock = threading.Lock()

    def record(self, event: str) -> None:
        with self._lock:
            self.log.append(event)
        if event in self.fail_on:
            raise FakeFailure(f"injected failure: {event}")

    def start(self) -> "FakeEngine":
        """Engine factory handed to SessionManager."""
        engine = FakeEngine(self)
        with self._lock:
            self.engines.append(engine)
        self.record("engine.start")
        return engine

    def count(self, event: str) -> int:
        return self.log.count(event)

    def closes(self) -> List[str]:
        """Close-type events in the order they happened."""
        closing = {"trace.stop", "context.close", "browser.close", "engine.stop"}
        return [event for event in self.log if event in closing]


class FakeLocator:
    """Records actions as "<action>:<selector>" on its frame."""

    def __init__(self, frame: "FakeFrame", selector: str) -> None:
        self.frame = frame
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    def _do(self, action: str) -> None:
        if self.selector in self.frame.broken:
            raise FakeFailure(f"{action} failed on {self.selector}")
        self.frame.actions.append(f"{action}:{self.selector}")

    def click(self, **kwargs: Any) -> None:
        self._do("click")

    def fill(self, text: str, **kwargs: Any) -> None:
        self._do("fill")

    def wait_for(self, **kwargs: Any) -> None:
        self._do("wait_for")

    def inner_text(self, **kwargs: Any) -> str:
        return self.frame.texts.get(self.selector, "")

    def is_visible(self) -> bool:
        return self.selector in self.frame.texts

    def count(self) -> int:
        return 1 if self.selector in self.frame.texts else 0


class FakeFrame:
    def __init__(self, name: str = "", url: str = "", children: Optional[List["FakeFrame"]] = None) -> None:
        self.name = name
        self.url = url
        self.child_frames = children or []
        self.texts: Dict[str, str] = {}
        self.actions: List[str] = []
        self.broken: Set[str] = set()

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)


class FakePage:
    def __init__(self, world: FakePlaywright, context: Optional["FakeContext"] = None) -> None:
        self.world = world
        self.context = context
        self.url = "about:blank"
        self.main_frame = FakeFrame("main")
        self.frames = [self.main_frame]
        self.closed = False

    def goto(self, url: str, **kwargs: Any) -> None:
        self.world.record("page.goto")
        self.url = url

    def screenshot(self, **kwargs: Any) -> bytes:
        self.world.record("page.screenshot")
        return b"\x89PNG fake"

    def frame(self, name: Optional[str] = None, url: Optional[str] = None) -> Optional[FakeFrame]:
        return next((f for f in self.frames if f.name == name), None)

    def bring_to_front(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True
        if self.context is not None and self in self.context.pages:
            self.context.pages.remove(self)


class FakeTracing:
    def __init__(self, world: FakePlaywright) -> None:
        self.world = world
        self.started: Dict[str, Any] = {}

    def start(self, **options: Any) -> None:
        self.world.record("trace.start")
        self.started = options

    def stop(self, path: Optional[str] = None) -> None:
        self.world.record("trace.stop")
        if path:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            Path(path).write_bytes(b"PK fake trace")


class FakeContext:
    def __init__(self, world: FakePlaywright, options: Dict[str, Any]) -> None:
        self.world = world
        self.options = options
        self.tracing = FakeTracing(world)
        self.pages: List[FakePage] = []
        self.closed = False

    def new_page(self) -> FakePage:
        self.world.record("context.new_page")
        page = FakePage(self.world, self)
        self.pages.append(page)
        return page

    def close(self) -> None:
        self.world.record("context.close")
        self.closed = True
        video_dir = self.options.get("record_video_dir")
        if video_dir:
            (Path(video_dir) / "recording.webm").write_bytes(b"webm")


class FakeBrowser:
    def __init__(self, world: FakePlaywright, launch_options: Dict[str, Any]) -> None:
        self.world = world
        self.launch_options = launch_options
        self.contexts: List[FakeContext] = []
        self.closed = False

    def new_context(self, **options: Any) -> FakeContext:
        self.world.record("browser.new_context")
        context = FakeContext(self.world, options)
        self.contexts.append(context)
        return context

    def close(self) -> None:
        self.world.record("browser.close")
        self.closed = True


class FakeBrowserType:
    def __init__(self, world: FakePlaywright, name: str) -> None:
        self.world = world
        self.name = name
        self.launched: List[FakeBrowser] = []

    def launch(self, **options: Any) -> FakeBrowser:
        self.world.record(f"{self.name}.launch")
        browser = FakeBrowser(self.world, options)
        self.launched.append(browser)
        return browser


class FakeEngine:
    def __init__(self, world: FakePlaywright) -> None:
        self.world = world
        self.chromium = FakeBrowserType(world, "chromium")
        self.firefox = FakeBrowserType(world, "firefox")
        self.webkit = FakeBrowserType(world, "webkit")
        self.stopped = False

    def stop(self) -> None:
        self.world.record("engine.stop")
        self.stopped = True


class RecordingSink:
    """ReportingSink that keeps everything it is given."""

    def __init__(self, screenshot_levels: Optional[Set[str]] = None) -> None:
        self.screenshot_levels = set(screenshot_levels or ())
        self.events: List[Dict[str, Any]] = []
        self.records: List[Any] = []
        self._lock = threading.Lock()

    def wants_screenshot(self, level: str) -> bool:
        return level in self.screenshot_levels

    def on_event(self, level: str, message: str, screenshot: Optional[bytes] = None,
                 name: Optional[str] = None) -> None:
        with self._lock:
            self.events.append({"level": level, "message": message, "screenshot": screenshot, "name": name})

    def on_session_end(self, record: Any) -> None:
        with self._lock:
            self.records.append(record)

    def levels(self) -> List[str]:
        return [event["level"] for event in self.events]
