"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Page objects hold no Playwright handles of their own. Every call resolves
the calling thread's active page (and selected frame) from the
SessionRegistry, so one page object instance can be shared by tests that
run on different threads.

Provides:
    - Navigation and history
    - Wait strategies (default timeout from ``explicitWait``)
    - Element actions and reads against the selected frame
    - Frame, dialog and tab handling
    - Screenshot utilities

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

import allure
from loguru import logger

from .artifacts import ArtifactLayout
from .config_loader import ConfigLoader
from .exceptions import FrameNotFoundError
from .session_registry import SessionRegistry


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(BasePage):
            USERNAME = "#username"
            PASSWORD = "#password"

            def login(self, username: str, password: str) -> None:
                self.type(self.USERNAME, username)
                self.type(self.PASSWORD, password)
                self.click("button[type='submit']")

        login_page = LoginPage(registry, manager)
    """

    def __init__(
        self,
        registry: SessionRegistry,
        manager: Any = None,
        config: Optional[ConfigLoader] = None,
    ):
        """
        Initialize page object.

        Args:
            registry: Where the active page/frame of the calling thread lives
            manager: Optional SessionManager; action results are reported through it
            config: Configuration store (defaults to the manager's, then the singleton)
        """
        self.registry = registry
        self.manager = manager
        self.config = config or getattr(manager, "config", None) or ConfigLoader()
        self.default_timeout = self.config.get_int("explicitWait")

    # =========================================================================
    # Handles
    # =========================================================================

    @property
    def page(self) -> Any:
        """Active page of the calling thread."""
        return self.registry.get_active_page()

    @property
    def frame(self) -> Any:
        """Selected frame of the calling thread (main frame when none selected)."""
        return self.registry.get_active_frame()

    def locator(self, selector: str) -> Any:
        """Locator for selector inside the selected frame."""
        return self.frame.locator(selector)

    def _timeout(self, timeout: Optional[int]) -> int:
        return self.default_timeout if timeout is None else timeout

    def _artifacts(self) -> ArtifactLayout:
        artifacts = getattr(self.manager, "artifacts", None)
        return artifacts if artifacts is not None else ArtifactLayout.from_config(self.config)

    def _report(self, level: str, message: str) -> None:
        if self.manager is not None:
            self.manager.report(level, message)
        else:
            logger.debug(message)

    @contextmanager
    def _action(self, description: str) -> Iterator[None]:
        """Allure step that reports a failure event before re-raising."""
        with allure.step(description):
            try:
                yield
            except Exception as e:
                self._report("fail", f"{description} failed | {e}")
                raise

    # =========================================================================
    # Navigation
    # =========================================================================

    def navigate_to(self, url: str, wait_until: str = "load") -> None:
        with self._action(f"Navigate to {url}"):
            self.page.goto(url, wait_until=wait_until)
        self._report("pass", f"Navigated to: {url}")

    def browser_back(self) -> None:
        with self._action("Browser back"):
            self.page.go_back()

    def browser_forward(self) -> None:
        with self._action("Browser forward"):
            self.page.go_forward()

    def browser_refresh(self) -> None:
        with self._action("Browser refresh"):
            self.page.reload()

    def wait_for_page_load(self, state: str = "load", timeout: Optional[int] = None) -> None:
        """
        Wait for the page to reach a load state.

        Args:
            state: 'load', 'domcontentloaded' or 'networkidle'
            timeout: Timeout in milliseconds
        """
        self.page.wait_for_load_state(state, timeout=self._timeout(timeout))

    def get_current_url(self) -> str:
        return self.page.url

    def get_page_title(self) -> str:
        return self.page.title()

    # =========================================================================
    # Waits
    # =========================================================================

    def wait_for_visibility(self, selector: str, timeout: Optional[int] = None) -> None:
        self.locator(selector).first.wait_for(state="visible", timeout=self._timeout(timeout))

    def wait_for_presence(self, selector: str, timeout: Optional[int] = None) -> None:
        self.locator(selector).first.wait_for(state="attached", timeout=self._timeout(timeout))

    def wait_for_invisibility(self, selector: str, timeout: Optional[int] = None) -> None:
        self.locator(selector).first.wait_for(state="hidden", timeout=self._timeout(timeout))

    def wait_for_timeout(self, ms: int) -> None:
        """Fixed pause; prefer the element waits."""
        self.page.wait_for_timeout(ms)

    # =========================================================================
    # Element Actions
    # =========================================================================

    def click(self, selector: str, timeout: Optional[int] = None) -> None:
        with self._action(f"Click: {selector}"):
            self.locator(selector).click(timeout=self._timeout(timeout))

    def double_click(self, selector: str) -> None:
        with self._action(f"Double click: {selector}"):
            self.locator(selector).dblclick(timeout=self.default_timeout)

    def right_click(self, selector: str) -> None:
        with self._action(f"Right click: {selector}"):
            self.locator(selector).click(button="right", timeout=self.default_timeout)

    def type(self, selector: str, text: str, delay: float = 0) -> None:
        """Type text key by key (fires keyboard events, unlike fill)."""
        masked = "*" * len(text) if "password" in selector.lower() else text
        with self._action(f"Type into {selector}: {masked}"):
            self.locator(selector).press_sequentially(text, delay=delay, timeout=self.default_timeout)

    def fill(self, selector: str, text: str) -> None:
        masked = "*" * len(text) if "password" in selector.lower() else text
        with self._action(f"Fill {selector}: {masked}"):
            self.locator(selector).fill(text, timeout=self.default_timeout)

    def press_key(self, selector: str, key: str) -> None:
        with self._action(f"Press {key} on {selector}"):
            self.locator(selector).press(key, timeout=self.default_timeout)

    def press_global_key(self, key: str) -> None:
        with self._action(f"Press {key}"):
            self.page.keyboard.press(key)

    def hover(self, selector: str) -> None:
        with self._action(f"Hover: {selector}"):
            self.locator(selector).hover(timeout=self.default_timeout)

    def clear(self, selector: str) -> None:
        with self._action(f"Clear: {selector}"):
            self.locator(selector).clear(timeout=self.default_timeout)

    def scroll_to_element(self, selector: str) -> None:
        self.locator(selector).scroll_into_view_if_needed(timeout=self.default_timeout)

    def check(self, selector: str) -> None:
        with self._action(f"Check: {selector}"):
            self.locator(selector).check(timeout=self.default_timeout)

    def uncheck(self, selector: str) -> None:
        with self._action(f"Uncheck: {selector}"):
            self.locator(selector).uncheck(timeout=self.default_timeout)

    def select_by_value(self, selector: str, value: str) -> None:
        with self._action(f"Select value '{value}' in {selector}"):
            self.locator(selector).select_option(value=value, timeout=self.default_timeout)

    def select_by_label(self, selector: str, label: str) -> None:
        with self._action(f"Select label '{label}' in {selector}"):
            self.locator(selector).select_option(label=label, timeout=self.default_timeout)

    def select_by_index(self, selector: str, index: int) -> None:
        with self._action(f"Select index {index} in {selector}"):
            self.locator(selector).select_option(index=index, timeout=self.default_timeout)

    def upload_file(self, selector: str, file_path: Union[str, Path]) -> None:
        with self._action(f"Upload {file_path}"):
            self.locator(selector).set_input_files(str(file_path), timeout=self.default_timeout)

    # =========================================================================
    # Element Reads
    # =========================================================================

    def get_text(self, selector: str) -> str:
        self.wait_for_visibility(selector)
        return self.locator(selector).first.inner_text()

    def get_attribute(self, selector: str, attribute: str) -> Optional[str]:
        self.wait_for_presence(selector)
        return self.locator(selector).first.get_attribute(attribute)

    def get_selected_dropdown_value(self, selector: str) -> str:
        return self.locator(selector).input_value(timeout=self.default_timeout)

    def is_element_visible(self, selector: str) -> bool:
        return self.locator(selector).first.is_visible()

    def is_element_enabled(self, selector: str) -> bool:
        return self.locator(selector).first.is_enabled()

    def is_element_present(self, selector: str) -> bool:
        return self.locator(selector).count() > 0

    # =========================================================================
    # Frames
    # =========================================================================

    def get_frame(self, name_or_url: str) -> Any:
        """
        Find a frame of the active page by name, then by URL substring.

        Raises:
            FrameNotFoundError: no frame matches
        """
        page = self.page
        frame = page.frame(name=name_or_url)
        if frame is None:
            frame = next((f for f in page.frames if name_or_url in (f.url or "")), None)
        if frame is None:
            raise FrameNotFoundError(f"Frame not found: {name_or_url}")
        return frame

    def switch_to_frame(self, name_or_url: str) -> Any:
        """Select a frame for subsequent actions and return it."""
        frame = self.get_frame(name_or_url)
        self.registry.set_active_frame(frame)
        self._report("info", f"Switched to frame: {name_or_url}")
        return frame

    def switch_to_child_frame(self, name: str) -> Any:
        """Select a direct child of the currently selected frame."""
        frame = next((f for f in self.frame.child_frames if f.name == name), None)
        if frame is None:
            raise FrameNotFoundError(f"Child frame not found: {name}")
        self.registry.set_active_frame(frame)
        return frame

    def switch_to_default_frame(self) -> None:
        self.registry.set_active_frame(None)
        self._report("info", "Switched to default frame")

    def get_text_from_frame(self, frame: Any, selector: str) -> str:
        with self._action(f"Read {selector} in frame '{frame.name}'"):
            element = frame.locator(selector).first
            element.wait_for(state="visible", timeout=self.default_timeout)
            text = element.inner_text()
        self._report("pass", f"Got text from frame '{frame.name}': '{text}'")
        return text

    # =========================================================================
    # Dialogs / JavaScript
    # =========================================================================

    def handle_alert(self, accept: bool = True, prompt_text: Optional[str] = None) -> None:
        """Register a one-shot handler for the next alert/confirm/prompt."""

        def _handle(dialog: Any) -> None:
            logger.info(f"Handling dialog: {dialog.message}")
            if prompt_text is not None:
                dialog.accept(prompt_text)
            elif accept:
                dialog.accept()
            else:
                dialog.dismiss()

        self.page.once("dialog", _handle)

    def execute_js(self, script: str, arg: Any = None) -> Any:
        return self.page.evaluate(script, arg)

    def scroll_to_bottom(self) -> None:
        self.execute_js("window.scrollTo(0, document.body.scrollHeight)")

    # =========================================================================
    # Windows / Tabs
    # =========================================================================

    def get_all_pages(self) -> List[Any]:
        return list(self.page.context.pages)

    def _activate(self, page: Any, message: str) -> Any:
        page.bring_to_front()
        self.registry.set_active_page(page)
        self._report("pass", message)
        return page

    def switch_to_new_tab(self, action: Any = None, timeout: Optional[int] = None) -> Any:
        """
        Wait for a new tab (opened by ``action`` if given) and make it active.

        The frame selection is reset along with the page.
        """
        context = self.page.context
        with context.expect_page(timeout=self._timeout(timeout)) as page_info:
            if action is not None:
                action()
        new_page = page_info.value
        new_page.wait_for_load_state()
        return self._activate(new_page, "Switched to new tab")

    def switch_to_window_by_title(self, title: str) -> Any:
        for page in self.get_all_pages():
            if page.title() == title:
                return self._activate(page, f"Switched to window with title: {title}")
        raise LookupError(f"Window not found with title: {title}")

    def switch_to_window_by_url(self, url_part: str) -> Any:
        for page in self.get_all_pages():
            if url_part in page.url:
                return self._activate(page, f"Switched to window with URL containing: {url_part}")
        raise LookupError(f"Window not found with URL: {url_part}")

    def switch_to_window_by_index(self, index: int) -> Any:
        pages = self.get_all_pages()
        if not 0 <= index < len(pages):
            raise IndexError(f"Invalid window index: {index}")
        return self._activate(pages[index], f"Switched to window at index: {index}")

    def switch_to_parent_window(self) -> Any:
        return self.switch_to_window_by_index(0)

    def close_current_tab(self) -> Any:
        """
        Close the active tab and activate the first remaining one.

        Returns:
            The newly active page, or None when the closed tab was the last one
        """
        current = self.page
        context = current.context
        current.close()
        if not context.pages:
            self._report("warning", "Closed the last open tab; no page is active")
            return None
        return self._activate(context.pages[0], "Closed current tab and switched to previous")

    def close_all_other_windows(self) -> None:
        current = self.page
        for page in self.get_all_pages():
            if page is not current:
                page.close()

    # =========================================================================
    # Screenshots
    # =========================================================================

    def capture_full_page_screenshot(self, name: str) -> Optional[Path]:
        """
        Save a full-page screenshot into the run and "latest" folders.

        Returns:
            Saved path, or None when capture failed
        """
        try:
            data = self.page.screenshot(full_page=True)
        except Exception as e:
            self._report("warning", f"Full page screenshot failed: {e}")
            return None
        path = self._artifacts().save_screenshot(name, data)
        allure.attach(data, name=name, attachment_type=allure.attachment_type.PNG)
        return path

    def capture_element_screenshot(self, selector: str, name: str) -> Optional[Path]:
        try:
            data = self.locator(selector).first.screenshot(timeout=self.default_timeout)
        except Exception as e:
            self._report("warning", f"Element screenshot failed: {e}")
            return None
        path = self._artifacts().save_screenshot(f"{name}_element", data)
        allure.attach(data, name=f"{name} ({selector})", attachment_type=allure.attachment_type.PNG)
        return path

    # =========================================================================
    # Assertions
    # =========================================================================

    def verify_text_equals(self, selector: str, expected: str) -> None:
        actual = self.get_text(selector)
        assert actual == expected, f"Text mismatch for {selector}: expected '{expected}', got '{actual}'"
        self._report("pass", f"Text matched for {selector}: '{expected}'")

    def verify_text_contains(self, selector: str, expected: str) -> None:
        actual = self.get_text(selector)
        assert expected in actual, f"'{expected}' not found in text of {selector}: '{actual}'"
        self._report("pass", f"Text of {selector} contains '{expected}'")


__all__ = [
    "BasePage",
]
