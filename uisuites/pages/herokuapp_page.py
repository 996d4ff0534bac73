"""
================================================================================
The Internet (herokuapp) Page Object
================================================================================

Page object for the public demo site https://the-internet.herokuapp.com/.

Covers the flows exercised by the end-to-end suite: form authentication,
dropdown, JavaScript alerts, file upload, iframe editor and nested frames.

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import allure

from uisuites.framework.page_base import BasePage


class HerokuAppPage(BasePage):
    """Landing page and example pages of the-internet.herokuapp.com."""

    # -------------------- Locators --------------------
    LOGIN_LINK = "a[href='/login']"
    USERNAME_INPUT = "#username"
    PASSWORD_INPUT = "#password"
    LOGIN_BUTTON = "button[type='submit']"
    FLASH_MESSAGE = "#flash"
    LOGOUT_BUTTON = "a[href='/logout']"

    DROPDOWN_LINK = "a[href='/dropdown']"
    DROPDOWN_SELECT = "#dropdown"

    JAVASCRIPT_LINK = "a[href='/javascript_alerts']"
    JS_ALERT_BUTTON = "button[onclick='jsAlert()']"
    JS_CONFIRM_BUTTON = "button[onclick='jsConfirm()']"
    JS_PROMPT_BUTTON = "button[onclick='jsPrompt()']"
    JS_RESULT_TEXT = "#result"

    FILE_UPLOAD_LINK = "a[href='/upload']"
    FILE_UPLOAD_INPUT = "#file-upload"
    FILE_UPLOAD_BUTTON = "#file-submit"
    FILE_UPLOAD_RESULT = "#uploaded-files"

    IFRAME_PATH = "iframe"
    IFRAME = "#mce_0_ifr"
    IFRAME_BODY = "body"

    NESTED_FRAMES_PATH = "nested_frames"
    NEW_WINDOW_PATH = "windows"
    NEW_WINDOW_LINK = "a[href='/windows/new']"

    SECURE_AREA_TEXT = "You logged into a secure area!"
    INVALID_USERNAME_TEXT = "Your username is invalid!"
    INVALID_PASSWORD_TEXT = "Your password is invalid!"

    @property
    def base_url(self) -> str:
        return str(self.config.get("baseUrl")).rstrip("/")

    def url_for(self, path: str = "") -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    # -------------------- Navigation --------------------
    @allure.step("Open home page")
    def open_home(self) -> "HerokuAppPage":
        self.navigate_to(self.url_for())
        return self

    def go_to_login(self) -> None:
        self.click(self.LOGIN_LINK)

    def go_to_dropdown(self) -> None:
        self.click(self.DROPDOWN_LINK)

    def go_to_javascript_alerts(self) -> None:
        self.click(self.JAVASCRIPT_LINK)

    def go_to_file_upload(self) -> None:
        self.click(self.FILE_UPLOAD_LINK)

    def go_to_iframe_page(self) -> None:
        self.navigate_to(self.url_for(self.IFRAME_PATH))

    def go_to_nested_frames(self) -> None:
        self.navigate_to(self.url_for(self.NESTED_FRAMES_PATH))

    # -------------------- Login --------------------
    @allure.step("Login (username={username})")
    def login(self, username: str, password: str) -> None:
        self.type(self.USERNAME_INPUT, username)
        self.type(self.PASSWORD_INPUT, password)
        self.click(self.LOGIN_BUTTON)

    def get_flash_message(self) -> str:
        """Flash banner text without the close glyph."""
        return self.get_text(self.FLASH_MESSAGE).replace("×", "").strip()

    def is_logged_in(self) -> bool:
        return self.is_element_visible(self.LOGOUT_BUTTON)

    # -------------------- Dropdown --------------------
    def select_dropdown_by_value(self, value: str) -> None:
        self.select_by_value(self.DROPDOWN_SELECT, value)

    def get_dropdown_value(self) -> str:
        return self.get_selected_dropdown_value(self.DROPDOWN_SELECT)

    # -------------------- JavaScript Alerts --------------------
    def click_js_alert(self, accept: bool = True) -> None:
        self.handle_alert(accept)
        self.click(self.JS_ALERT_BUTTON)

    def click_js_confirm(self, accept: bool) -> None:
        self.handle_alert(accept)
        self.click(self.JS_CONFIRM_BUTTON)

    def click_js_prompt(self, text: str) -> None:
        self.handle_alert(True, prompt_text=text)
        self.click(self.JS_PROMPT_BUTTON)

    def get_js_result_text(self) -> str:
        return self.get_text(self.JS_RESULT_TEXT)

    # -------------------- File Upload --------------------
    @allure.step("Upload file {file_path}")
    def upload(self, file_path: Union[str, Path]) -> None:
        self.upload_file(self.FILE_UPLOAD_INPUT, file_path)
        self.click(self.FILE_UPLOAD_BUTTON)

    def get_uploaded_file_name(self) -> str:
        return self.get_text(self.FILE_UPLOAD_RESULT)

    # -------------------- iFrame Editor --------------------
    def get_text_inside_iframe(self) -> str:
        return self.frame.frame_locator(self.IFRAME).locator(self.IFRAME_BODY).inner_text(
            timeout=self.default_timeout
        )

    # -------------------- Nested Frames --------------------
    def read_nested_frame(self, *path: str) -> str:
        """
        Body text of a frame reached through nested frame names,
        e.g. read_nested_frame("frame-top", "frame-left").

        The frame selection is restored to the main frame afterwards.
        """
        if not path:
            raise ValueError("At least one frame name is required")
        try:
            frame = self.switch_to_frame(path[0])
            for name in path[1:]:
                frame = self.switch_to_child_frame(name)
            return self.get_text_from_frame(frame, self.IFRAME_BODY)
        finally:
            self.switch_to_default_frame()

    # -------------------- Windows --------------------
    def open_new_window(self) -> None:
        """Open /windows/new from /windows and make the new tab active."""
        self.navigate_to(self.url_for(self.NEW_WINDOW_PATH))
        self.switch_to_new_tab(lambda: self.click(self.NEW_WINDOW_LINK))
