"""
================================================================================
The Internet (herokuapp) End-to-End UI Tests
================================================================================

Real-browser flows against https://the-internet.herokuapp.com/.

Run with:
    pytest uisuites/tests --run-e2e

Every test gets its own session through the ``heroku_page`` fixture: own
browser, context, video and trace, torn down whatever the outcome.

================================================================================
"""

import os
from pathlib import Path

import allure
import pytest

from uisuites.framework.session_manager import SessionManager
from uisuites.pages.herokuapp_page import HerokuAppPage


UPLOAD_FILE = Path(__file__).parent.parent.parent / "testdata" / "upload.txt"


@pytest.fixture(scope="class", autouse=True)
def headless_chrome(session_manager: SessionManager):
    """Every test of the class runs headless Chrome, whatever the config says."""
    session_manager.overrides.set_browser_override("chrome")
    session_manager.overrides.set_headless_override(True)
    yield
    session_manager.overrides.reset()


@allure.epic("UI Testing")
@allure.feature("The Internet")
@pytest.mark.e2e
class TestHerokuApp:
    """End-to-end suite for the demo site."""

    @allure.story("Navigation")
    @allure.title("Home page lists the Form Authentication example")
    @pytest.mark.P0
    @pytest.mark.smoke
    def test_navigation_and_visibility(self, heroku_page: HerokuAppPage):
        heroku_page.open_home()
        assert heroku_page.is_element_visible(HerokuAppPage.LOGIN_LINK)

        heroku_page.go_to_login()
        assert "/login" in heroku_page.get_current_url()

    @allure.story("Authentication")
    @allure.title("Login succeeds and shows the secure area banner")
    @allure.severity(allure.severity_level.BLOCKER)
    @pytest.mark.P0
    @pytest.mark.smoke
    def test_login_and_flash_message(self, heroku_page: HerokuAppPage):
        heroku_page.go_to_login()
        heroku_page.login(os.environ["UI_USERNAME"], os.environ["UI_PASSWORD"])

        assert HerokuAppPage.SECURE_AREA_TEXT in heroku_page.get_flash_message()
        assert heroku_page.is_logged_in()

    @allure.story("Forms")
    @allure.title("Dropdown selection by value")
    @pytest.mark.P1
    def test_dropdown_selection(self, heroku_page: HerokuAppPage):
        heroku_page.go_to_dropdown()
        heroku_page.select_dropdown_by_value("2")

        assert heroku_page.get_dropdown_value() == "2"

    @allure.story("Dialogs")
    @allure.title("JS alert is accepted")
    @pytest.mark.P1
    def test_js_alert(self, heroku_page: HerokuAppPage):
        heroku_page.go_to_javascript_alerts()
        heroku_page.click_js_alert()

        assert "You successfully clicked an alert" in heroku_page.get_js_result_text()

    @allure.story("Dialogs")
    @allure.title("JS prompt receives typed text")
    @pytest.mark.P2
    def test_js_prompt(self, heroku_page: HerokuAppPage):
        heroku_page.go_to_javascript_alerts()
        heroku_page.click_js_prompt("harness")

        assert heroku_page.get_js_result_text() == "You entered: harness"

    @allure.story("Files")
    @allure.title("File upload shows the uploaded file name")
    @pytest.mark.P1
    def test_file_upload(self, heroku_page: HerokuAppPage):
        heroku_page.go_to_file_upload()
        heroku_page.upload(UPLOAD_FILE)

        assert UPLOAD_FILE.name in heroku_page.get_uploaded_file_name()

    @allure.story("Frames")
    @allure.title("Nested frames are read by name")
    @pytest.mark.P1
    def test_nested_frames(self, heroku_page: HerokuAppPage):
        heroku_page.go_to_nested_frames()

        assert "MIDDLE" in heroku_page.read_nested_frame("frame-top", "frame-middle")
        assert "LEFT" in heroku_page.read_nested_frame("frame-top", "frame-left")
        assert "RIGHT" in heroku_page.read_nested_frame("frame-top", "frame-right")
        assert "BOTTOM" in heroku_page.read_nested_frame("frame-bottom")

        # Selection is back on the main frame
        assert heroku_page.frame is heroku_page.page.main_frame

    @allure.story("Frames")
    @allure.title("iFrame editor content is readable")
    @pytest.mark.P2
    def test_iframe_editor(self, heroku_page: HerokuAppPage):
        heroku_page.go_to_iframe_page()

        assert heroku_page.get_text_inside_iframe() != ""

    @allure.story("Windows")
    @allure.title("New window becomes the active page")
    @pytest.mark.P2
    def test_new_window(self, heroku_page: HerokuAppPage):
        heroku_page.open_new_window()

        assert "/windows/new" in heroku_page.get_current_url()
        assert heroku_page.get_text("h3") == "New Window"

        heroku_page.close_current_tab()
        assert heroku_page.get_current_url().endswith("/windows")

    @allure.story("Navigation")
    @allure.title("Browser back and forward")
    @pytest.mark.P2
    def test_browser_back_forward(self, heroku_page: HerokuAppPage):
        heroku_page.open_home()
        heroku_page.navigate_to(heroku_page.url_for("dynamic_loading"))

        heroku_page.browser_back()
        assert "dynamic_loading" not in heroku_page.get_current_url()

        heroku_page.browser_forward()
        assert "dynamic_loading" in heroku_page.get_current_url()
