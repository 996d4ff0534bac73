"""
================================================================================
Artifact Layout
================================================================================

File and directory naming for everything a run produces:

    <root>/screenshots/<run stamp>/     per-run screenshots (stamp fixed at import)
    <root>/screenshots/latest/          cleared and repopulated each run
    <root>/videos/<day>/                session videos
    <root>/traces/<day>/                Playwright trace archives
    <root>/allure-results/              raw Allure results
    <root>/latest-report/               consolidated copy of the newest report

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .config_loader import ConfigLoader


# Fixed once per process, shared by every screenshot of this run
RUN_TIMESTAMP = datetime.now().strftime("%d_%b_%Y_%H_%M_%S")

_UNSAFE_CHARS = re.compile(r"[^\w.\-\[\]]+")


def today_folder() -> str:
    """Folder name for the current day, e.g. 16_Oct_2026."""
    return datetime.now().strftime("%d_%b_%Y")


def readable_timestamp() -> str:
    """Human-readable timestamp for file names, e.g. 16_Oct_2026_10_21_05_PM."""
    return datetime.now().strftime("%d_%b_%Y_%I_%M_%S_%p")


def unique_stamp() -> str:
    """Readable timestamp plus a random suffix so parallel sessions never collide."""
    return f"{readable_timestamp()}_{uuid.uuid4().hex[:8]}"


def safe_name(name: str) -> str:
    """Make a test name usable as a file name (pytest ids keep their brackets)."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("_")
    return cleaned or "session"


class ArtifactLayout:
    """
    Resolves artifact paths under a single root directory.

    Usage:
        >>> layout = ArtifactLayout.from_config(ConfigLoader())
        >>> layout.prepare(clear_latest=True)
        >>> video_dir = layout.session_video_dir("test_login")
        >>> trace = layout.trace_path("test_login")
    """

    def __init__(self, root: Union[str, Path] = "reports", run_stamp: str = RUN_TIMESTAMP):
        self.root = Path(root)
        self.run_stamp = run_stamp

    @classmethod
    def from_config(cls, config: ConfigLoader) -> "ArtifactLayout":
        return cls(config.get("artifacts.root", "reports"))

    # =========================================================================
    # Directories
    # =========================================================================

    @property
    def screenshots_run_dir(self) -> Path:
        return self.root / "screenshots" / self.run_stamp

    @property
    def screenshots_latest_dir(self) -> Path:
        return self.root / "screenshots" / "latest"

    @property
    def videos_dir(self) -> Path:
        return self.root / "videos" / today_folder()

    @property
    def traces_dir(self) -> Path:
        return self.root / "traces" / today_folder()

    @property
    def allure_results_dir(self) -> Path:
        return self.root / "allure-results"

    @property
    def latest_report_dir(self) -> Path:
        return self.root / "latest-report"

    def prepare(self, clear_latest: bool = False) -> None:
        """
        Create the run directories.

        Args:
            clear_latest: Empty the "latest" screenshot folder. Only the
                          controlling process of a run should pass True.
        """
        for directory in (
            self.screenshots_run_dir,
            self.screenshots_latest_dir,
            self.videos_dir,
            self.traces_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

        if clear_latest:
            for item in self.screenshots_latest_dir.iterdir():
                if item.is_dir():
                    shutil.rmtree(item, ignore_errors=True)
                else:
                    item.unlink(missing_ok=True)
            logger.debug(f"Cleared latest screenshots: {self.screenshots_latest_dir}")

    # =========================================================================
    # Per-session paths
    # =========================================================================

    def session_video_dir(self, test_name: str) -> Path:
        """Recording directory owned by exactly one session."""
        path = self.videos_dir / f"{safe_name(test_name)}_{unique_stamp()}"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def trace_path(self, test_name: str) -> Path:
        self.traces_dir.mkdir(parents=True, exist_ok=True)
        return self.traces_dir / f"{safe_name(test_name)}_{unique_stamp()}_trace.zip"

    def video_path(self, test_name: str) -> Path:
        self.videos_dir.mkdir(parents=True, exist_ok=True)
        return self.videos_dir / f"{safe_name(test_name)}_{unique_stamp()}.webm"

    # =========================================================================
    # Screenshots
    # =========================================================================

    def save_screenshot(self, name: str, data: bytes) -> Path:
        """
        Write screenshot bytes into the run folder and copy into "latest".

        Returns:
            Path of the run-folder copy
        """
        self.screenshots_run_dir.mkdir(parents=True, exist_ok=True)
        self.screenshots_latest_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%H_%M_%S_%f")
        filename = f"{safe_name(name)}_{timestamp}.png"
        path = self.screenshots_run_dir / filename
        path.write_bytes(data)
        shutil.copy2(path, self.screenshots_latest_dir / filename)

        logger.debug(f"Screenshot saved: {path}")
        return path


def latest_file(directory: Path, pattern: str = "*.webm") -> Optional[Path]:
    """Most recently modified file in directory matching pattern, or None."""
    if not directory.exists():
        return None
    candidates = [p for p in directory.glob(pattern) if p.is_file()]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


__all__ = [
    "RUN_TIMESTAMP",
    "ArtifactLayout",
    "latest_file",
    "readable_timestamp",
    "safe_name",
    "today_folder",
    "unique_stamp",
]
