"""
================================================================================
Allure Report Processing
================================================================================

Post-run handling of Allure results:
- Summary of the raw *-result.json files
- HTML generation through the Allure CLI (history carried over)
- Publishing the newest report as <root>/latest-report

Author: Automation Team
License: MIT
================================================================================
"""

import json
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from .artifacts import ArtifactLayout, readable_timestamp


@dataclass
class TestResultSummary:
    """Summary of test execution results."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    unknown: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "unknown": self.unknown,
            "pass_rate": f"{self.pass_rate:.2f}%",
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


class AllureReportProcessor:
    """
    Turns an allure-results directory into a browsable report.

    Usage:
        processor = AllureReportProcessor.from_layout(ArtifactLayout("reports"))
        if processor.generate_report():
            processor.publish_latest()
        processor.print_summary()
    """

    def __init__(
        self,
        results_dir: Path,
        report_dir: Optional[Path] = None,
        latest_dir: Optional[Path] = None,
    ):
        """
        Args:
            results_dir: Allure results directory
            report_dir: Output report directory (allure-report-<stamp> beside results)
            latest_dir: Where the newest report is mirrored
        """
        self.results_dir = Path(results_dir)
        self.report_dir = Path(
            report_dir or self.results_dir.parent / f"allure-report-{readable_timestamp()}"
        )
        self.latest_dir = Path(latest_dir or self.results_dir.parent / "latest-report")

    @classmethod
    def from_layout(cls, layout: ArtifactLayout) -> "AllureReportProcessor":
        return cls(layout.allure_results_dir, latest_dir=layout.latest_report_dir)

    def parse_results(self) -> List[Dict[str, Any]]:
        """Parse Allure result files; unreadable files are skipped with a warning."""
        results = []
        for result_file in sorted(self.results_dir.glob("*-result.json")):
            try:
                with open(result_file, encoding="utf-8") as f:
                    results.append(json.load(f))
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to parse {result_file}: {e}")
        return results

    def generate_summary(self) -> TestResultSummary:
        summary = TestResultSummary()
        for result in self.parse_results():
            summary.total += 1
            status = result.get("status", "unknown")
            if status == "passed":
                summary.passed += 1
            elif status == "failed":
                summary.failed += 1
            elif status == "broken":
                summary.broken += 1
            elif status == "skipped":
                summary.skipped += 1
            else:
                summary.unknown += 1
            summary.duration_ms += result.get("stop", 0) - result.get("start", 0)
        return summary

    def copy_history(self) -> None:
        """Carry trend history from the last published report into the results."""
        history_source = self.latest_dir / "history"
        history_dest = self.results_dir / "history"
        if history_source.exists():
            if history_dest.exists():
                shutil.rmtree(history_dest)
            shutil.copytree(history_source, history_dest)
            logger.info("Copied history from previous report")

    def generate_report(self) -> bool:
        """
        Generate the Allure HTML report.

        Returns:
            True if successful
        """
        if not self.results_dir.exists():
            logger.warning(f"No Allure results at {self.results_dir}")
            return False

        self.copy_history()
        cmd = [
            "allure", "generate",
            str(self.results_dir),
            "-o", str(self.report_dir),
            "--clean",
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            logger.error("Allure command not found. Install allure-commandline.")
            return False

        if result.returncode == 0:
            logger.info(f"Report generated at {self.report_dir}")
            return True
        logger.error(f"Report generation failed: {result.stderr}")
        return False

    def publish_latest(self) -> Optional[Path]:
        """
        Replace latest-report with a copy of the generated report.

        Returns:
            The latest-report path, or None when there is nothing to publish
        """
        if not self.report_dir.exists():
            logger.warning(f"No report to publish at {self.report_dir}")
            return None
        if self.latest_dir.exists():
            shutil.rmtree(self.latest_dir)
        shutil.copytree(self.report_dir, self.latest_dir)
        logger.info(f"Latest report published to {self.latest_dir}")
        return self.latest_dir

    def print_summary(self) -> None:
        """Print summary to console."""
        summary = self.generate_summary()

        print("\n" + "=" * 60)
        print("TEST EXECUTION SUMMARY")
        print("=" * 60)
        print(f"Total Tests:    {summary.total}")
        print(f"Passed:         {summary.passed} ✅")
        print(f"Failed:         {summary.failed} ❌")
        print(f"Broken:         {summary.broken} ⚠️")
        print(f"Skipped:        {summary.skipped} ⏭️")
        print(f"Pass Rate:      {summary.pass_rate:.2f}%")
        print(f"Duration:       {summary.duration_ms / 1000:.2f}s")
        print("=" * 60 + "\n")


def generate_allure_report(
    results_dir: str,
    output_dir: Optional[str] = None,
    open_report: bool = False,
) -> bool:
    """
    Generate, publish and summarise a report from an allure-results directory.

    Returns:
        True if successful
    """
    processor = AllureReportProcessor(
        Path(results_dir),
        Path(output_dir) if output_dir else None,
    )
    success = processor.generate_report()
    if success:
        processor.publish_latest()
        processor.print_summary()
        if open_report:
            subprocess.run(["allure", "open", str(processor.report_dir)])
    return success


__all__ = [
    "AllureReportProcessor",
    "TestResultSummary",
    "generate_allure_report",
]
