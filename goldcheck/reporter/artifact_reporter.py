"""Artifact reporter — writes mismatch artifacts and composes result messages."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from PIL import Image

from goldcheck.goldens.store import encode_png
from goldcheck.models.comparison import DiffResult, ReportArtifacts

from .html_report import generate_html_report

logger = logging.getLogger(__name__)


def printable_diff_info(rate: float, max_rate: float) -> str:
    return (
        f"({rate * 100:.4f}% of pixels were different. "
        f"Maximum allowed rate is: {max_rate * 100:.4f}%)."
    )


def write_report_artifacts(
    filename: str,
    basename: str,
    results_dir: Path,
    screenshot: Image.Image,
    diff_result: DiffResult,
    golden_path: Path,
    max_diff_rate_failure: float,
) -> ReportArtifacts:
    """Write actual, diff, expected, and HTML report files for a mismatch.

    Each file is written independently; an existing results directory is reused.
    """
    results_dir.mkdir(parents=True, exist_ok=True)

    actual_path = results_dir / f"{basename}.actual.png"
    actual_path.write_bytes(encode_png(screenshot))

    diff_path = results_dir / f"{basename}.diff.png"
    diff_path.write_bytes(encode_png(diff_result.diff))

    expected_path = results_dir / f"{basename}.expected.png"
    shutil.copyfile(golden_path, expected_path)

    report_path = results_dir / f"{basename}.report.html"
    generate_html_report(filename, basename, diff_result.rate, max_diff_rate_failure, report_path)

    logger.debug("Mismatch artifacts for %s written to %s", filename, results_dir)
    return ReportArtifacts(
        actual=str(actual_path),
        diff=str(diff_path),
        expected=str(expected_path),
        report=str(report_path),
    )


def compose_mismatch_message(
    filename: str,
    diff_result: DiffResult,
    max_diff_rate_failure: float,
    artifacts: ReportArtifacts,
) -> str:
    lines = [
        f"Golden file {filename} did not match the image generated by the test.",
        printable_diff_info(diff_result.rate, max_diff_rate_failure),
        "You can view the test report in your browser by opening:",
        artifacts.report,
        f"To update the golden file call compare_image('{filename}', write: true) "
        "(write=True, or `goldcheck compare --write`).",
        f"Golden file: {artifacts.expected}",
        f"Actual file: {artifacts.actual}",
    ]
    return "\n".join(lines) + "\n"


def compose_missing_message(filename: str) -> str:
    return (
        f"Golden file {filename} does not exist.\n"
        "\n"
        f"To automatically create this file call compare_image('{filename}', write: true) "
        "(write=True, or `goldcheck compare --write`).\n"
    )


def compose_updated_message(filename: str) -> str:
    return (
        f'Golden file {filename} was updated. You can remove "write: true" '
        "in the call to compare_image."
    )
