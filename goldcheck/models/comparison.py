"""Comparison data structures shared by the diff engine, reporter, and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from PIL import Image
from pydantic import BaseModel

OK = "OK"


class PixelComparison(str, Enum):
    """How two pixels are judged equal."""

    PRECISE = "precise"  # every channel must match exactly
    FUZZY = "fuzzy"  # 3x3 neighborhood averages within a color distance


@dataclass
class DiffResult:
    rate: float
    diff: Image.Image
    different_pixels: int
    total_pixels: int


class ReportArtifacts(BaseModel):
    """Files written to the results directory for a mismatching golden."""
    actual: str
    diff: str
    expected: str
    report: str


@dataclass
class NoGolden:
    """The golden file is absent and the caller did not ask to write it."""
    filename: str
    golden_path: str
    message: str
    passed: bool = False


@dataclass
class GoldenUpdated:
    """The screenshot was written as the new golden; no comparison ran.

    Outside of a bulk update this does not pass, so that the caller notices
    and drops the write flag.
    """
    filename: str
    golden_path: str
    message: str = OK
    passed: bool = True


@dataclass
class Matched:
    filename: str
    golden_path: str
    message: str = OK
    passed: bool = True


@dataclass
class Mismatched:
    """The screenshot differs from the golden.

    ``passed`` is True when the rate stayed below the failure threshold; the
    artifacts are written either way.
    """
    filename: str
    golden_path: str
    diff_result: DiffResult
    artifacts: ReportArtifacts
    max_diff_rate_failure: float
    message: str
    passed: bool = False

    @property
    def rate(self) -> float:
        return self.diff_result.rate


CompareOutcome = NoGolden | GoldenUpdated | Matched | Mismatched


def result_message(outcome: CompareOutcome) -> str:
    """Collapse an outcome into the string returned to test harnesses."""
    if outcome.passed:
        return OK
    return outcome.message
