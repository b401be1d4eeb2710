"""Golden comparison — the entry point used by screenshot tests."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image

from goldcheck.ci.context import CIContext, ci_context
from goldcheck.ci.publisher import GoldClient, publish_screenshot
from goldcheck.diff.pixel_diff import DEFAULT_FUZZY_THRESHOLD, compute_diff
from goldcheck.goldens.store import GoldenStore, apply_suffix
from goldcheck.models.comparison import (
    CompareOutcome,
    GoldenUpdated,
    Matched,
    Mismatched,
    NoGolden,
    PixelComparison,
    result_message,
)
from goldcheck.models.config import GoldCheckConfig
from goldcheck.reporter.artifact_reporter import (
    compose_mismatch_message,
    compose_missing_message,
    compose_updated_message,
    write_report_artifacts,
)

logger = logging.getLogger(__name__)


def evaluate_golden(
    screenshot: Image.Image,
    filename: str,
    pixel_comparison: PixelComparison,
    max_diff_rate_failure: float,
    store: GoldenStore,
    results_dir: Path,
    write: bool = False,
    update_goldens: bool = False,
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> CompareOutcome:
    """Judge ``screenshot`` against the golden named ``filename``.

    Expected test outcomes come back as values; only bad input (undecodable
    golden, size mismatch) or filesystem errors raise.
    """
    golden_path = store.resolve(filename)

    if write:
        store.write(golden_path, screenshot)
        if update_goldens:
            # Bulk updates must not fail the run.
            return GoldenUpdated(filename=filename, golden_path=str(golden_path))
        return GoldenUpdated(
            filename=filename,
            golden_path=str(golden_path),
            message=compose_updated_message(filename),
            passed=False,
        )

    if not store.exists(golden_path):
        return NoGolden(
            filename=filename,
            golden_path=str(golden_path),
            message=compose_missing_message(filename),
        )

    golden = store.read(golden_path)
    diff_result = compute_diff(golden, screenshot, pixel_comparison, fuzzy_threshold)
    if diff_result.rate == 0:
        return Matched(filename=filename, golden_path=str(golden_path))

    basename = golden_path.stem
    artifacts = write_report_artifacts(
        filename, basename, results_dir, screenshot, diff_result, golden_path, max_diff_rate_failure,
    )
    message = compose_mismatch_message(filename, diff_result, max_diff_rate_failure, artifacts)
    tolerated = diff_result.rate < max_diff_rate_failure
    if tolerated:
        logger.warning("WARNING:\n%s", message)
    return Mismatched(
        filename=filename,
        golden_path=str(golden_path),
        diff_result=diff_result,
        artifacts=artifacts,
        max_diff_rate_failure=max_diff_rate_failure,
        message=message,
        passed=tolerated,
    )


async def compare_image(
    screenshot: Image.Image,
    update_goldens: bool,
    filename: str,
    pixel_comparison: PixelComparison,
    max_diff_rate_failure: float,
    gold_client: Optional[GoldClient],
    *,
    goldens_dir: str | Path | None = None,
    filename_suffix: str = "",
    write: bool = False,
    config: Optional[GoldCheckConfig] = None,
    context: Optional[CIContext] = None,
) -> str:
    """Compare a screenshot taken by a test with its golden.

    Returns ``"OK"`` when the test passes (including drift below
    ``max_diff_rate_failure``, which is only logged). Otherwise returns a
    multi-line explanation naming the files compared and the HTML report
    that shows them side by side.

    In CI the screenshot is also uploaded to Skia Gold; the upload runs as a
    detached task and its outcome never changes the returned result.
    """
    config = config or GoldCheckConfig()
    context = context or ci_context()

    if context.is_ci and gold_client is not None:
        publish_screenshot(gold_client, screenshot, filename, context, config.skia_gold_path)

    filename = apply_suffix(filename, filename_suffix)
    store = GoldenStore(goldens_dir or config.goldens_path)

    outcome = evaluate_golden(
        screenshot,
        filename,
        pixel_comparison,
        max_diff_rate_failure,
        store=store,
        results_dir=config.results_path,
        write=write,
        update_goldens=update_goldens,
        fuzzy_threshold=config.fuzzy_threshold,
    )
    logger.debug("Golden comparison for %s: %s", filename, type(outcome).__name__)
    return result_message(outcome)
