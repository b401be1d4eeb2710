"""Screenshot publisher — best-effort uploads that never affect the verdict."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image

from goldcheck.ci.context import CIContext
from goldcheck.goldens.store import encode_png

logger = logging.getLogger(__name__)

# Detached upload tasks; held here so they are not garbage collected mid-flight.
_pending_uploads: set[asyncio.Task] = set()


class GoldClient(Protocol):
    async def tryjob_add(self, filename: str, png_file: Path) -> None: ...

    async def imgtest_add(self, filename: str, png_file: Path) -> None: ...


def _log_upload_result(filename: str, task: asyncio.Task) -> None:
    _pending_uploads.discard(task)
    if task.cancelled():
        logger.warning("Upload of %s to Skia Gold was cancelled", filename)
        return
    error = task.exception()
    if error is not None:
        logger.warning("Failed to upload %s to Skia Gold: %s", filename, error)


async def _upload(client: GoldClient, context: CIContext, filename: str, png_file: Path) -> None:
    match context:
        case CIContext.PRE_SUBMIT:
            await client.tryjob_add(filename, png_file)
        case CIContext.POST_SUBMIT:
            await client.imgtest_add(filename, png_file)


def publish_screenshot(
    client: Optional[GoldClient],
    screenshot: Image.Image,
    filename: str,
    context: CIContext,
    work_dir: Path,
) -> Optional[asyncio.Task]:
    """Schedule an upload of ``screenshot`` appropriate to ``context``.

    Returns the detached task, or None when nothing is uploaded. Must be called
    from inside a running event loop.
    """
    if client is None or not context.is_ci:
        return None

    png_file = Path(work_dir) / filename
    try:
        png_file.parent.mkdir(parents=True, exist_ok=True)
        png_file.write_bytes(encode_png(screenshot))
    except OSError as e:
        logger.warning("Could not stage %s for Skia Gold upload: %s", filename, e)
        return None

    task = asyncio.create_task(_upload(client, context, filename, png_file))
    _pending_uploads.add(task)
    task.add_done_callback(lambda t: _log_upload_result(filename, t))
    logger.debug("Scheduled %s upload of %s", context.value, filename)
    return task


def pending_uploads() -> int:
    return len(_pending_uploads)


async def wait_for_uploads() -> None:
    """Wait for every scheduled upload to finish; failures are only logged."""
    while _pending_uploads:
        await asyncio.gather(*list(_pending_uploads), return_exceptions=True)
