"""Tests for best-effort Skia Gold publishing."""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from conftest import solid_image
from goldcheck.ci.context import CIContext
from goldcheck.ci.publisher import pending_uploads, publish_screenshot, wait_for_uploads
from goldcheck.errors import UploadError
from goldcheck.goldens.store import load_image


@pytest.mark.asyncio
class TestPublishScreenshot:

    async def test_local_does_not_upload(self, tmp_path, mock_gold_client):
        task = publish_screenshot(mock_gold_client, solid_image(2, 2), "a.png", CIContext.LOCAL, tmp_path)
        await wait_for_uploads()
        assert task is None
        mock_gold_client.tryjob_add.assert_not_called()
        mock_gold_client.imgtest_add.assert_not_called()
        assert not (tmp_path / "a.png").exists()

    async def test_no_client_does_not_upload(self, tmp_path):
        task = publish_screenshot(None, solid_image(2, 2), "a.png", CIContext.POST_SUBMIT, tmp_path)
        assert task is None

    async def test_pre_submit_uses_tryjob(self, tmp_path, mock_gold_client):
        task = publish_screenshot(mock_gold_client, solid_image(2, 2), "a.png", CIContext.PRE_SUBMIT, tmp_path)
        assert task is not None
        await wait_for_uploads()
        mock_gold_client.tryjob_add.assert_awaited_once_with("a.png", tmp_path / "a.png")
        mock_gold_client.imgtest_add.assert_not_called()

    async def test_post_submit_uses_imgtest(self, tmp_path, mock_gold_client):
        publish_screenshot(mock_gold_client, solid_image(2, 2), "a.png", CIContext.POST_SUBMIT, tmp_path)
        await wait_for_uploads()
        mock_gold_client.imgtest_add.assert_awaited_once_with("a.png", tmp_path / "a.png")
        mock_gold_client.tryjob_add.assert_not_called()

    async def test_stages_png_in_work_dir(self, tmp_path, mock_gold_client):
        image = solid_image(3, 3, (5, 6, 7, 255))
        publish_screenshot(mock_gold_client, image, "a.png", CIContext.POST_SUBMIT, tmp_path / "work")
        await wait_for_uploads()
        staged = load_image(tmp_path / "work" / "a.png")
        assert staged.getpixel((1, 1)) == (5, 6, 7, 255)

    async def test_upload_failure_is_logged_not_raised(self, tmp_path, caplog):
        client = Mock()
        client.imgtest_add = AsyncMock(side_effect=UploadError("goldctl exploded"))
        with caplog.at_level(logging.WARNING, logger="goldcheck.ci.publisher"):
            publish_screenshot(client, solid_image(2, 2), "a.png", CIContext.POST_SUBMIT, tmp_path)
            await wait_for_uploads()
        assert "Failed to upload a.png" in caplog.text
        assert "goldctl exploded" in caplog.text
        assert pending_uploads() == 0

    async def test_non_awaitable_client_failure_is_logged(self, tmp_path, caplog):
        client = Mock()
        client.tryjob_add = Mock(side_effect=RuntimeError("boom"))
        with caplog.at_level(logging.WARNING, logger="goldcheck.ci.publisher"):
            publish_screenshot(client, solid_image(2, 2), "a.png", CIContext.PRE_SUBMIT, tmp_path)
            await wait_for_uploads()
        assert "boom" in caplog.text

    async def test_unwritable_work_dir_is_logged(self, tmp_path, mock_gold_client, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with caplog.at_level(logging.WARNING, logger="goldcheck.ci.publisher"):
            task = publish_screenshot(mock_gold_client, solid_image(2, 2), "a.png", CIContext.POST_SUBMIT, blocker)
        assert task is None
        assert "Could not stage a.png" in caplog.text
        mock_gold_client.imgtest_add.assert_not_called()

    async def test_wait_for_uploads_drains(self, tmp_path, mock_gold_client):
        for name in ("a.png", "b.png", "c.png"):
            publish_screenshot(mock_gold_client, solid_image(1, 1), name, CIContext.PRE_SUBMIT, tmp_path)
        await wait_for_uploads()
        assert pending_uploads() == 0
        assert mock_gold_client.tryjob_add.await_count == 3
