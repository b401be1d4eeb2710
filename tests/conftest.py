"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from goldcheck.ci.context import ci_context
from goldcheck.goldens.store import encode_png
from goldcheck.models.config import GoldCheckConfig


# ============================================================================
# Image Helpers
# ============================================================================


def solid_image(width: int, height: int, color=(255, 255, 255, 255)) -> Image.Image:
    """Create an RGBA image filled with a single color."""
    return Image.new("RGBA", (width, height), color)


def with_changed_pixels(image: Image.Image, count: int, color=(0, 0, 0, 255)) -> Image.Image:
    """Return a copy of ``image`` with the first ``count`` pixels (row-major) recolored."""
    changed = image.copy()
    width = changed.width
    for i in range(count):
        changed.putpixel((i % width, i // width), color)
    return changed


@pytest.fixture
def white_10x10() -> Image.Image:
    return solid_image(10, 10)


@pytest.fixture
def make_image():
    """Fixture that provides the solid_image function."""
    return solid_image


@pytest.fixture
def change_pixels():
    """Fixture that provides the with_changed_pixels function."""
    return with_changed_pixels


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def goldens_dir(tmp_path: Path) -> Path:
    path = tmp_path / "goldens"
    path.mkdir()
    return path


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    return tmp_path / "results"


@pytest.fixture
def config(tmp_path: Path, goldens_dir: Path, results_dir: Path) -> GoldCheckConfig:
    """Create a config rooted in a temporary directory."""
    return GoldCheckConfig(
        goldens_dir=str(goldens_dir),
        results_dir=str(results_dir),
        skia_gold_dir=str(tmp_path / "skia-gold"),
    )


@pytest.fixture
def write_golden(goldens_dir: Path):
    """Fixture that writes an image into the goldens directory."""
    def _write(filename: str, image: Image.Image) -> Path:
        path = goldens_dir / filename
        path.write_bytes(encode_png(image))
        return path
    return _write


# ============================================================================
# CI Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_ci_context():
    """Drop the cached process-wide CI classification between tests."""
    ci_context.cache_clear()
    yield
    ci_context.cache_clear()


@pytest.fixture
def mock_gold_client() -> Mock:
    """Create a mock Skia Gold client with async upload methods."""
    client = Mock()
    client.tryjob_add = AsyncMock()
    client.imgtest_add = AsyncMock()
    return client
