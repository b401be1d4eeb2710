"""Pixel diff engine — classifies every pixel of two equally-sized images."""

from __future__ import annotations

import logging
import math

from PIL import Image

from goldcheck.errors import DimensionMismatchError
from goldcheck.models.comparison import DiffResult, PixelComparison

logger = logging.getLogger(__name__)

DEFAULT_FUZZY_THRESHOLD = 0.1

# Euclidean distance between transparent black and opaque white
_MAX_RGBA_DISTANCE = math.sqrt(4 * 255 ** 2)

_DIFF_COLOR = (255, 0, 0, 255)
_DIMMED_ALPHA = 64

Pixel = tuple[int, int, int, int]


def color_distance(a: Pixel | tuple[float, ...], b: Pixel | tuple[float, ...]) -> float:
    """Normalized Euclidean RGBA distance in [0, 1]."""
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b))) / _MAX_RGBA_DISTANCE


def _reflect(i: int, size: int) -> int:
    if i < 0:
        return min(-i, size - 1)
    if i >= size:
        return max(2 * size - i - 2, 0)
    return i


def _neighborhood_averages(pixels: list[Pixel], width: int, height: int) -> list[tuple[float, ...]]:
    """Average each pixel with its 3x3 neighborhood, mirroring at the edges."""
    averages: list[tuple[float, ...]] = []
    for y in range(height):
        rows = [_reflect(y + dy, height) * width for dy in (-1, 0, 1)]
        for x in range(width):
            cols = [_reflect(x + dx, width) for dx in (-1, 0, 1)]
            sums = [0, 0, 0, 0]
            for row in rows:
                for col in cols:
                    p = pixels[row + col]
                    sums[0] += p[0]
                    sums[1] += p[1]
                    sums[2] += p[2]
                    sums[3] += p[3]
            averages.append(tuple(s / 9 for s in sums))
    return averages


def _precise_mask(golden: list[Pixel], candidate: list[Pixel]) -> list[bool]:
    return [g != c for g, c in zip(golden, candidate)]


def _fuzzy_mask(
    golden: list[Pixel],
    candidate: list[Pixel],
    width: int,
    height: int,
    threshold: float,
) -> list[bool]:
    golden_avg = _neighborhood_averages(golden, width, height)
    candidate_avg = _neighborhood_averages(candidate, width, height)
    return [
        g != c and color_distance(ga, ca) > threshold
        for g, c, ga, ca in zip(golden, candidate, golden_avg, candidate_avg)
    ]


def _dimmed(pixel: Pixel) -> Pixel:
    r, g, b, _ = pixel
    luma = int(0.299 * r + 0.587 * g + 0.114 * b)
    return (luma, luma, luma, _DIMMED_ALPHA)


def compute_diff(
    golden: Image.Image,
    candidate: Image.Image,
    pixel_comparison: PixelComparison = PixelComparison.PRECISE,
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> DiffResult:
    """Compare ``candidate`` against ``golden`` and build a highlight image.

    Pixels judged different are painted opaque red in the diff image; the rest
    show the golden in dimmed grayscale. Raises DimensionMismatchError when the
    images are not the same size.
    """
    if golden.size != candidate.size:
        raise DimensionMismatchError(golden.size, candidate.size)

    width, height = golden.size
    golden_pixels: list[Pixel] = list(golden.convert("RGBA").getdata())
    candidate_pixels: list[Pixel] = list(candidate.convert("RGBA").getdata())
    total = width * height

    match pixel_comparison:
        case PixelComparison.PRECISE:
            mask = _precise_mask(golden_pixels, candidate_pixels)
        case PixelComparison.FUZZY:
            mask = _fuzzy_mask(golden_pixels, candidate_pixels, width, height, fuzzy_threshold)
        case _:
            raise ValueError(f"Unknown pixel comparison: {pixel_comparison}")

    different = sum(mask)
    diff_image = Image.new("RGBA", (width, height))
    diff_image.putdata([
        _DIFF_COLOR if is_different else _dimmed(g)
        for g, is_different in zip(golden_pixels, mask)
    ])

    rate = different / total if total else 0.0
    logger.debug(
        "Pixel diff (%s): %d/%d pixels different (%.4f%%)",
        pixel_comparison.value, different, total, rate * 100,
    )
    return DiffResult(rate=rate, diff=diff_image, different_pixels=different, total_pixels=total)


class ImageDiff:
    """Diff of a golden image against another image, computed on construction."""

    def __init__(
        self,
        golden: Image.Image,
        other: Image.Image,
        pixel_comparison: PixelComparison = PixelComparison.PRECISE,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
    ):
        self.golden = golden
        self.other = other
        self.pixel_comparison = pixel_comparison
        self.result = compute_diff(golden, other, pixel_comparison, fuzzy_threshold)

    @property
    def rate(self) -> float:
        return self.result.rate

    @property
    def diff(self) -> Image.Image:
        return self.result.diff
