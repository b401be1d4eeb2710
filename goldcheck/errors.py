"""Exception types raised by the golden comparison pipeline."""

from __future__ import annotations


class GoldCheckError(Exception):
    """Base class for goldcheck errors."""


class DimensionMismatchError(GoldCheckError):
    """Golden and candidate images have different sizes."""

    def __init__(self, golden_size: tuple[int, int], candidate_size: tuple[int, int]):
        self.golden_size = golden_size
        self.candidate_size = candidate_size
        super().__init__(
            f"Image dimensions differ: golden is {golden_size[0]}x{golden_size[1]}, "
            f"candidate is {candidate_size[0]}x{candidate_size[1]}"
        )


class DecodeError(GoldCheckError):
    """Bytes could not be decoded as a supported raster image."""


class UploadError(GoldCheckError):
    """A goldctl invocation failed."""

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(f"{message}\n{output}" if output else message)
