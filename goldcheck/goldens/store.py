"""Golden store — locates, reads, and writes golden PNG files."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from goldcheck.errors import DecodeError

logger = logging.getLogger(__name__)


def apply_suffix(filename: str, suffix: str) -> str:
    """Insert ``suffix`` before the .png extension (``a.png`` -> ``a_dark.png``)."""
    if not suffix:
        return filename
    return filename.replace(".png", f"{suffix}.png")


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def decode_image(data: bytes, name: str = "<bytes>") -> Image.Image:
    """Decode image bytes into an RGBA image, raising DecodeError on bad input."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Could not decode image {name}: {e}") from e


def load_image(path: str | Path) -> Image.Image:
    """Read and decode an image file from disk."""
    path = Path(path)
    return decode_image(path.read_bytes(), str(path))


class GoldenStore:
    """Golden PNGs kept under a single root directory."""

    def __init__(self, goldens_dir: str | Path):
        self.goldens_dir = Path(goldens_dir)

    def resolve(self, filename: str) -> Path:
        return self.goldens_dir / filename

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read(self, path: Path) -> Image.Image:
        return load_image(path)

    def write(self, path: Path, image: Image.Image) -> None:
        """Encode ``image`` as PNG and overwrite ``path``."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encode_png(image))
        logger.info("Updating screenshot golden: %s", path)
