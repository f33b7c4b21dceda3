"""Image decode/resize/encode primitives backed by Pillow."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from PIL import Image, UnidentifiedImageError

from siena.types import ImageFormat

logger = logging.getLogger(__name__)

_PIL_FORMATS = {
    ImageFormat.JPG: "JPEG",
    ImageFormat.WEBP: "WEBP",
    ImageFormat.AVIF: "AVIF",
}

DEFAULT_QUALITY: dict[ImageFormat, int] = {
    ImageFormat.JPG: 80,
    ImageFormat.WEBP: 80,
    ImageFormat.AVIF: 50,
}

# Modes each encoder accepts without conversion
_JPEG_MODES = {"RGB", "L", "CMYK"}
_ALPHA_MODES = {"RGB", "RGBA", "L"}


@runtime_checkable
class ImageCodec(Protocol):
    """The two operations the pipeline needs from an image library."""

    def probe(self, data: bytes) -> tuple[int, int] | None:
        """Return ``(width, height)`` or None if the bytes are not a usable image."""
        ...

    def encode(
        self,
        data: bytes,
        width: int,
        image_format: ImageFormat,
        destination: Path,
    ) -> tuple[int, int]:
        """Resize ``data`` to ``width`` and write it to ``destination``; return the size."""
        ...


class PillowCodec:
    """Pillow implementation of :class:`ImageCodec`."""

    def __init__(self, quality: dict[ImageFormat, int] | None = None) -> None:
        self._quality = {**DEFAULT_QUALITY, **(quality or {})}

    def probe(self, data: bytes) -> tuple[int, int] | None:
        # Image.open only parses the header; pixels are decoded on load()
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.debug("Probe failed: %s", e)
            return None
        if width <= 0 or height <= 0:
            return None
        return width, height

    def encode(
        self,
        data: bytes,
        width: int,
        image_format: ImageFormat,
        destination: Path,
    ) -> tuple[int, int]:
        with Image.open(io.BytesIO(data)) as img:
            height = max(1, round(img.height * width / img.width))
            if (width, height) == img.size:
                resized = img.copy()
            else:
                resized = img.resize((width, height), Image.Resampling.LANCZOS)

        resized = _convert_mode(resized, image_format)
        resized.save(
            destination,
            format=_PIL_FORMATS[image_format],
            quality=self._quality[image_format],
        )
        return resized.size


def _convert_mode(img: Image.Image, image_format: ImageFormat) -> Image.Image:
    if image_format == ImageFormat.JPG:
        if img.mode in _JPEG_MODES:
            return img
        return img.convert("RGB")
    if img.mode in _ALPHA_MODES:
        return img
    has_alpha = "A" in img.mode or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")
