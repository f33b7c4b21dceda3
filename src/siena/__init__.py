"""siena — responsive, cached ``<picture>`` markup for rendered markdown.

Rewrites ``<img>`` elements of a rendered document tree into ``<picture>``
elements with jpg, webp and avif variants. Variants live in a
content-addressed cache directory so identical images are encoded once per
build, and stale variants are garbage-collected after each session.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("siena")
except PackageNotFoundError:
    __version__ = "0.0.0"  # fallback for uninstalled dev usage

from siena.config.schema import SienaConfig
from siena.core import Siena, build
from siena.types import GcScope, ImageFormat, Loading

__all__ = [
    "GcScope",
    "ImageFormat",
    "Loading",
    "Siena",
    "SienaConfig",
    "build",
]
