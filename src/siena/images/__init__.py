"""Image resolution, codec primitives, and variant generation."""

from siena.images.codec import ImageCodec, PillowCodec
from siena.images.resolver import ImageResolver
from siena.images.variants import VariantGenerator

__all__ = ["ImageCodec", "ImageResolver", "PillowCodec", "VariantGenerator"]
