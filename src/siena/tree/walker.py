"""Recursive, concurrent rewrite of ``img`` elements into ``picture`` elements."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from siena.cache.keys import hash_from_filename, hash_image
from siena.tree.nodes import Element, ImgElement, PictureElement, Root, SourceElement
from siena.types import (
    CANONICAL_FORMAT,
    DocumentContext,
    ImageFormat,
    ImageReference,
    Loading,
    RawImage,
)

if TYPE_CHECKING:
    from siena.images.resolver import ImageResolver
    from siena.images.variants import VariantGenerator
    from siena.tree.nodes import Node

logger = logging.getLogger(__name__)


class TreeWalker:
    """Visits a document tree and replaces eligible images with pictures.

    Sibling subtrees are walked concurrently; each node is only ever
    replaced by the branch that owns its parent slot.
    """

    def __init__(
        self,
        resolver: ImageResolver,
        generator: VariantGenerator,
        cache_dir_name: str = ".siena",
        loading: Loading = Loading.LAZY,
        formats: Sequence[ImageFormat] = (ImageFormat.WEBP, ImageFormat.AVIF),
    ) -> None:
        self._resolver = resolver
        self._generator = generator
        self._cache_dir_name = cache_dir_name.strip("/")
        self._loading = loading
        self._formats = [f for f in formats if f != CANONICAL_FORMAT]

    async def walk(self, node: Root | Node, context: DocumentContext) -> Root | Node:
        """Walk ``node`` and return it, or its replacement if it was an eligible image."""
        if isinstance(node, ImgElement):
            if node.processed:
                self._keep_referenced(node, context)
                return node
            picture = await self.transform_image(node, context)
            return picture if picture is not None else node

        if isinstance(node, PictureElement):
            self._keep_referenced(node.img, context)
            return node

        if isinstance(node, (Root, Element)) and node.children:
            results = await asyncio.gather(
                *(self.walk(child, context) for child in node.children)
            )
            node.children = list(results)
        return node

    async def transform_image(
        self,
        img: ImgElement,
        context: DocumentContext,
    ) -> PictureElement | None:
        """Build the picture for ``img``, or return None to leave it untouched."""
        reference = _reference_for(img, context)
        if reference is None:
            return None

        data = await self._resolver.resolve(
            reference.src, reference.document_path, context.build_root
        )
        if data is None:
            return None

        size = self._generator.codec.probe(data)
        if size is None:
            logger.debug("Leaving %s untouched: not a decodable image", reference.src)
            return None
        image = RawImage(data=data, width=size[0], height=size[1])

        image_hash = hash_image(data)
        variants = await self._generator.generate_set(image, image_hash, self._formats)
        canonical, extra = variants[0], variants[1:]
        context.referenced.add(image_hash)

        return PictureElement(
            img=ImgElement(
                processed=True,
                src=self._public_url(canonical.file_name),
                width=canonical.width,
                height=canonical.height,
                loading=self._loading,
                alt=reference.alt,
            ),
            sources=[
                SourceElement(srcset=self._public_url(variant.file_name)) for variant in extra
            ],
        )

    def _public_url(self, file_name: str) -> str:
        return f"/{self._cache_dir_name}/{file_name}"

    def _keep_referenced(self, img: ImgElement, context: DocumentContext) -> None:
        """Count the variants a processed image already points at as in use."""
        prefix = self._public_url("")
        if img.src and img.src.startswith(prefix):
            image_hash = hash_from_filename(img.src[len(prefix):])
            if image_hash:
                context.referenced.add(image_hash)


def _reference_for(img: ImgElement, context: DocumentContext) -> ImageReference | None:
    if img.processed or not img.src:
        return None
    if context.document_path is None:
        return None
    return ImageReference(src=img.src, alt=img.alt, document_path=context.document_path)
