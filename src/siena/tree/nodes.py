"""Document tree node models.

A rendered markdown document is a tree of typed nodes. The elements this
package reads or produces (``img``, ``picture``, ``source``) get their own
closed schemas; everything else is a generic :class:`Element`.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from siena.types import Loading


class Text(BaseModel):
    kind: Literal["text"] = "text"
    value: str


class Comment(BaseModel):
    kind: Literal["comment"] = "comment"
    value: str


class Doctype(BaseModel):
    kind: Literal["doctype"] = "doctype"
    value: str = "html"


class Raw(BaseModel):
    """Markup written back exactly as parsed, e.g. a processing instruction or CDATA section."""

    kind: Literal["raw"] = "raw"
    value: str


class ImgElement(BaseModel):
    """An ``<img>``.

    ``processed`` is the idempotence marker: an image produced by the
    pipeline carries it and is never rewritten again. ``extra`` keeps any
    other attributes of an image the pipeline left alone.
    """

    kind: Literal["img"] = "img"
    src: str | None = None
    alt: str | None = None
    width: int | None = None
    height: int | None = None
    loading: Loading | None = None
    processed: bool = False
    extra: dict[str, str] = Field(default_factory=dict)

    @property
    def tag_name(self) -> str:
        return "img"


class SourceElement(BaseModel):
    kind: Literal["source"] = "source"
    srcset: str

    @property
    def tag_name(self) -> str:
        return "source"


class PictureElement(BaseModel):
    """A ``<picture>``: one canonical image followed by alternate-format sources."""

    kind: Literal["picture"] = "picture"
    img: ImgElement
    sources: list[SourceElement] = Field(default_factory=list)

    @property
    def tag_name(self) -> str:
        return "picture"

    @property
    def children(self) -> list[ImgElement | SourceElement]:
        return [self.img, *self.sources]


class Element(BaseModel):
    """Any other element; attributes are kept as an ordered string map."""

    kind: Literal["element"] = "element"
    tag_name: str
    properties: dict[str, str] = Field(default_factory=dict)
    children: list[Node] = Field(default_factory=list)


class Root(BaseModel):
    kind: Literal["root"] = "root"
    children: list[Node] = Field(default_factory=list)


Node = Annotated[
    Union[Element, ImgElement, PictureElement, SourceElement, Text, Comment, Doctype, Raw],
    Field(discriminator="kind"),
]

Element.model_rebuild()
Root.model_rebuild()


def iter_nodes(node: Root | Node) -> Iterator[Root | Node]:
    """Depth-first pre-order traversal, including picture children."""
    yield node
    for child in getattr(node, "children", ()):
        yield from iter_nodes(child)


def find_images(node: Root | Node) -> list[ImgElement]:
    return [n for n in iter_nodes(node) if isinstance(n, ImgElement)]


def find_pictures(node: Root | Node) -> list[PictureElement]:
    return [n for n in iter_nodes(node) if isinstance(n, PictureElement)]
