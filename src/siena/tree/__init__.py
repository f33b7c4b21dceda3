"""Document tree — typed nodes, HTML adapter, and the image-rewriting walker."""

from siena.tree.html import parse_html, render_html
from siena.tree.nodes import (
    Comment,
    Doctype,
    Element,
    ImgElement,
    PictureElement,
    Raw,
    Root,
    SourceElement,
    Text,
)
from siena.tree.walker import TreeWalker

__all__ = [
    "Comment",
    "Doctype",
    "Element",
    "ImgElement",
    "PictureElement",
    "Raw",
    "Root",
    "SourceElement",
    "Text",
    "TreeWalker",
    "parse_html",
    "render_html",
]
