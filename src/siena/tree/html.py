"""Convert between rendered HTML and document tree nodes (BeautifulSoup)."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import Comment as SoupComment
from bs4.element import Doctype as SoupDoctype
from bs4.element import NavigableString, PageElement, PreformattedString
from bs4.formatter import HTMLFormatter

from siena.tree.nodes import (
    Comment,
    Doctype,
    Element,
    ImgElement,
    Node,
    PictureElement,
    Raw,
    Root,
    SourceElement,
    Text,
)
from siena.types import Loading

MARKER_ATTRIBUTE = "data-siena"


class _InsertionOrderFormatter(HTMLFormatter):
    """Writes attributes in the order they were set (the base class sorts them)."""

    def attributes(self, tag):
        for key, value in tag.attrs.items():
            if value == "" and self.empty_attributes_are_booleans:
                yield key, None
            else:
                yield key, value


# Escape only &, < and >; no self-closing slash; bare boolean attributes
_FORMATTER = _InsertionOrderFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
    empty_attributes_are_booleans=True,
)


def parse_html(html: str) -> Root:
    """Parse an HTML document or fragment into a :class:`Root`."""
    soup = BeautifulSoup(html, "html.parser", multi_valued_attributes=None)
    return Root(children=[_from_soup(item) for item in soup.contents])


def render_html(root: Root) -> str:
    """Serialise a tree back to HTML."""
    soup = BeautifulSoup("", "html.parser")
    for child in root.children:
        soup.append(_to_soup(soup, child))
    return soup.decode(formatter=_FORMATTER)


# ── HTML → nodes ──


def _from_soup(item: PageElement) -> Node:
    if isinstance(item, SoupDoctype):
        return Doctype(value=str(item))
    if isinstance(item, SoupComment):
        return Comment(value=str(item))
    # Processing instructions, CDATA and the like keep their delimiters verbatim
    if isinstance(item, PreformattedString):
        return Raw(value=item.output_ready())
    if isinstance(item, NavigableString):
        return Text(value=str(item))
    if isinstance(item, Tag):
        if item.name == "img":
            return _img_from_attrs(dict(item.attrs))
        return Element(
            tag_name=item.name,
            properties={k: str(v) for k, v in item.attrs.items()},
            children=[_from_soup(child) for child in item.contents],
        )
    return Text(value=str(item))


def _img_from_attrs(attrs: dict[str, str]) -> ImgElement:
    img = ImgElement(
        src=attrs.pop("src", None),
        alt=attrs.pop("alt", None),
        processed=attrs.pop(MARKER_ATTRIBUTE, None) is not None,
    )
    for name in ("width", "height"):
        value = attrs.get(name, "")
        if value.isdigit():
            setattr(img, name, int(attrs.pop(name)))
    loading = attrs.get("loading")
    if loading in {item.value for item in Loading}:
        img.loading = Loading(attrs.pop("loading"))
    img.extra = attrs
    return img


# ── nodes → HTML ──


def _to_soup(soup: BeautifulSoup, node: Node) -> PageElement:
    if isinstance(node, Text):
        return NavigableString(node.value)
    if isinstance(node, Comment):
        return SoupComment(node.value)
    if isinstance(node, Doctype):
        return SoupDoctype(node.value)
    if isinstance(node, Raw):
        return PreformattedString(node.value)
    if isinstance(node, ImgElement):
        return soup.new_tag("img", attrs=_img_attrs(node))
    if isinstance(node, SourceElement):
        return soup.new_tag("source", attrs={"srcset": node.srcset})
    if isinstance(node, PictureElement):
        tag = soup.new_tag("picture")
    else:
        tag = soup.new_tag(node.tag_name, attrs=dict(node.properties))
    for child in node.children:
        tag.append(_to_soup(soup, child))
    return tag


def _img_attrs(img: ImgElement) -> dict[str, str]:
    attrs: dict[str, str] = {}
    if img.processed:
        attrs[MARKER_ATTRIBUTE] = ""
    if img.src is not None:
        attrs["src"] = img.src
    if img.width is not None:
        attrs["width"] = str(img.width)
    if img.height is not None:
        attrs["height"] = str(img.height)
    if img.loading is not None:
        attrs["loading"] = img.loading.value
    if img.alt is not None:
        attrs["alt"] = img.alt
    attrs.update(img.extra)
    return attrs
