"""Parse bot content into a flat, ordered list of reveal nodes.

Bot messages may carry a small amount of inline markup (``<strong>``,
``<em>``, ``<small>``, lists, paragraphs). Instead of walking a live tree
while animating, the content is parsed once into a tiny element tree, the
whitespace policy is applied per sibling list, and the result is flattened
into :class:`MarkupNode` records. The presentation queue then reveals the
flat list in order.

Whitespace policy:

* inside a text run, every run of whitespace becomes a single space;
* a whitespace-only run is dropped, unless both of its nearest meaningful
  siblings are inline (text or an inline element), in which case it becomes
  exactly one space so adjacent inline content does not merge.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from html.parser import HTMLParser
from typing import List, Optional, Sequence, Union

BLOCK_ELEMENTS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "br",
        "div",
        "dl",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "table",
        "ul",
    }
)

VOID_ELEMENTS = frozenset({"br", "hr", "img", "wbr"})

LINE_BREAK_MARKUP = "<br />"

_WHITESPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"</?[A-Za-z][^>]*>")

Content = Union[str, Sequence[str]]


class ContentKind(str, Enum):
    """Whether content needs markup parsing."""

    PLAIN = "plain"
    MARKUP = "markup"


class NodeKind(str, Enum):
    """Closed set of reveal node kinds."""

    TEXT = "text"
    OPEN = "open"
    CLOSE = "close"
    BREAK = "break"


@dataclass(frozen=True, slots=True)
class MarkupNode:
    """One entry of the flattened reveal list."""

    kind: NodeKind
    tag: str = ""
    text: str = ""
    block: bool = False
    depth: int = 0


@dataclass(slots=True)
class _Element:
    tag: str
    children: List["_Child"] = field(default_factory=list)


_Child = Union[_Element, str]


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = _Element(tag="")
        self._stack: List[_Element] = [self.root]

    def handle_starttag(self, tag: str, attrs: list) -> None:
        element = _Element(tag=tag.lower())
        self._stack[-1].children.append(element)
        if element.tag not in VOID_ELEMENTS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list) -> None:
        self._stack[-1].children.append(_Element(tag=tag.lower()))

    def handle_endtag(self, tag: str) -> None:
        name = tag.lower()
        if name in VOID_ELEMENTS:
            return
        # Close up to the matching element, tolerating unclosed children.
        for index in range(len(self._stack) - 1, 0, -1):
            if self._stack[index].tag == name:
                del self._stack[index:]
                return

    def handle_data(self, data: str) -> None:
        siblings = self._stack[-1].children
        if siblings and isinstance(siblings[-1], str):
            siblings[-1] += data
        else:
            siblings.append(data)


def detect_kind(content: Content) -> ContentKind:
    """Classify content so plain strings skip the markup parser."""
    if not isinstance(content, str):
        return ContentKind.MARKUP
    if _TAG_RE.search(content):
        return ContentKind.MARKUP
    return ContentKind.PLAIN


def join_content(content: Content) -> str:
    """Join list content with line breaks and trim the result."""
    if isinstance(content, str):
        return content.strip()
    return LINE_BREAK_MARKUP.join(content).strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text)


def is_block(tag: str) -> bool:
    return tag in BLOCK_ELEMENTS


def _is_inline(child: _Child) -> bool:
    if isinstance(child, str):
        return True
    return not is_block(child.tag)


def _is_meaningful(child: _Child) -> bool:
    if isinstance(child, str):
        return bool(child.strip())
    return True


def _meaningful_sibling(
    children: Sequence[_Child], index: int, step: int
) -> Optional[_Child]:
    cursor = index + step
    while 0 <= cursor < len(children):
        if _is_meaningful(children[cursor]):
            return children[cursor]
        cursor += step
    return None


def _normalize_children(children: Sequence[_Child]) -> List[_Child]:
    normalized: List[_Child] = []
    for index, child in enumerate(children):
        if isinstance(child, _Element):
            normalized.append(child)
            continue
        if child.strip():
            normalized.append(collapse_whitespace(child))
            continue
        previous = _meaningful_sibling(children, index, -1)
        following = _meaningful_sibling(children, index, 1)
        if previous is None or following is None:
            continue
        if _is_inline(previous) and _is_inline(following):
            normalized.append(" ")
    return normalized


def _flatten(children: Sequence[_Child], depth: int, out: List[MarkupNode]) -> None:
    for child in _normalize_children(children):
        if isinstance(child, str):
            out.append(MarkupNode(kind=NodeKind.TEXT, text=child, depth=depth))
            continue
        if child.tag == "br":
            out.append(
                MarkupNode(kind=NodeKind.BREAK, tag="br", block=True, depth=depth)
            )
            continue
        block = is_block(child.tag)
        out.append(
            MarkupNode(kind=NodeKind.OPEN, tag=child.tag, block=block, depth=depth)
        )
        _flatten(child.children, depth + 1, out)
        out.append(
            MarkupNode(kind=NodeKind.CLOSE, tag=child.tag, block=block, depth=depth)
        )


def parse_markup(markup: str) -> List[MarkupNode]:
    """Parse a markup string into the flat reveal list."""
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    nodes: List[MarkupNode] = []
    _flatten(builder.root.children, 0, nodes)
    return nodes


def build_nodes(content: Content) -> List[MarkupNode]:
    """Turn bot content (string or list of lines) into reveal nodes."""
    if detect_kind(content) is ContentKind.PLAIN:
        text = collapse_whitespace(join_content(content))
        if not text:
            return []
        return [MarkupNode(kind=NodeKind.TEXT, text=text)]
    return parse_markup(join_content(content))


def plain_text(nodes: Sequence[MarkupNode]) -> str:
    """Concatenate the text of ``nodes``, rendering breaks as newlines."""
    parts: List[str] = []
    for node in nodes:
        if node.kind is NodeKind.TEXT:
            parts.append(node.text)
        elif node.kind is NodeKind.BREAK:
            parts.append("\n")
    return "".join(parts)
