"""Node classification for the tree walkers."""

from __future__ import annotations

import enum

from bs4 import Tag
from bs4.element import NavigableString, PreformattedString

from llmtext.settings import BLOCK_BOUNDARY_TAGS, CONTAINER_TAGS

_NOISE_CLASS_MARKERS: tuple[str, ...] = ("gutter", "line-numbers")

# A noise class on these marks a highlighter plugin, not a gutter
_PAYLOAD_TAGS: frozenset[str] = frozenset({"html", "body", "pre", "code"})

# Elements that never have children
VOID_TAGS: frozenset[str] = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "param", "source", "track", "wbr",
    },
)

# Layout elements rendered as their own block (boundary list plus containers)
BLOCK_TAGS: frozenset[str] = BLOCK_BOUNDARY_TAGS | CONTAINER_TAGS | frozenset(
    {"ul", "ol", "dl", "dt", "dd", "hr", "th", "td", "caption", "form", "fieldset"},
)


class NodeKind(enum.Enum):
    TEXT = "text"
    BLOCK = "block"
    INLINE = "inline"
    VOID = "void"
    NOISE = "noise"
    IGNORED = "ignored"  # comments, doctypes, CDATA, processing instructions


def class_tokens(tag: Tag) -> list[str]:
    """Return the class tokens of *tag* as lowercase strings."""
    raw = tag.get("class") or []
    if isinstance(raw, str):
        raw = raw.split()
    return [str(c).lower() for c in raw]


def is_noise(tag: Tag) -> bool:
    """Return True for syntax-highlighter gutters and line-number wrappers."""
    joined = " ".join(class_tokens(tag))
    return any(marker in joined for marker in _NOISE_CLASS_MARKERS)


def classify(node: object) -> NodeKind:
    """Categorise *node* for the walkers."""
    if isinstance(node, PreformattedString):
        return NodeKind.IGNORED
    if isinstance(node, NavigableString):
        return NodeKind.TEXT
    if not isinstance(node, Tag):
        return NodeKind.IGNORED

    name = (node.name or "").lower()
    # Gutters only count as noise inside code; elsewhere the class is layout
    if (
        name not in _PAYLOAD_TAGS
        and is_noise(node)
        and node.find_parent(["pre", "code"]) is not None
    ):
        return NodeKind.NOISE
    if name in VOID_TAGS:
        return NodeKind.VOID
    if name in BLOCK_TAGS:
        return NodeKind.BLOCK
    return NodeKind.INLINE


def is_block_boundary(tag: Tag) -> bool:
    """Return True if a newline follows *tag* in extracted text."""
    return (tag.name or "").lower() in BLOCK_BOUNDARY_TAGS
