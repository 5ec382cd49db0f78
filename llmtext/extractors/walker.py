"""Shared machinery for the Markdown and plain-text tree walkers.

A :class:`WalkContext` is built once per extraction and threaded through every
handler; nothing here is stored at module level.  Each tag handler returns the
text for its own subtree.  A handler that cannot produce output raises
:class:`SkipNode`; the walker records the reason on the context and carries on
with the node's siblings.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from bs4 import Tag

from llmtext.extractors.classify import NodeKind, class_tokens, classify
from llmtext.extractors.urlnorm import resolve_url
from llmtext.items import SkipRecord
from llmtext.settings import BLOCK_BOUNDARY_TAGS, MAX_DEPTH

if TYPE_CHECKING:
    from bs4.element import PageElement

    from llmtext.items import ExtractionConfig

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_LANG_PREFIXES: tuple[str, ...] = ("language-", "lang-")


# ---------------------------------------------------------------------------
# Per-call state
# ---------------------------------------------------------------------------

@dataclass
class WalkContext:
    """Everything a walker needs for one extraction call."""

    base_url: str
    config: ExtractionConfig
    max_depth: int = MAX_DEPTH
    skipped: list[SkipRecord] = field(default_factory=list)
    # Both formatters walk the same tree; each node/reason is recorded once
    _seen: set[tuple[int, str]] = field(default_factory=set, repr=False)

    def record_skip(self, node: Tag, reason: str) -> None:
        key = (id(node), reason)
        if key in self._seen:
            return
        self._seen.add(key)
        tag = node.name or "?"
        logger.debug("Skipping <%s>: %s", tag, reason)
        self.skipped.append(SkipRecord(tag=tag, reason=reason))


class SkipNode(Exception):
    """Raised by a tag handler when its node must contribute nothing."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space and strip."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def choose_fence(payload: str, minimum: int) -> str:
    """Return the shortest backtick run of at least *minimum* absent from *payload*."""
    length = minimum
    while "`" * length in payload:
        length += 1
    return "`" * length


def find_language(tag: Tag | None) -> str:
    """Return the language named by a ``language-*`` or ``lang-*`` class token."""
    if tag is None:
        return ""
    for token in class_tokens(tag):
        for prefix in _LANG_PREFIXES:
            if token.startswith(prefix) and len(token) > len(prefix):
                return token[len(prefix):]
    return ""


def code_text(root: Tag) -> str:
    """Extract the visible text below *root* for a code block.

    Noise descendants (line-number gutters) are skipped, ``<br>`` becomes a
    newline and a newline follows every block-boundary element.  Uses an
    explicit stack so arbitrarily deep highlighter markup is safe.
    """
    parts: list[str] = []
    stack: list[tuple[PageElement, bool]] = [
        (child, False) for child in reversed(list(root.children))
    ]
    while stack:
        node, closing = stack.pop()
        if closing:
            parts.append("\n")
            continue
        kind = classify(node)
        if kind is NodeKind.TEXT:
            parts.append(str(node))
            continue
        if kind in (NodeKind.IGNORED, NodeKind.NOISE) or not isinstance(node, Tag):
            continue
        name = (node.name or "").lower()
        if name == "br":
            parts.append("\n")
            continue
        if name in BLOCK_BOUNDARY_TAGS:
            stack.append((node, True))
        stack.extend((child, False) for child in reversed(list(node.children)))
    return "".join(parts).replace("\r\n", "\n")


def relative_depth(node: Tag, ancestor: Tag) -> int:
    """Return how many levels *node* sits below *ancestor* (1 for a child)."""
    depth = 1
    for parent in node.parents:
        if parent is ancestor:
            return depth
        depth += 1
    return depth


# ---------------------------------------------------------------------------
# Walker base
# ---------------------------------------------------------------------------

class TreeWalker:
    """Recursive, depth-bounded walker dispatching on tag name.

    Subclasses fill :attr:`handlers` with ``tag -> method name`` entries; each
    handler has the signature ``(self, el: Tag, depth: int) -> str``.
    """

    handlers: ClassVar[dict[str, str]] = {}

    def __init__(self, ctx: WalkContext) -> None:
        self.ctx = ctx

    def format(self, root: Tag) -> str:
        """Format the children of *root* (the root itself adds no syntax)."""
        return self.walk_children(root, 0)

    def walk(self, node: PageElement, depth: int) -> str:
        kind = classify(node)
        if kind is NodeKind.TEXT:
            return self.text(str(node))
        if kind in (NodeKind.IGNORED, NodeKind.NOISE) or not isinstance(node, Tag):
            return ""
        if depth > self.ctx.max_depth:
            self.ctx.record_skip(node, f"depth limit {self.ctx.max_depth} reached")
            return ""

        name = (node.name or "").lower()
        method = self.handlers.get(name)
        try:
            if method is not None:
                return getattr(self, method)(node, depth)
            if kind is NodeKind.VOID:
                return ""
            return self.default(node, depth)
        except SkipNode as skip:
            self.ctx.record_skip(node, skip.reason)
        except MemoryError:
            raise
        except Exception as exc:
            self.ctx.record_skip(node, f"{type(exc).__name__}: {exc}")
        return ""

    def walk_children(self, el: Tag, depth: int) -> str:
        return "".join(self.walk(child, depth + 1) for child in el.children)

    def default(self, el: Tag, depth: int) -> str:
        return self.walk_children(el, depth)

    def text(self, content: str) -> str:
        stripped = collapse_whitespace(content)
        return f"{stripped} " if stripped else ""

    def ignore(self, el: Tag, depth: int) -> str:
        return ""

    # -- shared resource handling ------------------------------------------

    def image_url(self, el: Tag) -> str | None:
        """Return the absolute URL to emit for ``<img>`` *el*, or None to drop it.

        Raises SkipNode when the image is allowed but its ``src`` cannot be
        resolved.
        """
        config = self.ctx.config
        if not config.keep_images:
            return None
        src = el.get("src")
        if not isinstance(src, str) or not src.strip():
            raise SkipNode("image without src")
        lowered = src.lower()
        if any(t in lowered for t in config.image_types_to_remove()):
            return None
        url = resolve_url(src, self.ctx.base_url)
        if url is None:
            raise SkipNode(f"unresolvable image src {src[:80]!r}")
        return url

    def link_url(self, el: Tag) -> str | None:
        """Return the absolute ``href`` of anchor *el*, or None to keep text only."""
        if not self.ctx.config.keep_webpage_links:
            return None
        href = el.get("href")
        if not isinstance(href, str):
            return None
        return resolve_url(href, self.ctx.base_url)
