"""Convert a sanitized HTML tree to readable plain text.

No Markdown syntax is emitted.  Links are rendered as ``text (url)`` and
images as ``[Image: alt - url]`` so that resource locations survive.
"""

from __future__ import annotations

from typing import ClassVar

from bs4 import Tag

from llmtext.extractors.classify import is_block_boundary
from llmtext.extractors.walker import TreeWalker, code_text, collapse_whitespace


class PlainTextFormatter(TreeWalker):
    """Tree walker emitting plain text."""

    handlers: ClassVar[dict[str, str]] = {
        "br": "line_break",
        "a": "link",
        "img": "image",
        "pre": "preformatted",
        "head": "ignore",
        "title": "ignore",
    }

    def default(self, el: Tag, depth: int) -> str:
        text = self.walk_children(el, depth)
        if is_block_boundary(el):
            return f"{text}\n"
        return text

    def line_break(self, el: Tag, depth: int) -> str:
        return "\n"

    def preformatted(self, el: Tag, depth: int) -> str:
        return code_text(el).rstrip("\n") + "\n"

    def link(self, el: Tag, depth: int) -> str:
        inner = self.walk_children(el, depth).strip()
        if not inner:
            return ""
        url = self.link_url(el)
        if url is None:
            return f"{inner} "
        return f"{inner} ({url}) "

    def image(self, el: Tag, depth: int) -> str:
        url = self.image_url(el)
        if url is None:
            return ""
        alt = collapse_whitespace(str(el.get("alt") or "")) or "image"
        return f"[Image: {alt} - {url}] "
