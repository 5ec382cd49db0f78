"""Convert a sanitized HTML tree to Markdown.

Headings use ATX style, lists use ``-`` bullets and ``1.`` numbering, code
blocks are fenced with a backtick run that never occurs in the code itself,
and tables are emitted as GitHub-flavoured pipe tables with colspans
expanded into empty cells.
"""

from __future__ import annotations

import logging
import re
from typing import ClassVar

from bs4 import Tag

from llmtext.extractors.walker import (
    TreeWalker,
    choose_fence,
    code_text,
    collapse_whitespace,
    find_language,
    relative_depth,
)
from llmtext.settings import CONTAINER_TAGS, MAX_COLSPAN

logger = logging.getLogger(__name__)

_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")
_URL_ESCAPES: dict[str, str] = {"(": "%28", ")": "%29", " ": "%20"}


def _escape_url(url: str) -> str:
    return "".join(_URL_ESCAPES.get(ch, ch) for ch in url)


def _escape_cell(text: str) -> str:
    return collapse_whitespace(text).replace("|", "\\|")


def _colspan(cell: Tag) -> int:
    raw = cell.get("colspan")
    try:
        span = int(str(raw).strip()) if raw is not None else 1
    except ValueError:
        logger.debug("Ignoring malformed colspan %r", raw)
        return 1
    return max(1, min(span, MAX_COLSPAN))


def _table_row(cells: list[str]) -> str:
    return "|" + "|".join(f" {c} " if c else " " for c in cells) + "|"


def _indent_item(marker: str, text: str) -> str:
    pad = " " * len(marker)
    lines = text.split("\n")
    rest = [f"{pad}{line}" if line.strip() else "" for line in lines[1:]]
    return "\n".join([f"{marker}{lines[0]}", *rest])


class MarkdownFormatter(TreeWalker):
    """Tree walker emitting Markdown syntax."""

    handlers: ClassVar[dict[str, str]] = {
        **{f"h{level}": "heading" for level in range(1, 7)},
        **{name: "container" for name in CONTAINER_TAGS},
        "p": "paragraph",
        "br": "line_break",
        "hr": "rule",
        "strong": "strong",
        "b": "strong",
        "em": "emphasis",
        "i": "emphasis",
        "code": "inline_code",
        "pre": "code_block",
        "blockquote": "blockquote",
        "ul": "bullet_list",
        "ol": "ordered_list",
        "li": "list_item",
        "a": "link",
        "img": "image",
        "table": "table",
        "head": "ignore",
        "title": "ignore",
    }

    # -- block elements -----------------------------------------------------

    def heading(self, el: Tag, depth: int) -> str:
        text = collapse_whitespace(self.walk_children(el, depth))
        if not text:
            return ""
        level = int(el.name[1])
        return f"\n{'#' * level} {text}\n\n"

    def paragraph(self, el: Tag, depth: int) -> str:
        text = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", self.walk_children(el, depth).strip())
        return f"\n\n{text}\n\n" if text else ""

    def container(self, el: Tag, depth: int) -> str:
        text = self.walk_children(el, depth).strip()
        return f"\n\n{text}\n\n" if text else ""

    def line_break(self, el: Tag, depth: int) -> str:
        return "\n"

    def rule(self, el: Tag, depth: int) -> str:
        return "\n---\n\n"

    def blockquote(self, el: Tag, depth: int) -> str:
        text = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", self.walk_children(el, depth).strip())
        if not text:
            return ""
        quoted = "\n".join(f"> {line}".rstrip() for line in text.split("\n"))
        return f"\n\n{quoted}\n\n"

    # -- lists --------------------------------------------------------------

    def bullet_list(self, el: Tag, depth: int) -> str:
        return self._list(el, depth, ordered=False)

    def ordered_list(self, el: Tag, depth: int) -> str:
        return self._list(el, depth, ordered=True)

    def list_item(self, el: Tag, depth: int) -> str:
        text = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", self.walk_children(el, depth).strip())
        return f"{text}\n" if text else ""

    def _list(self, el: Tag, depth: int, *, ordered: bool) -> str:
        items: list[str] = []
        for child in el.children:
            if not isinstance(child, Tag) or child.name != "li":
                continue
            text = self.walk(child, depth + 1).strip()
            if text:
                items.append(text)
        if not items:
            return ""
        lines = [
            _indent_item(f"{n}. " if ordered else "- ", text)
            for n, text in enumerate(items, start=1)
        ]
        return "\n\n" + "\n".join(lines) + "\n\n"

    # -- inline elements ----------------------------------------------------

    def strong(self, el: Tag, depth: int) -> str:
        inner = self.walk_children(el, depth).strip()
        return f"**{inner}** " if inner else ""

    def emphasis(self, el: Tag, depth: int) -> str:
        inner = self.walk_children(el, depth).strip()
        return f"*{inner}* " if inner else ""

    def inline_code(self, el: Tag, depth: int) -> str:
        payload = code_text(el).replace("\n", " ").strip()
        if not payload:
            return ""
        fence = choose_fence(payload, 1)
        if payload.startswith("`") or payload.endswith("`"):
            payload = f" {payload} "
        return f"{fence}{payload}{fence} "

    def code_block(self, el: Tag, depth: int) -> str:
        code = code_text(el).rstrip("\n")
        if not code.strip():
            return ""
        language = find_language(el.find("code")) or find_language(el)
        fence = choose_fence(code, 3)
        return f"\n\n{fence}{language}\n{code}\n{fence}\n\n"

    def link(self, el: Tag, depth: int) -> str:
        inner = self.walk_children(el, depth).strip()
        if not inner:
            return ""
        url = self.link_url(el)
        if url is None:
            return f"{inner} "
        return f"[{inner}]({_escape_url(url)}) "

    def image(self, el: Tag, depth: int) -> str:
        url = self.image_url(el)
        if url is None:
            return ""
        alt = el.get("alt") or el.get("title") or ""
        alt = collapse_whitespace(str(alt)).replace("[", "").replace("]", "")
        return f"![{alt}]({_escape_url(url)}) "

    # -- tables -------------------------------------------------------------

    def table(self, el: Tag, depth: int) -> str:
        rows: list[list[str]] = []
        for tr in el.find_all("tr"):
            if tr.find_parent("table") is not el:
                continue
            cells: list[str] = []
            for cell in tr.find_all(["th", "td"], recursive=False):
                cells.append(self._cell_text(cell, el, depth))
                cells.extend([""] * (_colspan(cell) - 1))
            if cells:
                rows.append(cells)
        if not rows:
            return ""

        # Every row, header included, is padded to the widest row
        width = max(len(row) for row in rows)
        padded = [row + [""] * (width - len(row)) for row in rows]
        lines = [_table_row(padded[0]), "|" + "|".join(["---"] * width) + "|"]
        lines.extend(_table_row(row) for row in padded[1:])
        return "\n\n" + "\n".join(lines) + "\n\n"

    def _cell_text(self, cell: Tag, table: Tag, depth: int) -> str:
        cell_depth = depth + relative_depth(cell, table)
        if cell_depth > self.ctx.max_depth:
            self.ctx.record_skip(cell, f"depth limit {self.ctx.max_depth} reached")
            return ""
        return _escape_cell(self.walk_children(cell, cell_depth))
