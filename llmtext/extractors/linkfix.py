"""Post-processing of finished Markdown to keep link spans well-formed."""

from __future__ import annotations

import re

# Accessibility skip-links carry no content.  The target is either a bare
# fragment or a fragment on the resolved page URL.
_SKIP_LINK_RE = re.compile(r"\[\s*Skip to Content\s*\]\([^)\s#]*#[^)]*\)", re.IGNORECASE)


def fix_link_spans(md: str) -> str:
    """Escape every newline that falls inside an open ``[...]`` span.

    A single left-to-right scan tracks bracket depth (never below zero);
    while inside a span each newline is written as ``\\`` + newline, a hard
    line break that does not terminate the link text.  Newlines in trailing
    whitespace are left alone so no dangling backslash survives stripping.
    """
    end = len(md.rstrip())
    depth = 0
    out: list[str] = []
    for i, ch in enumerate(md):
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth = max(0, depth - 1)

        if depth > 0 and ch == "\n" and i < end:
            out.append("\\\n")
        else:
            out.append(ch)
    return "".join(out)


def strip_skip_links(md: str) -> str:
    """Remove ``[Skip to Content](#...)`` boilerplate links."""
    return _SKIP_LINK_RE.sub("", md)


def repair_links(md: str) -> str:
    """Apply every link post-processing step in order."""
    return strip_skip_links(fix_link_spans(md))
