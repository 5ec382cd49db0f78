"""Whitespace normalization and truncation of the final outputs.

Both pipelines are idempotent: feeding a normalized string back in returns it
unchanged.
"""

from __future__ import annotations

import re

_LINE_ENDING_RE = re.compile(r"\r\n?")
# Three or more newlines, counting lines that hold only spaces/tabs as blank
_BLANK_RUN_RE = re.compile(r"\n(?:[ \t]*\n){2,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
# Leading indentation is significant (nested lists), so only inner runs collapse
_INNER_SPACES_RE = re.compile(r"(?<=\S)[ \t]{2,}")
_FENCE_OPEN_RE = re.compile(r"^[ \t]*(`{3,})[^`]*$")


def _closes_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= len(fence) and stripped == "`" * len(stripped)


def _collapse_spaces(text: str, *, respect_fences: bool) -> str:
    if not respect_fences:
        return _INNER_SPACES_RE.sub(" ", text)

    out: list[str] = []
    fence: str | None = None
    for line in text.split("\n"):
        if fence is not None:
            out.append(line)
            if _closes_fence(line, fence):
                fence = None
            continue
        m = _FENCE_OPEN_RE.match(line)
        if m:
            fence = m.group(1)
            out.append(line)
        else:
            out.append(_INNER_SPACES_RE.sub(" ", line))
    return "\n".join(out)


def _normalize(text: str, max_length: int, blank_run: str, *, respect_fences: bool) -> str:
    if not text:
        return ""
    text = _LINE_ENDING_RE.sub("\n", text)
    text = _BLANK_RUN_RE.sub(blank_run, text)
    text = _TRAILING_WHITESPACE_RE.sub("", text)
    text = _collapse_spaces(text, respect_fences=respect_fences)
    text = text[:max_length]
    return text.strip()


def normalize_markdown(md: str, max_length: int) -> str:
    """Normalize Markdown; code-fence contents keep their inner spacing."""
    return _normalize(md, max_length, "\n\n", respect_fences=True)


def normalize_text(text: str, max_length: int, *, preserve_line_breaks: bool = False) -> str:
    """Normalize plain text.

    Blank-line runs collapse to a single newline, or to one blank line when
    *preserve_line_breaks* is set.
    """
    blank_run = "\n\n" if preserve_line_breaks else "\n"
    return _normalize(text, max_length, blank_run, respect_fences=False)
