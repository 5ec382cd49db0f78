"""Extraction sub-package: deterministic HTML to Markdown / text conversion."""

from .linkfix import fix_link_spans, repair_links, strip_skip_links
from .markdown import MarkdownFormatter
from .metadata import extract_metadata
from .normalize import normalize_markdown, normalize_text
from .plaintext import PlainTextFormatter
from .sanitize import sanitize
from .urlnorm import resolve_url
from .walker import WalkContext

__all__ = [
    "MarkdownFormatter",
    "PlainTextFormatter",
    "WalkContext",
    "extract_metadata",
    "fix_link_spans",
    "normalize_markdown",
    "normalize_text",
    "repair_links",
    "resolve_url",
    "sanitize",
    "strip_skip_links",
]
