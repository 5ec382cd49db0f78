"""Remove disallowed and hidden elements from a parsed document in place.

The engine always hands this module a tree it parsed itself for the current
call, so in-place removal never leaks outside one extraction.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from bs4 import Tag

from llmtext.settings import ALWAYS_REMOVED_TAGS

if TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from llmtext.items import ExtractionConfig

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def removal_tags(config: ExtractionConfig) -> frozenset[str]:
    """Return the de-duplicated set of tag names to strip for *config*."""
    tags = set(ALWAYS_REMOVED_TAGS)
    if config.remove_script_tag:
        tags.add("script")
    if config.remove_style_tag:
        tags.add("style")
    tags.update(config.remove_tags)
    return frozenset(tags)


def is_hidden(tag: Tag) -> bool:
    """Return True if *tag* is hidden by inline style, class or ARIA."""
    attrs = tag.attrs
    if not attrs:
        return False

    style = attrs.get("style")
    if style:
        compact = _WHITESPACE_RE.sub("", str(style)).lower()
        if "display:none" in compact:
            return True

    classes = attrs.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    if any(str(c).lower() == "hidden" for c in classes):
        return True

    aria = attrs.get("aria-hidden")
    return isinstance(aria, str) and aria.strip().lower() == "true"


def sanitize(soup: BeautifulSoup, config: ExtractionConfig) -> BeautifulSoup:
    """Strip removal-set tags and hidden elements from *soup*; return it."""
    tags = removal_tags(config)
    removed = 0

    for el in soup.find_all(sorted(tags)):
        if isinstance(el, Tag) and not el.decomposed:
            el.decompose()
            removed += 1

    for el in list(soup.find_all(True)):
        # Skip descendants of an element already removed in this loop
        if not isinstance(el, Tag) or el.decomposed:
            continue
        if is_hidden(el):
            el.decompose()
            removed += 1

    logger.debug("Sanitizer removed %d elements (tags=%s)", removed, sorted(tags))
    return soup
