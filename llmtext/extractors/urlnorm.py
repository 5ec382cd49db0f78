"""URL resolution against a page's base URL."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)

# Schemes that are never emitted as a resource or link target
_REJECTED_SCHEMES: tuple[str, ...] = ("data:", "javascript:")

# Schemes that require a host component to be usable
_HIERARCHICAL_SCHEMES: frozenset[str] = frozenset(
    {"http", "https", "ftp", "ws", "wss"},
)

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*$")
_WHITESPACE_RE = re.compile(r"\s")


def is_data_uri(candidate: str) -> bool:
    """Return True if *candidate* is an inline ``data:`` URI."""
    return candidate.strip().lower().startswith("data:")


def is_absolute_url(url: str) -> bool:
    """Return True if *url* parses as a complete, absolute URL."""
    try:
        parsed = urlparse(url)
        scheme = parsed.scheme.lower()
        if not scheme or not _SCHEME_RE.match(scheme):
            return False
        if scheme in _HIERARCHICAL_SCHEMES:
            if not parsed.hostname:
                return False
            # Raises ValueError on a non-numeric or out-of-range port
            _ = parsed.port
        elif not (parsed.netloc or parsed.path):
            return False
    except ValueError:
        return False
    return True


def resolve_url(candidate: str | None, base_url: str = "") -> str | None:
    """Resolve *candidate* against *base_url*.

    Returns the absolute URL, or None when the candidate is empty, is a
    ``data:``/``javascript:`` URI, or does not form a valid absolute URL
    (for instance a relative path with no usable base).
    """
    if not candidate:
        return None
    candidate = candidate.strip()
    if not candidate:
        return None
    if candidate.lower().startswith(_REJECTED_SCHEMES):
        return None

    try:
        resolved = urljoin(base_url or "", candidate)
    except ValueError as exc:
        logger.debug("URL join failed for %r against %r: %s", candidate, base_url, exc)
        return None

    # Whitespace inside a URL survives urljoin but never parses as one
    resolved = _WHITESPACE_RE.sub(lambda m: "%20" if m.group() == " " else "", resolved)

    if not is_absolute_url(resolved):
        logger.debug("Dropping unresolvable URL %r (base %r)", candidate, base_url)
        return None
    return resolved


def extract_domain(url: str) -> str:
    """Return the lowercased host of *url*, or "" if it has none."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""
