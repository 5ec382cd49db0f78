"""Deterministic metadata extraction from a sanitized HTML tree.

Priority chains (highest → lowest):
    title        <title> → og:title → first <h1> → "Untitled"
    description  <meta name=description> → og:description → ""
    language     <html lang> → "en"

Link and image counts describe the source tree, not the rendered output:
an image dropped by the SVG filter is still counted.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import dateparser
from bs4 import BeautifulSoup, Tag

from llmtext.extractors.urlnorm import extract_domain, resolve_url
from llmtext.settings import DEFAULT_LANGUAGE, DEFAULT_TITLE, PARSER

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")


def _safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def _text(tag: Tag | None) -> str:
    if tag is None or not isinstance(tag, Tag):
        return ""
    return _WHITESPACE_RE.sub(" ", tag.get_text()).strip()


def _parse_date(raw: str | None) -> str | None:
    """Parse a date string to ISO 8601.

    Returns None on failure or when the year falls outside 1990-2099
    (catches epoch defaults like 1970-01-01 and far-future typos).
    """
    if not raw:
        return None
    raw = _WHITESPACE_RE.sub(" ", raw.strip())
    try:
        parsed = dateparser.parse(
            raw,
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
            },
        )
        if parsed:
            if not (1990 <= parsed.year <= 2099):
                return None
            return parsed.isoformat()
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", raw, exc)
    return None


def _first(*values: Any) -> Any:
    """Return the first non-empty, non-None value."""
    for v in values:
        if v:
            return v
    return None


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and isinstance(tag, Tag):
        return _safe_str(tag.get("content"), "").strip()
    return ""


# ---------------------------------------------------------------------------
# Open Graph
# ---------------------------------------------------------------------------

def _extract_og(soup: BeautifulSoup) -> dict[str, str]:
    og: dict[str, str] = {}
    for tag in soup.find_all("meta"):
        if not isinstance(tag, Tag):
            continue
        prop = _safe_str(tag.get("property") or tag.get("name"), "").lower()
        content = _safe_str(tag.get("content"), "").strip()
        if content and prop.startswith(("og:", "article:")) and prop not in og:
            og[prop] = content
    return og


# ---------------------------------------------------------------------------
# Canonical URL
# ---------------------------------------------------------------------------

def _extract_canonical(soup: BeautifulSoup, og: dict[str, str], page_url: str) -> str | None:
    # rel is a multi-valued attribute in BS4
    for link in soup.find_all("link"):
        if not isinstance(link, Tag):
            continue
        rel_val = link.get("rel") or []
        if isinstance(rel_val, str):
            rel_val = rel_val.split()
        if "canonical" in [r.lower() for r in rel_val]:
            resolved = resolve_url(_safe_str(link.get("href")), page_url)
            if resolved:
                return resolved

    og_url = og.get("og:url", "")
    return resolve_url(og_url, page_url) if og_url else None


# ---------------------------------------------------------------------------
# Language
# ---------------------------------------------------------------------------

def _extract_language(soup: BeautifulSoup) -> str:
    html_tag = soup.find("html")
    if html_tag and isinstance(html_tag, Tag):
        lang = _safe_str(html_tag.get("lang"), "").strip()
        if lang:
            return lang[:10]
    return DEFAULT_LANGUAGE


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def _extract_time_datetime(soup: BeautifulSoup) -> str | None:
    """Return the datetime attribute of the first <time> element, if any."""
    time_tag = soup.find("time")
    if time_tag and isinstance(time_tag, Tag):
        return _safe_str(time_tag.get("datetime"), "").strip() or None
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(
    html: str,
    page_url: str = "",
    soup: BeautifulSoup | None = None,
) -> dict:
    """Extract document metadata from *html*.

    Args:
        html:     Raw HTML string.  Ignored when *soup* is given.
        page_url: Page URL used for canonical resolution and the site name.
        soup:     Already parsed (and normally sanitized) tree.  When provided
                  the HTML is not re-parsed.

    Returns a dict with keys:
        title, description, language, link_count, image_count,
        canonical_url, site_name, published_at
    """
    if soup is None:
        if not html or not html.strip():
            return empty_metadata()
        try:
            soup = BeautifulSoup(html, PARSER)
        except Exception as exc:
            logger.debug("Metadata parse failed: %s", exc)
            return empty_metadata()

    og = _extract_og(soup)

    # ---- title ----
    title = _first(
        _text(soup.find("title")),
        og.get("og:title"),
        _text(soup.find("h1")),
    ) or DEFAULT_TITLE

    # ---- description ----
    description = _first(
        _meta_content(soup, name="description"),
        og.get("og:description"),
    ) or ""

    # ---- site name ----
    host = extract_domain(page_url) if page_url else ""
    site_name = _first(
        og.get("og:site_name"),
        host.removeprefix("www.") or None,
    )

    # ---- published date ----
    published_at = _parse_date(
        _first(
            og.get("article:published_time"),
            _meta_content(soup, name="pubdate"),
            _extract_time_datetime(soup),
        ),
    )

    return {
        "title": title,
        "description": description,
        "language": _extract_language(soup),
        "link_count": len(soup.find_all("a", href=True)),
        "image_count": len(soup.find_all("img")),
        "canonical_url": _extract_canonical(soup, og, page_url),
        "site_name": site_name,
        "published_at": published_at,
    }


def empty_metadata() -> dict:
    return {
        "title": "",
        "description": "",
        "language": DEFAULT_LANGUAGE,
        "link_count": 0,
        "image_count": 0,
        "canonical_url": None,
        "site_name": None,
        "published_at": None,
    }
