"""llmtext.query - the extraction entry point.

Turns an HTML document and its base URL into Markdown, plain text and
metadata.  Pure and synchronous: no network, no file I/O, no shared state.
Each call parses its own tree, so calls may run concurrently from any number
of threads.

Basic usage::

    from llmtext import extract

    result = extract(html, "https://example.com/blog/post")
    print(result.metadata.title)
    print(result.markdown)

    # Options may be passed as a model or as a plain mapping
    result = extract(html, base_url, {"keepImages": False})

    # Original camelCase JSON shape
    data = result.model_dump(by_alias=True)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from bs4 import BeautifulSoup

from llmtext.extractors.linkfix import repair_links
from llmtext.extractors.markdown import MarkdownFormatter
from llmtext.extractors.metadata import empty_metadata, extract_metadata
from llmtext.extractors.normalize import normalize_markdown, normalize_text
from llmtext.extractors.plaintext import PlainTextFormatter
from llmtext.extractors.sanitize import sanitize
from llmtext.extractors.walker import WalkContext
from llmtext.items import ExtractionConfig, ExtractionResult, PageMetadata
from llmtext.settings import PARSER

logger = logging.getLogger(__name__)

ConfigLike = ExtractionConfig | Mapping[str, Any] | None


def _coerce_config(config: ConfigLike) -> ExtractionConfig:
    if config is None:
        return ExtractionConfig()
    if isinstance(config, ExtractionConfig):
        return config
    return ExtractionConfig.model_validate(dict(config))


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _empty_result(base_url: str) -> ExtractionResult:
    return ExtractionResult(
        metadata=PageMetadata(url=base_url, processed_at=_now(), **empty_metadata()),
    )


def _build_metadata(
    soup: BeautifulSoup,
    base_url: str,
    config: ExtractionConfig,
    markdown: str,
    plain_text: str,
) -> PageMetadata:
    fields = extract_metadata("", base_url, soup=soup) if config.include_metadata else empty_metadata()
    return PageMetadata(
        url=base_url,
        processed_at=_now(),
        text_length=len(plain_text),
        markdown_length=len(markdown),
        has_content=len(plain_text) > 0,
        word_count=len(plain_text.split()),
        **fields,
    )


def extract(html: str | None, base_url: str = "", config: ConfigLike = None) -> ExtractionResult:
    """Extract Markdown, plain text and metadata from *html*.

    Args:
        html:     Final page source (already decoded text).
        base_url: URL that relative links and images resolve against.
        config:   :class:`~llmtext.items.ExtractionConfig`, a mapping of
                  options (snake_case or camelCase; unknown keys ignored), or
                  None for the defaults.

    Returns:
        :class:`~llmtext.items.ExtractionResult`.  Empty or unparsable input
        yields an empty result rather than an exception.

    Raises:
        pydantic.ValidationError: if *config* is a mapping with ill-typed
            values.  Raised before any extraction work starts.
    """
    cfg = _coerce_config(config)
    base_url = base_url or ""

    if not html or not html.strip():
        return _empty_result(base_url)

    try:
        soup = BeautifulSoup(html, PARSER)
    except MemoryError:
        raise
    except Exception as exc:
        logger.warning("Could not parse HTML for %s: %s", base_url or "<no url>", exc)
        return _empty_result(base_url)

    try:
        sanitize(soup, cfg)
        root = soup.body or soup
        ctx = WalkContext(base_url=base_url, config=cfg)

        plain_text = normalize_text(
            PlainTextFormatter(ctx).format(root),
            cfg.max_content_length,
            preserve_line_breaks=cfg.preserve_line_breaks,
        )
        if cfg.format_as_markdown:
            markdown = normalize_markdown(
                repair_links(MarkdownFormatter(ctx).format(root)),
                cfg.max_content_length,
            )
        else:
            markdown = plain_text

        metadata = _build_metadata(soup, base_url, cfg, markdown, plain_text)
    except MemoryError:
        raise
    except Exception as exc:
        logger.warning("Extraction failed for %s: %s", base_url or "<no url>", exc)
        return _empty_result(base_url)

    logger.debug(
        "Extracted %s: %d markdown chars, %d text chars, %d skipped nodes",
        base_url or "<no url>",
        len(markdown),
        len(plain_text),
        len(ctx.skipped),
    )
    return ExtractionResult(
        markdown=markdown,
        plain_text=plain_text,
        metadata=metadata,
        skipped=ctx.skipped,
    )


def html_to_markdown(html: str | None, base_url: str = "", config: ConfigLike = None) -> str:
    """Return only the Markdown rendering of *html*."""
    return extract(html, base_url, config).markdown


def html_to_text(html: str | None, base_url: str = "", config: ConfigLike = None) -> str:
    """Return only the plain-text rendering of *html*."""
    return extract(html, base_url, config).plain_text
