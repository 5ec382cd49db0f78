"""llmtext - turn arbitrary HTML into clean, LLM-ready Markdown and text.

Quick usage::

    from llmtext import extract

    result = extract(html, "https://example.com/blog/some-post")
    print(result.metadata.title)
    print(result.markdown)
    print(result.plain_text)

Options::

    from llmtext import ExtractionConfig, extract

    config = ExtractionConfig(keep_images=False, max_content_length=20_000)
    result = extract(html, "https://example.com/", config)
"""

from llmtext.items import ExtractionConfig, ExtractionResult, PageMetadata, SkipRecord
from llmtext.query import extract, html_to_markdown, html_to_text

__version__ = "0.1.0"
__all__ = [
    "ExtractionConfig",
    "ExtractionResult",
    "PageMetadata",
    "SkipRecord",
    "extract",
    "html_to_markdown",
    "html_to_text",
]
