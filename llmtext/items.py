"""Pydantic models for extraction options and results.

All models accept both the snake_case field names and the camelCase spelling
used by the JSON wire format (``keepImages``, ``plainText`` ...).  Dump with
``model_dump(by_alias=True)`` to get the camelCase shape.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from llmtext.settings import DEFAULT_LANGUAGE, DEFAULT_MAX_CONTENT_LENGTH

_CAMEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
)


def _lowered_set(v: Any) -> frozenset[str]:
    if v is None:
        return frozenset()
    if isinstance(v, str):
        v = [v]
    return frozenset(str(item).strip().lower() for item in v if str(item).strip())


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class ExtractionConfig(BaseModel):
    """Options for a single :func:`llmtext.extract` call.

    Unknown keys are ignored so that callers built against newer option sets
    keep working.  Instances are frozen; the engine never mutates them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    # Images
    keep_images: bool = True
    remove_svg_image: bool = True
    remove_gif_image: bool = True
    remove_image_types: frozenset[str] = Field(default_factory=frozenset)

    # Links
    keep_webpage_links: bool = True

    # Sanitizer
    remove_script_tag: bool = True
    remove_style_tag: bool = True
    remove_tags: frozenset[str] = Field(default_factory=frozenset)

    # Output
    format_as_markdown: bool = True
    max_content_length: int = Field(default=DEFAULT_MAX_CONTENT_LENGTH, ge=0)
    preserve_line_breaks: bool = False
    include_metadata: bool = True

    @field_validator("remove_image_types", "remove_tags", mode="before")
    @classmethod
    def lower_and_dedupe(cls, v: Any) -> frozenset[str]:
        return _lowered_set(v)

    def image_types_to_remove(self) -> frozenset[str]:
        """Return every src substring that disqualifies an image."""
        types = set(self.remove_image_types)
        if self.remove_svg_image:
            types.add(".svg")
        if self.remove_gif_image:
            types.add(".gif")
        return frozenset(types)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class SkipRecord(BaseModel):
    """A node that contributed nothing to the output, and why."""

    model_config = _CAMEL_CONFIG

    tag: str
    reason: str


class PageMetadata(BaseModel):
    model_config = _CAMEL_CONFIG

    title: str = ""
    description: str = ""
    url: str = ""
    processed_at: str = ""
    text_length: int = 0
    markdown_length: int = 0
    has_content: bool = False
    language: str = DEFAULT_LANGUAGE
    word_count: int = 0
    link_count: int = 0
    image_count: int = 0

    canonical_url: str | None = None
    site_name: str | None = None
    published_at: str | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v or ""


class ExtractionResult(BaseModel):
    """Markdown, plain text and metadata produced from one HTML document."""

    model_config = _CAMEL_CONFIG

    markdown: str = ""
    plain_text: str = ""
    metadata: PageMetadata = Field(default_factory=PageMetadata)
    skipped: list[SkipRecord] = Field(default_factory=list)
