"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from llmtext.extractors.walker import WalkContext
from llmtext.items import ExtractionConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_URL = "https://example.com/blog/post"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def minimal_html() -> str:
    return _read_fixture("minimal.html")


@pytest.fixture
def make_context():
    """Build a WalkContext plus the parsed body for a snippet of HTML."""

    def _make(html: str, base_url: str = "https://ex.com/", **options):
        soup = BeautifulSoup(html, "lxml")
        ctx = WalkContext(base_url=base_url, config=ExtractionConfig(**options))
        return ctx, soup.body or soup

    return _make
