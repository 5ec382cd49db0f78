"""Tests for llmtext.query - the public extraction API."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from llmtext import (
    ExtractionConfig,
    ExtractionResult,
    SkipRecord,
    extract,
    html_to_markdown,
    html_to_text,
)
from llmtext.extractors.markdown import MarkdownFormatter

BASE_URL = "https://example.com/blog/post"


def _raw_newline_in_span(md: str) -> bool:
    depth = 0
    prev = ""
    for ch in md:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth = max(0, depth - 1)
        elif ch == "\n" and depth > 0 and prev != "\\":
            return True
        prev = ch
    return False


# ---------------------------------------------------------------------------
# extract() on a full page
# ---------------------------------------------------------------------------

class TestExtractArticle:
    @pytest.fixture
    def result(self, article_html) -> ExtractionResult:
        return extract(article_html, BASE_URL)

    def test_returns_result_model(self, result):
        assert isinstance(result, ExtractionResult)

    def test_heading_and_inline(self, result):
        assert "# Parsing HTML for Language Models" in result.markdown
        assert "**better**" in result.markdown

    def test_relative_link_resolved(self, result):
        assert "[intro guide](https://example.com/docs/intro)" in result.markdown

    def test_code_block(self, result):
        assert '```python\ndef greet(name):\n    return f"Hello {name}"\n```' in result.markdown

    def test_list(self, result):
        assert "- First point\n- Second point" in result.markdown

    def test_table(self, result):
        assert "| Tool | Speed |\n|---|---|\n| lxml | fast |" in result.markdown

    def test_images(self, result):
        assert "![Pipeline diagram](https://example.com/img/diagram.png)" in result.markdown
        assert "spinner.gif" not in result.markdown

    def test_skip_link_removed(self, result):
        assert "Skip to Content" not in result.markdown

    @pytest.mark.parametrize(
        "marker",
        ["SECRET_SCRIPT", "color: red", "HIDDEN_STYLE", "HIDDEN_CLASS", "HIDDEN_ARIA", "NOSCRIPT_TEXT"],
    )
    def test_removed_content_absent(self, result, marker):
        assert marker not in result.markdown
        assert marker not in result.plain_text

    def test_plain_text(self, result):
        assert "Parsing HTML for Language Models\n" in result.plain_text
        assert "intro guide (https://example.com/docs/intro)" in result.plain_text
        assert "[Image: Pipeline diagram - https://example.com/img/diagram.png]" in result.plain_text
        assert "**" not in result.plain_text

    def test_metadata(self, result):
        meta = result.metadata
        assert meta.title == "Parsing HTML for Language Models"
        assert meta.description == "How to turn messy pages into clean Markdown."
        assert meta.language == "en-GB"
        assert meta.url == BASE_URL
        assert meta.site_name == "Tech Blog"
        assert meta.canonical_url == "https://example.com/blog/parsing-html"
        assert meta.link_count == 4
        assert meta.image_count == 2

    def test_lengths_and_counts(self, result):
        meta = result.metadata
        assert meta.text_length == len(result.plain_text)
        assert meta.markdown_length == len(result.markdown)
        assert meta.word_count == len(result.plain_text.split())
        assert meta.has_content is True

    def test_processed_at_is_iso(self, result):
        assert datetime.fromisoformat(result.metadata.processed_at).tzinfo is not None

    def test_urls_absolute(self, result):
        for url in re.findall(r"\]\(([^)]*)\)", result.markdown):
            assert url.startswith("https://")

    def test_camel_case_dump(self, result):
        data = result.model_dump(by_alias=True)
        assert data["plainText"] == result.plain_text
        assert data["metadata"]["hasContent"] is True


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_svg_dropped_but_counted(self):
        result = extract('<img src="x.svg">', "https://ex.com/")
        assert result.markdown == ""
        assert result.plain_text == ""
        assert result.metadata.image_count == 1
        assert result.metadata.has_content is False

    def test_relative_link(self):
        result = extract('<a href="/about">About</a>', "https://ex.com/")
        assert "[About](https://ex.com/about)" in result.markdown

    def test_fenced_js(self):
        result = extract('<pre><code class="language-js">const x = 1;</code></pre>')
        assert result.markdown.startswith("```js\n")
        assert result.markdown.endswith("\n```")
        assert "const x = 1;" in result.markdown

    def test_colspan_header(self):
        result = extract(
            '<table><tr><th>A</th><th colspan="2">B</th></tr>'
            "<tr><td>1</td><td>2</td><td>3</td></tr></table>",
        )
        header, separator = result.markdown.split("\n")[:2]
        assert header == "| A | B | |"
        assert separator == "|---|---|---|"

    def test_length_bound(self):
        paragraph = "<p>" + "ünïcødé " * 6250 + "</p>"
        result = extract(paragraph * 3, config={"maxContentLength": 1000})
        assert 0 < len(result.markdown) <= 1000
        assert 0 < len(result.plain_text) <= 1000
        result.markdown.encode("utf-8")


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class TestOptions:
    def test_mapping_with_camel_case(self):
        result = extract('<p>x</p><img src="/a.png">', "https://ex.com/", {"keepImages": False})
        assert result.markdown == "x"

    def test_config_model(self):
        config = ExtractionConfig(keep_webpage_links=False)
        assert extract('<a href="/a">A</a>', "https://ex.com/", config).markdown == "A"

    def test_plain_text_mode(self):
        result = extract("<h1>Title</h1><p><b>b</b></p>", config={"formatAsMarkdown": False})
        assert result.markdown == result.plain_text == "Title\nb"

    def test_metadata_disabled(self):
        result = extract(
            "<html><head><title>T</title></head><body><p>one two</p></body></html>",
            "https://ex.com/",
            {"includeMetadata": False},
        )
        meta = result.metadata
        assert meta.title == ""
        assert meta.link_count == 0
        assert meta.site_name is None
        assert meta.word_count == 2
        assert meta.text_length == len("one two")
        assert meta.url == "https://ex.com/"

    def test_script_kept_when_allowed(self):
        html = "<p>a</p><script>kept_code()</script>"
        assert "kept_code()" not in extract(html).plain_text
        assert "kept_code()" in extract(html, config={"removeScriptTag": False}).plain_text

    def test_custom_removed_tags(self):
        html = "<nav>menu</nav><p>body</p>"
        assert extract(html, config={"removeTags": ["NAV"]}).markdown == "body"

    def test_invalid_config_raises(self):
        with pytest.raises(ValidationError):
            extract("<p>x</p>", config={"maxContentLength": -5})

    def test_word_count(self):
        assert extract("<p>one two  three</p>").metadata.word_count == 3


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------

class TestFailures:
    @pytest.mark.parametrize("html", ["", "   \n ", None])
    def test_empty_input(self, html):
        result = extract(html, "https://ex.com/")
        assert result.markdown == ""
        assert result.plain_text == ""
        assert result.metadata.has_content is False
        assert result.metadata.url == "https://ex.com/"
        assert result.metadata.processed_at != ""

    def test_parser_failure_returns_empty_result(self, caplog):
        with patch("llmtext.query.BeautifulSoup", side_effect=ValueError("boom")), \
                caplog.at_level(logging.WARNING, logger="llmtext.query"):
            result = extract("<p>x</p>", "https://ex.com/")
        assert result.markdown == ""
        assert result.metadata.has_content is False
        assert "boom" in caplog.text

    def test_pipeline_failure_returns_empty_result(self):
        with patch("llmtext.query.sanitize", side_effect=RuntimeError("broken")):
            result = extract("<p>x</p>")
        assert result.markdown == ""
        assert result.plain_text == ""

    def test_memory_error_propagates(self):
        with patch("llmtext.query.sanitize", side_effect=MemoryError), pytest.raises(MemoryError):
            extract("<p>x</p>")

    def test_node_failure_recorded_and_siblings_kept(self):
        with patch.object(MarkdownFormatter, "image", side_effect=RuntimeError("bad image")):
            result = extract('<p>a</p><img src="/a.png" alt="A"><p>b</p>', "https://ex.com/")
        assert result.markdown == "a\n\nb"
        assert SkipRecord(tag="img", reason="RuntimeError: bad image") in result.skipped

    def test_unresolvable_image_recorded(self):
        result = extract('<p>x</p><img src="/a.png">')
        assert result.markdown == "x"
        assert any(s.tag == "img" for s in result.skipped)

    def test_skipped_node_recorded_once(self):
        result = extract('<p>x</p><img src="data:image/png;base64,AAAA">', "https://ex.com/")
        reason = "unresolvable image src 'data:image/png;base64,AAAA'"
        assert result.skipped == [SkipRecord(tag="img", reason=reason)]

    def test_unclosed_bracket_leaves_no_dangling_escape(self):
        result = extract("<p>see [more<br>text</p>")
        assert result.markdown == "see [more \\\ntext"
        assert not result.markdown.endswith("\\")

    def test_newlines_in_link_text_escaped(self):
        result = extract('<p><a href="/x">one<br>two</a></p>', "https://ex.com/")
        assert "[one \\\ntwo](https://ex.com/x)" in result.markdown
        assert not _raw_newline_in_span(result.markdown)


# ---------------------------------------------------------------------------
# Convenience wrappers and concurrency
# ---------------------------------------------------------------------------

class TestWrappers:
    def test_html_to_markdown(self):
        assert html_to_markdown("<h2>Hi</h2>") == "## Hi"

    def test_html_to_text(self):
        assert html_to_text('<p><a href="/a">A</a></p>', "https://ex.com/") == "A (https://ex.com/a)"


class TestConcurrency:
    def test_parallel_calls_are_independent(self):
        docs = [
            (f'<h1>Doc {i}</h1><p><a href="/p/{i}">link {i}</a></p>', f"https://site{i}.example/")
            for i in range(24)
        ]
        sequential = [extract(html, base).markdown for html, base in docs]
        with ThreadPoolExecutor(max_workers=8) as pool:
            parallel = list(pool.map(lambda d: extract(*d).markdown, docs))
        assert parallel == sequential
        assert parallel[5] == "# Doc 5\n\n[link 5](https://site5.example/p/5)"
