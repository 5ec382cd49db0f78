"""Engine-wide constants for llmtext.

Per-call options live in :class:`llmtext.items.ExtractionConfig`; the values
here are fixed rules of the conversion and are never mutated at runtime.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
# BeautifulSoup tree builder.  lxml recovers from badly broken markup.
PARSER = "lxml"

# ---------------------------------------------------------------------------
# Walk bounds
# ---------------------------------------------------------------------------
# Maximum element nesting below the walk root that the formatters descend into.
MAX_DEPTH = 10

# Default upper bound (in characters) for each output string.
DEFAULT_MAX_CONTENT_LENGTH = 100_000

# Upper bound for a single cell's colspan (HTML caps it at 1000 as well).
MAX_COLSPAN = 1000

# ---------------------------------------------------------------------------
# Sanitizer
# ---------------------------------------------------------------------------
# Removed regardless of configuration.
ALWAYS_REMOVED_TAGS: frozenset[str] = frozenset({"noscript"})

# ---------------------------------------------------------------------------
# Block boundaries
# ---------------------------------------------------------------------------
# Elements after which code extraction and the plain-text walker emit a newline.
BLOCK_BOUNDARY_TAGS: frozenset[str] = frozenset(
    {
        "p", "div", "li", "tr", "table", "thead", "tbody", "tfoot",
        "section", "article", "blockquote", "pre",
        "h1", "h2", "h3", "h4", "h5", "h6",
    },
)

# Containers the Markdown walker wraps in blank lines.
CONTAINER_TAGS: frozenset[str] = frozenset(
    {
        "div", "section", "article", "header", "footer", "nav", "aside",
        "main", "figure", "figcaption",
    },
)

# ---------------------------------------------------------------------------
# Metadata defaults
# ---------------------------------------------------------------------------
DEFAULT_TITLE = "Untitled"
DEFAULT_LANGUAGE = "en"
