"""Plain-Text Extraction Module

Turns sanitized HTML into plain text for excerpts, previews and search.

These helpers expect HTML that already went through the sanitizer; the tag
stripping is a simple pattern removal, not an HTML parser.
"""

import re
from typing import Optional

from .config import TRUNCATION_MARKER

# Regex patterns (define at module level for performance)
TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")

# Decoded in this order; "&amp;lt;" therefore ends up as "<"
HTML_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


def decode_entities(text: str) -> str:
    """Decode the small fixed set of entities produced by the sanitizer."""
    for entity, char in HTML_ENTITIES:
        text = text.replace(entity, char)
    return text


def to_plain_text(html: str, max_length: Optional[int] = None) -> str:
    """
    Convert sanitized HTML into a single line of plain text.

    Steps:
    1. Strip all tags
    2. Decode common HTML entities (&nbsp; &amp; &lt; &gt; &quot; &#39;)
    3. Collapse whitespace runs into single spaces and trim
    4. If longer than max_length, cut and append "..."

    Args:
        html: Sanitized HTML
        max_length: Maximum number of characters to keep before the marker;
            None or 0 disables truncation

    Returns:
        Plain text, at most max_length + len("...") characters long

    Raises:
        ValueError: If max_length is negative
    """
    if max_length is not None and max_length < 0:
        raise ValueError(f"max_length must be >= 0, got {max_length}")
    if not html:
        return ""

    text = TAG_RE.sub("", html)
    text = decode_entities(text)
    text = WHITESPACE_RE.sub(" ", text).strip()

    if max_length and len(text) > max_length:
        text = text[:max_length].rstrip() + TRUNCATION_MARKER

    return text


def strip_html(html: str) -> str:
    """Remove tags only; entities and whitespace are left as they are (ends trimmed)."""
    if not html:
        return ""
    return TAG_RE.sub("", html).strip()
