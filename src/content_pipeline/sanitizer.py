"""HTML Sanitization Module

The trust boundary of the content pipeline: reduces arbitrary HTML to an
allow-listed subset using bleach.

Policy:
  - Only ALLOWED_TAGS survive. Other tags are stripped but their text is
    kept (escaped, so nothing inside them can execute).
  - Attributes are allowed per element (ALLOWED_ATTRIBUTES); no data-*
    attributes, no event handlers, no inline styles.
  - href/src values must use one of ALLOWED_PROTOCOLS. Anything else,
    relative URLs included, is dropped.
  - Comments are removed.
  - Optionally, template expressions ({{...}}, ${...}, <%...%>) are blanked
    out so the HTML can be embedded in client-side templates safely.
"""

import re
import logging
from typing import Dict, FrozenSet

from bleach.html5lib_shim import Filter
from bleach.sanitizer import Cleaner

from .config import SAFE_FOR_TEMPLATES

logger = logging.getLogger(__name__)

ALLOWED_TAGS: FrozenSet[str] = frozenset({
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr",
    "strong", "em", "b", "i", "u", "s", "mark",
    "blockquote", "pre", "code",
    "ul", "ol", "li",
    "a", "img",
    "table", "thead", "tbody", "tr", "th", "td",
    "div", "span",
})

ALLOWED_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "a": frozenset({"href", "title", "target", "rel"}),
    "img": frozenset({"src", "alt", "title", "width", "height"}),
    "code": frozenset({"class"}),
    "pre": frozenset({"class"}),
    "div": frozenset({"class"}),
    "span": frozenset({"class"}),
}

ALLOWED_PROTOCOLS: FrozenSet[str] = frozenset({"http", "https", "mailto"})

URI_ATTRIBUTES: FrozenSet[str] = frozenset({"href", "src"})

ALLOWED_URI_RE = re.compile(
    r"^(?:%s):" % "|".join(sorted(ALLOWED_PROTOCOLS)), re.IGNORECASE
)

# The last alternative is <%...%> as it appears in serialized text
TEMPLATE_EXPR_RE = re.compile(
    r"\{\{[\s\S]*?\}\}|\$\{[\s\S]*?\}|<%[\s\S]*?%>|&lt;%[\s\S]*?%&gt;"
)


def is_allowed_uri(value: str) -> bool:
    """True if ``value`` starts with an allowed scheme (http:, https:, mailto:)."""
    return bool(value) and ALLOWED_URI_RE.match(value) is not None


def allow_attribute(tag: str, name: str, value: str) -> bool:
    """Attribute filter handed to bleach: per-element allow-list plus URI scheme check."""
    if name not in ALLOWED_ATTRIBUTES.get(tag, ()):
        return False
    if name in URI_ATTRIBUTES:
        return is_allowed_uri(value)
    return True


def scrub_template_expressions(text: str) -> str:
    """Replace each {{...}}, ${...} or <%...%> expression with a single space."""
    return TEMPLATE_EXPR_RE.sub(" ", text)


class TemplateExpressionFilter(Filter):
    """html5lib filter that scrubs template expressions from text and attribute values."""

    def __iter__(self):
        for token in Filter.__iter__(self):
            token_type = token["type"]
            if token_type in ("Characters", "SpaceCharacters"):
                token["data"] = scrub_template_expressions(token["data"])
            elif token_type in ("StartTag", "EmptyTag") and token.get("data"):
                token["data"] = {
                    key: scrub_template_expressions(value)
                    for key, value in token["data"].items()
                }
            yield token


def build_cleaner(safe_for_templates: bool = SAFE_FOR_TEMPLATES) -> Cleaner:
    """Build a bleach Cleaner configured with the allow-list policy."""
    filters = [TemplateExpressionFilter] if safe_for_templates else []
    return Cleaner(
        tags=ALLOWED_TAGS,
        attributes=allow_attribute,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
        filters=filters,
    )


def sanitize_html(raw_html: str, safe_for_templates: bool = SAFE_FOR_TEMPLATES) -> str:
    """
    Sanitize HTML against the allow-list.

    Never raises for malformed markup: html5lib repairs it the way a browser
    would and the result is filtered like any other input.

    Args:
        raw_html: Untrusted HTML, typically from ``render_markdown``
        safe_for_templates: Blank out template expressions

    Returns:
        HTML containing only allow-listed elements, attributes and URI schemes
    """
    if not raw_html:
        return ""

    # Cleaner instances are not shared between calls
    cleaner = build_cleaner(safe_for_templates)
    cleaned = cleaner.clean(raw_html)

    if safe_for_templates:
        # An expression split across inline tags is only whole in the
        # serialized markup. Each pass removes at least one opener.
        scrubbed = scrub_template_expressions(cleaned)
        while scrubbed != cleaned:
            cleaned = cleaner.clean(scrubbed)
            scrubbed = scrub_template_expressions(cleaned)

    if len(cleaned) != len(raw_html):
        logger.debug("Sanitizer changed HTML: %d -> %d chars", len(raw_html), len(cleaned))
    return cleaned
