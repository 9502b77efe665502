"""Markdown Rendering Module

Converts author Markdown into HTML using Python-Markdown with a set of
extensions that approximates GitHub-flavored Markdown:

  - tables, fenced code blocks and saner list handling
  - soft breaks: a single newline becomes <br> instead of joining lines
  - ~~strikethrough~~ rendered as <s>
  - bare URLs and e-mail addresses turned into links (bleach.linkify)

The output is untrusted. Raw HTML in the source is passed through as-is, so
everything returned here must go through ``sanitizer.sanitize_html`` before
it is stored or displayed.
"""

import logging

import bleach
import markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import SimpleTagInlineProcessor

from .config import AUTOLINK_ENABLED

logger = logging.getLogger(__name__)

STRIKETHROUGH_RE = r"(~{2})(.+?)~{2}"

MARKDOWN_EXTENSIONS = ("tables", "fenced_code", "sane_lists", "nl2br")

# Never autolink inside code
AUTOLINK_SKIP_TAGS = ("pre", "code")


class StrikethroughExtension(Extension):
    """Adds GFM ``~~text~~`` support, rendered as ``<s>text</s>``."""

    def extendMarkdown(self, md):
        md.inlinePatterns.register(
            SimpleTagInlineProcessor(STRIKETHROUGH_RE, "s"), "strikethrough", 175
        )


def render_markdown(content: str, autolink: bool = AUTOLINK_ENABLED) -> str:
    """
    Render Markdown to (unsanitized) HTML.

    A new Markdown instance is built for every call; instances keep parse
    state and must not be shared between concurrent renders.

    Args:
        content: Markdown source
        autolink: Turn bare URLs and e-mail addresses into links

    Returns:
        HTML string; empty string for empty input
    """
    if not content:
        return ""

    md = markdown.Markdown(
        extensions=[*MARKDOWN_EXTENSIONS, StrikethroughExtension()],
        output_format="html",
    )
    html = md.convert(content)

    if autolink:
        html = bleach.linkify(html, skip_tags=list(AUTOLINK_SKIP_TAGS), parse_email=True)

    logger.debug("Rendered %d chars of Markdown into %d chars of HTML", len(content), len(html))
    return html
