"""Content Validation Module

Cheap checks applied to raw author Markdown before it is rendered or stored.

The dangerous-pattern scan runs on the raw text, not the rendered HTML. It
catches obvious abuse early and may flag benign text (for example a code
sample mentioning ``javascript:``). It is not the security boundary: the
allow-list in ``sanitizer.py`` is, and it is applied regardless of what this
module decides.
"""

import re
import logging
from typing import List, Optional, Tuple

from .config import MAX_CONTENT_LENGTH
from .models import ContentErrorCode, ValidationVerdict

logger = logging.getLogger(__name__)

EMPTY_CONTENT_ERROR = "Content cannot be empty"
CONTENT_TOO_LARGE_ERROR = "Content is too long (max 100KB)"
UNSAFE_CONTENT_ERROR = "Content contains potentially dangerous code"

# (name, pattern) pairs, matched case-insensitively against raw Markdown
DANGEROUS_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("script block", re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)),
    ("javascript: URI", re.compile(r"javascript:", re.IGNORECASE)),
    ("event handler attribute", re.compile(r"\bon\w+\s*=", re.IGNORECASE)),  # onclick=, onerror= ...
    ("iframe tag", re.compile(r"<iframe", re.IGNORECASE)),
    ("object tag", re.compile(r"<object", re.IGNORECASE)),
    ("embed tag", re.compile(r"<embed", re.IGNORECASE)),
)


def find_dangerous_patterns(content: str) -> List[str]:
    """Return the names of all dangerous patterns found in ``content``, in table order."""
    return [name for name, pattern in DANGEROUS_PATTERNS if pattern.search(content)]


def validate_content(content: Optional[str]) -> ValidationVerdict:
    """
    Validate raw Markdown before it is rendered and stored.

    Rules, in order:
    1. Empty or whitespace-only content -> EmptyContent
    2. More than MAX_CONTENT_LENGTH characters -> ContentTooLarge
    3. Any dangerous pattern present -> UnsafeContent (one combined error)

    Rules 1 and 2 stop validation immediately. For rule 3 every pattern is
    checked and the names of those that matched are reported together.

    Args:
        content: Raw Markdown submitted by an author

    Returns:
        ValidationVerdict; never raises for bad content
    """
    if not content or not content.strip():
        logger.warning("validate_content: rejecting empty content")
        return ValidationVerdict.failed(ContentErrorCode.EMPTY_CONTENT, EMPTY_CONTENT_ERROR)

    if len(content) > MAX_CONTENT_LENGTH:
        logger.warning(
            "validate_content: rejecting content of %d chars (max %d)",
            len(content),
            MAX_CONTENT_LENGTH,
        )
        return ValidationVerdict.failed(ContentErrorCode.CONTENT_TOO_LARGE, CONTENT_TOO_LARGE_ERROR)

    matched = find_dangerous_patterns(content)
    if matched:
        logger.warning(
            "validate_content: rejecting content matching dangerous patterns: %s",
            ", ".join(matched),
        )
        return ValidationVerdict.failed(
            ContentErrorCode.UNSAFE_CONTENT,
            f"{UNSAFE_CONTENT_ERROR} ({', '.join(matched)})",
            matched_patterns=matched,
        )

    return ValidationVerdict.ok()
