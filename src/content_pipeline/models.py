"""Data Models Module

Defines Pydantic models for content at different stages of the pipeline:
the validation verdict for raw Markdown, the result of processing content
for storage, and the article records read from and written to disk.
"""

from enum import Enum
from typing import List, Optional, Dict, Any
from pydantic import BaseModel


class ContentErrorCode(str, Enum):
    """Reason a piece of content was rejected by the validator."""
    EMPTY_CONTENT = "EmptyContent"
    CONTENT_TOO_LARGE = "ContentTooLarge"
    UNSAFE_CONTENT = "UnsafeContent"


class ValidationVerdict(BaseModel):
    """Outcome of validating raw Markdown before it is rendered.

    ``errors`` is non-empty exactly when ``valid`` is False. ``code`` names
    the failure class and ``matched_patterns`` lists which dangerous
    patterns fired for ``UnsafeContent``.
    """
    valid: bool
    errors: List[str] = []
    code: Optional[ContentErrorCode] = None
    matched_patterns: List[str] = []

    @classmethod
    def ok(cls) -> "ValidationVerdict":
        return cls(valid=True)

    @classmethod
    def failed(
        cls,
        code: ContentErrorCode,
        error: str,
        matched_patterns: Optional[List[str]] = None,
    ) -> "ValidationVerdict":
        return cls(
            valid=False,
            errors=[error],
            code=code,
            matched_patterns=matched_patterns or [],
        )

    @property
    def message(self) -> str:
        """All errors joined into one client-facing message."""
        return ", ".join(self.errors)

    def to_payload(self) -> Dict[str, Any]:
        """External failure payload: ``{"isValid": ..., "errors": [...]}``."""
        return {"isValid": self.valid, "errors": list(self.errors)}


class ProcessedContent(BaseModel):
    """Result of running Markdown through the storage pipeline.

    ``html`` holds sanitized HTML and is only set when the verdict is valid.
    """
    verdict: ValidationVerdict
    html: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.verdict.valid and self.html is not None


class RawArticle(BaseModel):
    """Normalized article submission as read from the input file."""
    id: Optional[str]
    title: Optional[str]
    resume: Optional[str]
    content: str
    picture_url: Optional[str] = None
    category_ids: List[str] = []
    is_headline: bool = False


class StoredArticle(BaseModel):
    """Storage-ready article.

    Carries both the author's original Markdown (``content``) and the
    sanitized HTML rendering of it (``content_html``).
    """
    id: str
    title: str
    resume: str
    content: str
    content_html: str
    excerpt: str
    picture_url: Optional[str] = None
    category_ids: List[str] = []
    is_headline: bool = False
