"""
Article Content Pipeline

Turns author-submitted Markdown into storage-ready content:

    Markdown -> validate -> render -> sanitize -> (HTML, excerpt)

The single-content operations (process_for_storage, markdown_to_html,
generate_excerpt) are what a request handler calls on article create/update.
run_pipeline applies the same processing to a JSON file of article
submissions and writes the results to disk.

Features:
- Validation before rendering: rejected content is never rendered
- Sanitized HTML and plain-text excerpt for every accepted article
- Timestamped versioning of batch outputs
- Deduplication by article id
- Rejected articles written alongside accepted ones, with reasons
"""

from pathlib import Path
import json
import re
from typing import List, Dict, Any, Optional, Tuple
import logging
import time
from datetime import datetime

from .config import DEFAULT_EXCERPT_LENGTH
from .loaders import load_raw_articles
from .models import ProcessedContent, RawArticle, StoredArticle
from .renderer import render_markdown
from .sanitizer import sanitize_html, is_allowed_uri
from .text import to_plain_text
from .validator import validate_content


logger = logging.getLogger(__name__)

WEB_URI_RE = re.compile(r"^https?:", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Single-content operations
# ---------------------------------------------------------------------------

def markdown_to_html(content: str) -> str:
    """Render Markdown and sanitize the result. Does not validate."""
    return sanitize_html(render_markdown(content))


def process_for_storage(content: Optional[str]) -> ProcessedContent:
    """
    Validate Markdown and, if it passes, convert it to sanitized HTML.

    Invalid content is returned with its verdict and no HTML; the renderer
    is not called for it. Callers surface ``result.verdict.message`` as a
    rejected write.

    Args:
        content: Raw Markdown from the author

    Returns:
        ProcessedContent with ``html`` set only when the verdict is valid
    """
    verdict = validate_content(content)
    if not verdict.valid:
        logger.info("Content rejected before rendering: %s", verdict.message)
        return ProcessedContent(verdict=verdict)

    return ProcessedContent(verdict=verdict, html=markdown_to_html(content))


def generate_excerpt(content: str, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """Plain-text excerpt of Markdown content, at most max_length chars plus "..."."""
    return to_plain_text(markdown_to_html(content), max_length)


# ---------------------------------------------------------------------------
# Article processing
# ---------------------------------------------------------------------------

def _normalize_optional_str(value: Any) -> Optional[str]:
    """Normalize to string or None. Empty strings become None."""
    if value is None or value == "":
        return None
    s = str(value).strip()
    return s if s else None


def _normalize_str_list(value: Any) -> List[str]:
    """Always returns a list; [] if null/missing/empty."""
    if not value:
        return []
    if isinstance(value, list):
        cleaned = [_normalize_optional_str(v) for v in value]
        return [v for v in cleaned if v is not None]
    single = _normalize_optional_str(value)
    return [single] if single is not None else []


def to_raw_article(raw: Dict[str, Any]) -> RawArticle:
    """Normalize one raw submission dict (camelCase or snake_case keys)."""
    raw_id = raw.get("id") or raw.get("_id") or raw.get("external_id")
    content = raw.get("content")

    return RawArticle(
        id=str(raw_id) if raw_id is not None else None,
        title=_normalize_optional_str(raw.get("title")),
        resume=_normalize_optional_str(raw.get("resume")),
        content=content if isinstance(content, str) else "",
        picture_url=_normalize_optional_str(raw.get("pictureUrl") or raw.get("picture_url")),
        category_ids=_normalize_str_list(raw.get("categoryIds") or raw.get("category_ids")),
        is_headline=bool(raw.get("isHeadline") or raw.get("is_headline")),
    )


def process_article(
    raw: Dict[str, Any],
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
) -> Tuple[Optional[Dict[str, Any]], List[str]]:
    """
    Convert one raw article submission into a storage-ready record.

    The Markdown body goes through process_for_storage. The excerpt is
    derived from the sanitized HTML, and stands in for the resume when the
    author did not write one. A picture URL is kept only if it is http(s).

    Args:
        raw: Raw article dictionary
        excerpt_length: Maximum excerpt length before the "..." marker

    Returns:
        (stored_article_dict, []) on success, (None, errors) on rejection
    """
    article = to_raw_article(raw)

    errors: List[str] = []
    if not article.id:
        errors.append("Article is missing an id")
    if not article.title:
        errors.append("Article title cannot be empty")

    processed = process_for_storage(article.content)
    if not processed.ok:
        errors.extend(processed.verdict.errors)

    if errors:
        logger.warning(
            "process_article: rejecting article id=%r: %s",
            article.id,
            "; ".join(errors),
        )
        return None, errors

    excerpt = to_plain_text(processed.html, excerpt_length)

    picture_url = article.picture_url
    if picture_url and not (is_allowed_uri(picture_url) and WEB_URI_RE.match(picture_url)):
        logger.warning(
            "process_article: dropping picture_url with disallowed scheme for id=%s",
            article.id,
        )
        picture_url = None

    stored = StoredArticle(
        id=article.id,
        title=article.title,
        resume=article.resume or excerpt,
        content=article.content,
        content_html=processed.html,
        excerpt=excerpt,
        picture_url=picture_url,
        category_ids=article.category_ids,
        is_headline=article.is_headline,
    )
    return stored.model_dump(), []


# ---------------------------------------------------------------------------
# Batch run
# ---------------------------------------------------------------------------

def run_pipeline(
    input_path: Path | str = "data/articles.json",
    output_dir: Path | str = "output",
    limit: Optional[int] = None,
    dry_run: bool = False,
    keep_history: bool = True,
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
) -> Tuple[int, int, Dict[str, Path]]:
    """
    Run a file of article submissions through the content pipeline.

    Pipeline Steps:
    1. Load raw articles from JSON
    2. Validate, render and sanitize each article
    3. Deduplicate by article id
    4. Save processed and rejected articles
    5. Save run metadata

    Output Strategy:
    - Creates timestamped outputs: processed_20251216_010530.json
    - With keep_history=False, overwrites processed.json / rejected.json

    Args:
        input_path: Path to input JSON file with raw articles
        output_dir: Directory for all output files
        limit: Maximum articles to process (None = all)
        dry_run: Process everything but write no files
        keep_history: If True, keep timestamped versions; if False, overwrite
        excerpt_length: Maximum excerpt length per article

    Returns:
        Tuple of (total_raw_articles, stored_articles, output_paths_dict)

    Raises:
        FileNotFoundError: If input_path doesn't exist
        json.JSONDecodeError: If input file is invalid JSON
        ValueError: If the input file holds no list of articles
        OSError: If outputs cannot be written
    """
    input_path = Path(input_path)
    output_dir = Path(output_dir)
    if not dry_run:
        output_dir.mkdir(parents=True, exist_ok=True)

    run_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    job_start = time.time()

    logger.debug("Starting pipeline run: %s", run_timestamp)

    # ========== STEP 1: LOAD RAW ARTICLES ==========
    t0 = time.time()
    logger.info("STEP 1/5: Loading raw articles")

    try:
        raw_articles = load_raw_articles(input_path)
        total_raw = len(raw_articles)
        logger.info("✓ Loaded %d raw articles in %.2fs", total_raw, time.time() - t0)
    except FileNotFoundError:
        logger.exception("Input file not found: %s", input_path)
        raise
    except json.JSONDecodeError:
        logger.exception("Invalid JSON in input file: %s", input_path)
        raise

    if limit is not None:
        logger.info("Applying limit: %d articles", limit)
        raw_articles = raw_articles[:limit]

    # ========== STEP 2: PROCESS ARTICLES ==========
    t1 = time.time()
    logger.info("STEP 2/5: Processing %d articles", len(raw_articles))

    stored_articles: List[Dict[str, Any]] = []
    rejected: List[Dict[str, Any]] = []
    log_interval = max(1, len(raw_articles) // 10)

    for idx, raw in enumerate(raw_articles, start=1):
        if idx == 1 or idx == len(raw_articles) or idx % log_interval == 0:
            logger.info(
                "Process progress: %d/%d (%.1f%%) - Stored: %d, Rejected: %d",
                idx,
                len(raw_articles),
                (idx / len(raw_articles)) * 100,
                len(stored_articles),
                len(rejected),
            )

        if not isinstance(raw, dict):
            rejected.append({"index": idx, "id": None, "errors": ["Article is not a JSON object"]})
            continue

        article, errors = process_article(raw, excerpt_length=excerpt_length)
        if article is None:
            rejected.append({
                "index": idx,
                "id": raw.get("id") or raw.get("_id") or raw.get("external_id"),
                "errors": errors,
            })
            continue

        stored_articles.append(article)

    logger.info(
        "✓ Process step completed in %.2fs (stored=%d, rejected=%d)",
        time.time() - t1,
        len(stored_articles),
        len(rejected),
    )

    # ========== STEP 3: DEDUPLICATE BY id ==========
    t2 = time.time()
    logger.info("STEP 3/5: Deduplicating articles by id")

    seen_ids: set[str] = set()
    deduped: List[Dict[str, Any]] = []
    duplicate_count = 0

    for article in stored_articles:
        if article["id"] in seen_ids:
            logger.warning("Duplicate article id detected: %s. Keeping first occurrence.", article["id"])
            duplicate_count += 1
            continue
        seen_ids.add(article["id"])
        deduped.append(article)

    stored_articles = deduped
    logger.info(
        "✓ Deduplication completed in %.2fs (removed %d duplicates, kept %d unique)",
        time.time() - t2,
        duplicate_count,
        len(stored_articles),
    )

    output_paths: Dict[str, Path] = {}

    if dry_run:
        logger.info("DRY RUN: skipping write of processed and rejected articles")
        return total_raw, len(stored_articles), output_paths

    # ========== STEP 4: SAVE OUTPUTS ==========
    t3 = time.time()
    logger.info("STEP 4/5: Saving processed and rejected articles")

    suffix = f"_{run_timestamp}" if keep_history else ""
    processed_path = output_dir / f"processed{suffix}.json"
    rejected_path = output_dir / f"rejected{suffix}.json"

    try:
        _write_json(processed_path, stored_articles)
        output_paths["processed"] = processed_path
        _write_json(rejected_path, rejected)
        output_paths["rejected"] = rejected_path
        logger.info(
            "✓ Wrote %d processed / %d rejected articles to %s (%.2fs)",
            len(stored_articles),
            len(rejected),
            output_dir,
            time.time() - t3,
        )
    except Exception:
        logger.exception("Failed to save pipeline outputs")
        raise

    # ========== STEP 5: WRITE RUN METADATA ==========
    logger.info("STEP 5/5: Saving run metadata")
    _save_metadata(output_dir, run_timestamp, keep_history, {
        "input_file": str(input_path),
        "total_raw": total_raw,
        "processed": len(stored_articles),
        "rejected": len(rejected),
        "duplicates_removed": duplicate_count,
        "excerpt_length": excerpt_length,
        "outputs": {k: str(v) for k, v in output_paths.items()},
        "duration_seconds": time.time() - job_start,
    })

    logger.debug(
        "Pipeline run completed: %d raw → %d stored, %d rejected",
        total_raw,
        len(stored_articles),
        len(rejected),
    )

    return total_raw, len(stored_articles), output_paths


def _write_json(path: Path, data: Any) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def _save_metadata(
    output_dir: Path,
    run_timestamp: str,
    keep_history: bool,
    metadata: Dict[str, Any]
) -> None:
    """Save pipeline run metadata."""
    if keep_history:
        meta_filename = f"run_metadata_{run_timestamp}.json"
    else:
        meta_filename = "run_metadata.json"

    meta_path = output_dir / meta_filename
    metadata["timestamp"] = run_timestamp

    try:
        _write_json(meta_path, metadata)
        logger.info("✓ Saved: %s", meta_filename)
    except OSError:
        logger.warning("Failed to save metadata (non-fatal)", exc_info=True)


def cleanup_old_runs(output_dir: Path, keep_last_n: int = 10) -> int:
    """
    Keep only the last N timestamped pipeline runs, delete older files.

    Args:
        output_dir: Directory containing pipeline outputs
        keep_last_n: Number of recent runs to keep (default: 10)

    Returns:
        Number of files deleted

    Raises:
        ValueError: If keep_last_n is negative

    Example:
        >>> cleanup_old_runs(Path("output"), keep_last_n=5)
    """
    output_dir = Path(output_dir)
    if keep_last_n < 0:
        raise ValueError(f"keep_last_n must be >= 0, got {keep_last_n}")
    logger.info("Cleaning up old runs in %s (keeping last %d)", output_dir, keep_last_n)

    files = sorted(
        output_dir.glob("processed_*.json"),
        key=lambda x: x.stat().st_mtime,
        reverse=True,  # Most recent first
    )

    deleted_count = 0
    for old_file in files[keep_last_n:]:
        timestamp = old_file.stem.replace("processed_", "", 1)
        logger.debug("Cleaning up run: %s", timestamp)

        run_files = [
            output_dir / f"processed_{timestamp}.json",
            output_dir / f"rejected_{timestamp}.json",
            output_dir / f"run_metadata_{timestamp}.json",
        ]
        for run_file in run_files:
            if run_file.exists():
                run_file.unlink()
                deleted_count += 1

    if deleted_count > 0:
        logger.info("Cleaned up %d old files", deleted_count)
    else:
        logger.info("No old files to clean up")
    return deleted_count
