"""Output Validation Script

Validates that a processed-articles JSON file is safe to load into storage:
  - Required fields present and correctly typed (id, content, content_html)
  - content_html conforms to the sanitizer allow-list (sanitizing it again
    changes nothing)
  - Excerpt is plain text and within the expected length
  - Missing title/resume are reported as warnings

Usage:
    python -m content_pipeline.scripts.validate_output \\
        --path output/processed.json \\
        --max-excerpt-length 200

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Tuple, Optional

from content_pipeline.config import TRUNCATION_MARKER
from content_pipeline.sanitizer import sanitize_html
from content_pipeline.text import TAG_RE


def load_articles(path: Path) -> List[Dict[str, Any]]:
    """Load processed articles from a JSON file.

    Supports:
      - a JSON array of objects
      - newline-delimited JSON (JSONL)
    """
    with path.open("r", encoding="utf-8") as f:
        content = f.read().strip()

    # Try: full file is a single JSON array
    try:
        data = json.loads(content)
        if isinstance(data, list):
            return data
        else:
            raise ValueError("Top-level JSON is not a list of articles.")
    except json.JSONDecodeError:
        pass  # fall through to JSONL

    articles: List[Dict[str, Any]] = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Failed to parse JSON on line {line_no}: {e}"
            ) from e
        if not isinstance(obj, dict):
            raise ValueError(
                f"Line {line_no} JSON is not an object (got {type(obj)})"
            )
        articles.append(obj)

    if not articles:
        raise ValueError("No articles found in file.")

    return articles


def validate_article(
    article: Dict[str, Any],
    idx: int,
    max_excerpt_length: Optional[int],
) -> Tuple[List[str], List[str]]:
    """Validate a single processed article.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    # --- id ---
    aid = article.get("id")
    if aid is None:
        errors.append(f"[idx={idx}] missing 'id'")
    elif not isinstance(aid, str) or not aid.strip():
        errors.append(f"[idx={idx}] 'id' should be a non-empty string")

    # --- content (original Markdown) ---
    content = article.get("content")
    if content is None:
        errors.append(f"[idx={idx}] missing 'content'")
    elif not isinstance(content, str):
        errors.append(
            f"[idx={idx}] 'content' should be a string, got {type(content).__name__}"
        )

    # --- content_html ---
    html = article.get("content_html")
    if html is None:
        errors.append(f"[idx={idx}] missing 'content_html'")
    elif not isinstance(html, str):
        errors.append(
            f"[idx={idx}] 'content_html' should be a string, got {type(html).__name__}"
        )
    elif sanitize_html(html) != html:
        errors.append(f"[idx={idx}] 'content_html' is not in sanitized form")

    # --- excerpt ---
    excerpt = article.get("excerpt")
    if excerpt is None:
        errors.append(f"[idx={idx}] missing 'excerpt'")
    elif not isinstance(excerpt, str):
        errors.append(
            f"[idx={idx}] 'excerpt' should be a string, got {type(excerpt).__name__}"
        )
    else:
        if TAG_RE.search(excerpt):
            errors.append(f"[idx={idx}] 'excerpt' contains markup")
        if max_excerpt_length is not None:
            limit = max_excerpt_length + len(TRUNCATION_MARKER)
            if len(excerpt) > limit:
                errors.append(
                    f"[idx={idx}] excerpt length {len(excerpt)} > {limit}"
                )

    # Fields we *expect* but treat as WARNINGS if missing
    for key in ("title", "resume"):
        value = article.get(key)
        if not isinstance(value, str) or not value.strip():
            warnings.append(f"[idx={idx}] missing or empty '{key}'")

    return errors, warnings


def main(argv: list[str] | None = None) -> None:
    """Validate a processed-articles output file.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(
        description="Validate processed articles JSON output."
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to processed.json",
    )
    parser.add_argument(
        "--max-excerpt-length",
        type=int,
        default=None,
        help="Maximum excerpt length used for the run (e.g. 200). "
             "If not provided, excerpt length is not enforced.",
    )
    args = parser.parse_args(argv)

    path = Path(args.path)

    try:
        articles = load_articles(path)
    except (OSError, ValueError) as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    total = len(articles)
    all_errors: List[str] = []
    all_warnings: List[str] = []

    for idx, article in enumerate(articles):
        if not isinstance(article, dict):
            all_errors.append(f"[idx={idx}] article is not an object")
            continue
        errors, warnings = validate_article(article, idx, args.max_excerpt_length)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

    if all_errors:
        print("VALIDATION FAILED:\n")
        for err in all_errors:
            print(err)
        print(f"\nTotal errors: {len(all_errors)}")
        if all_warnings:
            print(f"Total warnings: {len(all_warnings)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    print(f"Total articles: {total}")
    if all_warnings:
        print("\nWarnings (non-fatal):")
        for w in all_warnings:
            print(w)
        print(f"\nTotal warnings: {len(all_warnings)}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
