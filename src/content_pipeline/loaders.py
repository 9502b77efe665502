"""Reads article submissions for a batch run."""

import json
from pathlib import Path
from typing import List, Dict, Any

# Export formats seen in the wild wrap the list under one of these keys
WRAPPER_KEYS = ("articles", "documents", "results")


def _unwrap(data: Any, path: Path) -> Any:
    if not isinstance(data, dict):
        return data
    for key in WRAPPER_KEYS:
        if key in data:
            return data[key]
    raise ValueError(
        f"{path}: JSON object has none of the keys {', '.join(WRAPPER_KEYS)}"
    )


def load_raw_articles(path: str | Path) -> List[Dict[str, Any]]:
    """Load the list of submitted articles from ``path``.

    The file holds either a JSON array of articles or an object wrapping
    that array under ``articles``, ``documents`` or ``results`` (first key
    present wins). Entries are returned untouched; per-article checks happen
    in ``process_article``.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        ValueError: If no list of articles can be found
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    articles = _unwrap(data, path)
    if not isinstance(articles, list):
        raise ValueError(
            f"{path}: expected a list of articles, got {type(articles).__name__}"
        )
    return articles
