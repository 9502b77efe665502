# tests/test_validate_output.py

"""
Tests for the processed-articles output validator.

These tests verify that `validate_output.py` correctly detects valid,
invalid, and edge-case processed article files.
"""

import json
from pathlib import Path

import pytest

from content_pipeline.scripts.validate_output import (
    load_articles,
    validate_article,
    main as validate_main,
)


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------


def make_valid_article(idx: int = 0):
    """Create a minimal valid stored article for reuse in tests."""
    return {
        "id": f"art-{idx}",
        "title": f"Article {idx}",
        "resume": f"Summary {idx}",
        "content": f"Body **{idx}**",
        "content_html": f"<p>Body <strong>{idx}</strong></p>",
        "excerpt": f"Body {idx}",
        "picture_url": None,
        "category_ids": [],
        "is_headline": False,
    }


def write_articles(path: Path, articles):
    path.write_text(json.dumps(articles), encoding="utf-8")
    return path


# -------------------------------------------------------------------
# Unit tests for validate_article
# -------------------------------------------------------------------


def test_valid_article_has_no_errors_or_warnings():
    errors, warnings = validate_article(make_valid_article(), 0, max_excerpt_length=200)

    assert errors == []
    assert warnings == []


def test_missing_required_fields_are_errors():
    article = make_valid_article()
    del article["id"]
    del article["content_html"]
    del article["excerpt"]

    errors, _ = validate_article(article, 3, max_excerpt_length=None)

    assert "[idx=3] missing 'id'" in errors
    assert "[idx=3] missing 'content_html'" in errors
    assert "[idx=3] missing 'excerpt'" in errors


def test_unsanitized_html_is_an_error():
    article = make_valid_article()
    article["content_html"] = '<p onclick="x()">Body</p><script>alert(1)</script>'

    errors, _ = validate_article(article, 0, max_excerpt_length=None)

    assert errors == ["[idx=0] 'content_html' is not in sanitized form"]


def test_excerpt_with_markup_is_an_error():
    article = make_valid_article()
    article["excerpt"] = "<b>Body</b>"

    errors, _ = validate_article(article, 0, max_excerpt_length=None)

    assert errors == ["[idx=0] 'excerpt' contains markup"]


def test_excerpt_length_allows_marker():
    article = make_valid_article()
    article["excerpt"] = "a" * 10 + "..."

    errors, _ = validate_article(article, 0, max_excerpt_length=10)
    assert errors == []

    article["excerpt"] = "a" * 11 + "..."
    errors, _ = validate_article(article, 0, max_excerpt_length=10)
    assert errors == ["[idx=0] excerpt length 14 > 13"]


def test_missing_title_and_resume_are_warnings():
    article = make_valid_article()
    article["title"] = ""
    del article["resume"]

    errors, warnings = validate_article(article, 1, max_excerpt_length=None)

    assert errors == []
    assert warnings == [
        "[idx=1] missing or empty 'title'",
        "[idx=1] missing or empty 'resume'",
    ]


def test_wrong_types_are_errors():
    article = make_valid_article()
    article["id"] = 5
    article["content"] = ["not", "a", "string"]

    errors, _ = validate_article(article, 0, max_excerpt_length=None)

    assert "[idx=0] 'id' should be a non-empty string" in errors
    assert "[idx=0] 'content' should be a string, got list" in errors


# -------------------------------------------------------------------
# load_articles
# -------------------------------------------------------------------


def test_load_articles_json_array(tmp_path):
    path = write_articles(tmp_path / "a.json", [make_valid_article(0), make_valid_article(1)])

    assert len(load_articles(path)) == 2


def test_load_articles_jsonl(tmp_path):
    path = tmp_path / "a.jsonl"
    path.write_text(
        "\n".join(json.dumps(make_valid_article(i)) for i in range(3)) + "\n",
        encoding="utf-8",
    )

    assert [a["id"] for a in load_articles(path)] == ["art-0", "art-1", "art-2"]


def test_load_articles_rejects_top_level_object(tmp_path):
    path = tmp_path / "a.json"
    path.write_text(json.dumps({"articles": []}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_articles(path)


# -------------------------------------------------------------------
# main()
# -------------------------------------------------------------------


def test_main_passes_on_valid_file(tmp_path, capsys):
    path = write_articles(tmp_path / "ok.json", [make_valid_article(0)])

    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(path), "--max-excerpt-length", "200"])

    assert excinfo.value.code == 0
    assert "VALIDATION PASSED" in capsys.readouterr().out


def test_main_fails_on_invalid_file(tmp_path, capsys):
    bad = make_valid_article(0)
    bad["content_html"] = '<a href="javascript:alert(1)">x</a>'
    path = write_articles(tmp_path / "bad.json", [bad])

    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(path)])

    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "VALIDATION FAILED" in out
    assert "not in sanitized form" in out


def test_main_fails_on_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(tmp_path / "missing.json")])

    assert excinfo.value.code == 1
    assert "FAILED TO LOAD FILE" in capsys.readouterr().out
