# tests/test_pipeline_integration.py

import json
import os
from pathlib import Path

import pytest

from content_pipeline import pipeline as pipeline_mod

FIXTURES = Path(__file__).parent / "fixtures"


def test_pipeline_processes_fixture_file(tmp_path: Path):
    """
    End-to-end happy path on the small fixture file.

    - 4 raw articles: 2 valid, 1 with an event handler, 1 without a title
    - Assert counts, output files and the content of stored articles.
    """
    output_dir = tmp_path / "output"

    total_raw, stored_count, output_paths = pipeline_mod.run_pipeline(
        input_path=FIXTURES / "articles_small.json",
        output_dir=output_dir,
        keep_history=False,
    )

    assert total_raw == 4
    assert stored_count == 2
    assert output_paths["processed"] == output_dir / "processed.json"
    assert output_paths["rejected"] == output_dir / "rejected.json"
    assert (output_dir / "run_metadata.json").exists()

    stored = json.loads(output_paths["processed"].read_text(encoding="utf-8"))
    assert [a["id"] for a in stored] == ["art-1", "art-2"]

    budget = stored[0]
    assert "<h1>Budget approved</h1>" in budget["content_html"]
    assert "<br>" in budget["content_html"]
    assert 'href="https://example.com/report"' in budget["content_html"]
    assert budget["content"].startswith("# Budget approved")
    assert budget["resume"] == "The council voted 7-2 in favour of the plan."
    assert budget["category_ids"] == ["local", "politics"]
    assert budget["is_headline"] is True

    weather = stored[1]
    assert "<s>rain</s>" in weather["content_html"]
    assert "<table>" in weather["content_html"]
    assert weather["excerpt"].startswith("Expect rain sunshine on Saturday & Sunday.")
    assert weather["resume"] == weather["excerpt"]
    assert weather["category_ids"] == ["weather"]

    rejected = json.loads(output_paths["rejected"].read_text(encoding="utf-8"))
    assert [r["id"] for r in rejected] == ["art-3", "art-4"]
    assert rejected[0]["errors"][0].startswith("Content contains potentially dangerous code")
    assert rejected[1]["errors"] == ["Article title cannot be empty"]

    metadata = json.loads((output_dir / "run_metadata.json").read_text(encoding="utf-8"))
    assert metadata["total_raw"] == 4
    assert metadata["processed"] == 2
    assert metadata["rejected"] == 2


def test_pipeline_deduplicates_by_id(tmp_path: Path):
    docs = [
        {"id": "dup", "title": "First", "content": "First body"},
        {"id": "dup", "title": "Second", "content": "Second body"},
        {"id": "other", "title": "Other", "content": "Other body"},
    ]
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps({"articles": docs}), encoding="utf-8")

    total_raw, stored_count, output_paths = pipeline_mod.run_pipeline(
        input_path=input_path,
        output_dir=tmp_path / "out",
        keep_history=False,
    )

    assert total_raw == 3
    assert stored_count == 2
    stored = json.loads(output_paths["processed"].read_text(encoding="utf-8"))
    assert stored[0]["title"] == "First"


def test_pipeline_limit(tmp_path: Path):
    docs = [{"id": str(i), "title": f"T{i}", "content": f"Body {i}"} for i in range(5)]
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps(docs), encoding="utf-8")

    total_raw, stored_count, _ = pipeline_mod.run_pipeline(
        input_path=input_path,
        output_dir=tmp_path / "out",
        limit=2,
        keep_history=False,
    )

    assert total_raw == 5
    assert stored_count == 2


def test_pipeline_dry_run_writes_nothing(tmp_path: Path):
    output_dir = tmp_path / "output"

    total_raw, stored_count, output_paths = pipeline_mod.run_pipeline(
        input_path=FIXTURES / "articles_small.json",
        output_dir=output_dir,
        dry_run=True,
    )

    assert total_raw == 4
    assert stored_count == 2
    assert output_paths == {}
    assert not output_dir.exists()


def test_pipeline_keep_history_uses_timestamped_names(tmp_path: Path):
    output_dir = tmp_path / "output"

    _, _, output_paths = pipeline_mod.run_pipeline(
        input_path=FIXTURES / "articles_small.json",
        output_dir=output_dir,
        keep_history=True,
    )

    assert output_paths["processed"].name.startswith("processed_")
    assert output_paths["rejected"].name.startswith("rejected_")
    assert len(list(output_dir.glob("run_metadata_*.json"))) == 1


def test_pipeline_non_object_entries_are_rejected(tmp_path: Path):
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps(["not an article", {"id": "x", "title": "T", "content": "ok"}]), encoding="utf-8")

    _, stored_count, output_paths = pipeline_mod.run_pipeline(
        input_path=input_path,
        output_dir=tmp_path / "out",
        keep_history=False,
    )

    assert stored_count == 1
    rejected = json.loads(output_paths["rejected"].read_text(encoding="utf-8"))
    assert rejected == [{"index": 1, "id": None, "errors": ["Article is not a JSON object"]}]


def test_pipeline_missing_input_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        pipeline_mod.run_pipeline(
            input_path=tmp_path / "missing.json",
            output_dir=tmp_path / "out",
        )


def test_pipeline_invalid_json_raises(tmp_path: Path):
    input_path = tmp_path / "bad.json"
    input_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(json.JSONDecodeError):
        pipeline_mod.run_pipeline(input_path=input_path, output_dir=tmp_path / "out")


def test_cleanup_old_runs_keeps_most_recent(tmp_path: Path):
    for i, ts in enumerate(["20250101_000000", "20250102_000000", "20250103_000000"]):
        for prefix in ("processed", "rejected", "run_metadata"):
            path = tmp_path / f"{prefix}_{ts}.json"
            path.write_text("[]", encoding="utf-8")
            os.utime(path, (1_700_000_000 + i * 100, 1_700_000_000 + i * 100))
    (tmp_path / "processed.json").write_text("[]", encoding="utf-8")

    deleted = pipeline_mod.cleanup_old_runs(tmp_path, keep_last_n=1)

    assert deleted == 6
    remaining = sorted(p.name for p in tmp_path.iterdir())
    assert remaining == [
        "processed.json",
        "processed_20250103_000000.json",
        "rejected_20250103_000000.json",
        "run_metadata_20250103_000000.json",
    ]


def test_cleanup_old_runs_rejects_negative_count(tmp_path: Path):
    path = tmp_path / "processed_20250101_000000.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError):
        pipeline_mod.cleanup_old_runs(tmp_path, keep_last_n=-1)

    assert path.exists()


def test_pipeline_wrapped_non_list_raises(tmp_path: Path):
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps({"articles": {"id": "1"}}), encoding="utf-8")

    with pytest.raises(ValueError):
        pipeline_mod.run_pipeline(input_path=input_path, output_dir=tmp_path / "out")
