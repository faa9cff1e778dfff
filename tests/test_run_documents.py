"""
Tests for loading pipeline run documents from disk.
"""

import json

import pytest
from pathlib import Path

from award_insights.models import Classification, ClassificationMetadata, TaxonomyCategory
from award_insights.scripts.data_ingestion.run_documents import (
    LEGACY_RUN_NAME, discover_runs, load_pipeline_run, parse_classification_document,
    parse_run_summary, parse_taxonomy,
)

DATA_DIR = Path(__file__).parent / "data"


def _write_json(path: Path, document) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")


class TestDocumentParsing:
    """Test parsing of individual run documents."""

    def test_taxonomy_wrapper_unwrapped(self):
        """Test that the legacy final_taxonomy wrapper is transparent."""
        inner = {"categories": [{"id": "C1", "name": "Teamwork", "subcategories": [{"id": "C1a"}]}]}

        wrapped = parse_taxonomy({"final_taxonomy": inner})
        plain = parse_taxonomy(inner)

        assert wrapped == plain
        assert wrapped.category_ids == ["C1"]
        assert wrapped.subcategory_ids == ["C1a"]

    def test_taxonomy_must_be_object(self):
        with pytest.raises(ValueError):
            parse_taxonomy(["C1", "C2"])

    def test_taxonomy_tolerates_nulls(self):
        """Test that null names, descriptions and subcategory lists are accepted."""
        taxonomy = parse_taxonomy({"categories": [{"id": 7, "name": None, "subcategories": None}]})

        assert taxonomy.categories[0] == TaxonomyCategory(id="7")

    def test_classification_document(self):
        """Test metadata and per-message parsing of odd upstream values."""
        document = parse_classification_document({
            "metadata": {"total_messages": 4, "total_classified": None, "batch_size": 2, "model": "m"},
            "classifications": [
                {"batch": "1", "category": 3, "subcategory": None, "themes": "teamwork"},
                {"batch": "x", "category": "C1", "themes": [None, "delivery"]},
            ],
            "candidate_categories": None,
        })

        assert document.metadata == ClassificationMetadata(total_messages=4, total_classified=0, batch_size=2, model="m")
        assert document.classifications[0] == Classification(batch=1, category="3", themes=["teamwork"])
        assert document.classifications[1].batch is None
        assert document.classifications[1].themes == ["delivery"]
        assert document.candidate_categories == {}

    def test_run_summary(self):
        summary = parse_run_summary({"pipeline": {"total_time_seconds": 12.5, "phases_run": [1]}, "results": {}})

        assert summary.pipeline.total_time_seconds == 12.5
        assert summary.results.candidates_found == 0


class TestDiscoverRuns:
    """Test discovery of run directories."""

    def test_sample_runs(self):
        """Test that the sample runs load sorted by name with their documents."""
        runs = discover_runs(DATA_DIR / "runs")

        assert [run.name for run in runs] == ["runA", "runB"]
        assert runs[0].summary is not None
        assert runs[0].summary.pipeline.total_time_seconds == 42.5
        assert runs[1].summary is None
        assert runs[1].taxonomy.category_ids == ["C1", "C2"]

    def test_missing_directory(self, tmp_path):
        """Test that a missing or unset directory yields no runs."""
        assert discover_runs(tmp_path / "absent") == []
        assert discover_runs(None) == []

    def test_invalid_document_skipped(self, tmp_path):
        """Test that an unreadable document is skipped while the run still loads."""
        (tmp_path / "run1").mkdir()
        (tmp_path / "run1" / "final_taxonomy.json").write_text("{not json", encoding="utf-8")
        _write_json(tmp_path / "run1" / "phase_2_results.json", {"classifications": []})

        runs = discover_runs(tmp_path)

        assert len(runs) == 1
        assert runs[0].taxonomy is None
        assert runs[0].classifications is not None

    def test_directories_without_documents_ignored(self, tmp_path):
        """Test that sub-directories holding no run files are not runs."""
        (tmp_path / "notes").mkdir()
        _write_json(tmp_path / "run1" / "pipeline_summary.json", {"pipeline": {"total_time_seconds": 1}})

        runs = discover_runs(tmp_path)

        assert [run.name for run in runs] == ["run1"]

    def test_legacy_single_run_layout(self, tmp_path):
        """Test that documents placed directly in the runs directory form the default run."""
        _write_json(tmp_path / "final_taxonomy.json", {"categories": [{"id": "C1"}]})
        _write_json(tmp_path / "phase_2_results.json", {"classifications": [{"category": "C1"}]})

        runs = discover_runs(tmp_path)

        assert [run.name for run in runs] == [LEGACY_RUN_NAME]

    def test_legacy_summary_alone_is_not_a_run(self, tmp_path):
        """Test that a lone summary document does not make a default run."""
        _write_json(tmp_path / "pipeline_summary.json", {"pipeline": {"total_time_seconds": 1}})

        assert discover_runs(tmp_path) == []

    def test_load_pipeline_run_empty_directory(self, tmp_path):
        assert load_pipeline_run(tmp_path) is None
