"""
Tests for the classification quality analyzer.

This module tests validity checks, the subcategory format cascade, batch
coverage and the bias score, plus the flat tables exported per run.
"""

import pytest
from pathlib import Path

from award_insights.exceptions import TaxonomyMismatchError
from award_insights.models import Classification, ClassificationDocument, Taxonomy
from award_insights.schemas import CategoryDistributionSchema, SubcategoryFormatsSchema
from award_insights.scripts.text_analysis.classification_quality import (
    DEFAULT_CATEGORY_IDS, ValidIds, analyze_classifications, analyze_runs,
    batch_health, category_distribution_frame, family_prefix, is_valid_category,
    normalize_theme, resolve_valid_ids, subcategory_format, subcategory_formats_frame,
    taxonomy_ids,
)
from award_insights.scripts.data_ingestion.run_documents import discover_runs

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def taxonomy():
    return Taxonomy.model_validate({
        "categories": [
            {"id": "C1", "name": "Teamwork", "subcategories": [{"id": "C1a"}, {"id": "C1b"}]},
            {"id": "C2", "name": "Delivery", "subcategories": [{"id": "C2a"}]},
            {"id": "C3", "name": "Customer Focus", "subcategories": [{"id": "C3a"}]},
        ]
    })


@pytest.fixture
def ids(taxonomy):
    return taxonomy_ids(taxonomy)


def _document(classifications, total_messages=None, total_classified=None, batch_size=0, **extra):
    total = len(classifications)
    return ClassificationDocument.model_validate({
        "metadata": {
            "total_messages": total if total_messages is None else total_messages,
            "total_classified": total if total_classified is None else total_classified,
            "batch_size": batch_size,
        },
        "classifications": classifications,
        **extra,
    })


class TestValidIds:
    """Test identifier extraction and the fallback taxonomy."""

    def test_taxonomy_ids(self, ids):
        """Test category order and subcategory ownership."""
        assert ids.categories == ["C1", "C2", "C3"]
        assert ids.subcategory_owner == {"C1a": "C1", "C1b": "C1", "C2a": "C2", "C3a": "C3"}
        assert not ids.used_fallback

    def test_empty_taxonomy_raises(self):
        """Test that a taxonomy without categories is a mismatch."""
        with pytest.raises(TaxonomyMismatchError):
            taxonomy_ids(Taxonomy(categories=[]))

    def test_missing_taxonomy_falls_back(self):
        """Test that no taxonomy yields the default identifier set."""
        ids = resolve_valid_ids(None)

        assert ids.categories == list(DEFAULT_CATEGORY_IDS)
        assert ids.subcategory_owner == {}
        assert ids.used_fallback

    def test_mismatched_taxonomy_falls_back(self):
        """Test that a taxonomy of blank identifiers degrades to the fallback."""
        ids = resolve_valid_ids(Taxonomy.model_validate({"categories": [{"id": "  "}]}), ["X1", "X2"])

        assert ids.categories == ["X1", "X2"]
        assert ids.used_fallback

    def test_category_validity_trims(self, ids):
        """Test that validity is checked after trimming."""
        assert is_valid_category(" C1 ", ids)
        assert not is_valid_category("c1", ids)
        assert not is_valid_category(None, ids)
        assert not is_valid_category("", ids)

    def test_family_prefix(self):
        assert family_prefix("C1a") == "C1"
        assert family_prefix("C10bc") == "C10"
        assert family_prefix("C2") == "C2"


class TestSubcategoryFormat:
    """Test the ordered subcategory format cascade."""

    @pytest.mark.parametrize("value,own,expected", [
        ("C1a", "C1", "Correct"),
        (" C1a ", "C1", "Correct"),
        ("C2a", "C1", "Correct"),
        (None, "C1", "Null/Empty"),
        ("", "C1", "Null/Empty"),
        ("null", "C1", "Null/Empty"),
        ("None", "C1", "Null/Empty"),
        ("N/A", "C1", "Null/Empty"),
        ("A", "C1", "Letter only"),
        ("A1", "C1", "Letter+number"),
        ("C1", "C1", "Letter+number"),
        ("A1b", "C1", "Alt prefix"),
        ("C7a", "C1", "Alt prefix"),
        ("b", "C1", "Lowercase letter"),
        ("C2-a", "C1", "Wrong category prefix"),
        ("C1-a", "C1", "Other/Unrecognized"),
        ("teamwork", "C1", "Other/Unrecognized"),
    ])
    def test_cascade(self, ids, value, own, expected):
        """Test one value per cascade bucket."""
        assert subcategory_format(value, own, ids) == expected

    def test_category_id_as_subcategory(self):
        """Test a multi-digit category identifier used as a subcategory."""
        ids = ValidIds(categories=["C10", "C11"], subcategory_owner={"C10a": "C10", "C11a": "C11"}, used_fallback=False)

        assert subcategory_format("C10", "C10", ids) == "Category ID as subcategory"
        assert subcategory_format("C11z", "C10", ids) == "Wrong category prefix"
        assert subcategory_format("C10z", "C10", ids) == "Other/Unrecognized"

    def test_without_known_subcategories(self):
        """Test that the fallback taxonomy never reports a correct subcategory."""
        ids = resolve_valid_ids(None)

        assert subcategory_format("C1a", "C1", ids) == "Alt prefix"
        assert subcategory_format("C1-x", "C1", ids) == "Other/Unrecognized"


class TestBatchHealth:
    """Test batch coverage checks."""

    def test_missing_batches(self, ids):
        """Test that unobserved batches in the expected range are reported."""
        classifications = [
            Classification(batch=0, category="C1"),
            Classification(batch=0, category="bad"),
            Classification(batch=2, category="C2"),
        ]

        health, missing = batch_health(classifications, ids, total_messages=10, batch_size=3)

        assert missing == [1, 3]
        assert [(h.batch, h.classified, h.malformed, h.expected) for h in health] == [(0, 2, 1, 3), (2, 1, 0, 3)]

    def test_without_batch_size(self, ids):
        """Test that only observed batches are reported without a batch size."""
        classifications = [Classification(batch=4, category="C1"), Classification(batch=None, category="C1")]

        health, missing = batch_health(classifications, ids, total_messages=10, batch_size=0)

        assert missing == []
        assert [h.batch for h in health] == [4]


class TestAnalyzeClassifications:
    """Test the full per-run analysis."""

    def test_bias_score_single_category(self):
        """Test that all classifications in one of two categories give a 100% bias."""
        taxonomy = Taxonomy.model_validate({"categories": [{"id": "A"}, {"id": "B"}]})
        document = _document([{"batch": 0, "category": "A"} for _ in range(10)])

        analysis = analyze_classifications(document, taxonomy)

        assert analysis.bias_score == 100.0
        assert analysis.bias_category == "A"

    def test_distribution_and_malformed(self, taxonomy):
        """Test per-category counts, invalid buckets and the malformed rate."""
        document = _document([
            {"category": "C1"}, {"category": "C1"}, {"category": " C2 "},
            {"category": "C9"}, {"category": ""}, {"category": None},
        ], total_messages=8)

        analysis = analyze_classifications(document, taxonomy)
        rows = {row.category: row for row in analysis.category_distribution}

        assert rows["C1"].count == 2 and rows["C1"].is_valid
        assert rows["C2"].count == 1
        assert rows["C9"].count == 1 and not rows["C9"].is_valid
        assert rows["(empty)"].count == 2 and not rows["(empty)"].is_valid
        assert analysis.malformed_count == 3
        assert analysis.malformed_pct == 50.0
        assert analysis.success_rate == 75.0
        assert sum(row.pct for row in analysis.category_distribution) == pytest.approx(100.0, abs=0.1)

    def test_many_small_buckets_sum_to_hundred(self):
        """Test that rounding leftovers go to the largest remainders so shares total 100."""
        taxonomy = Taxonomy.model_validate({"categories": [{"id": "C1"}]})
        document = _document([{"category": f"X{i}"} for i in range(17)])

        analysis = analyze_classifications(document, taxonomy)
        shares = [row.pct for row in analysis.category_distribution]

        assert len(shares) == 17
        assert sum(shares) == pytest.approx(100.0, abs=1e-6)
        assert shares[:14] == [5.9] * 14
        assert shares[14:] == [5.8] * 3

    def test_empty_document(self, taxonomy):
        """Test that no classifications give zero rates without errors."""
        analysis = analyze_classifications(_document([], total_messages=0), taxonomy)

        assert analysis.success_rate == 0.0
        assert analysis.malformed_pct == 0.0
        assert analysis.bias_score == 0.0
        assert analysis.category_distribution == []

    def test_format_examples_and_null_count(self, taxonomy):
        """Test that each bucket keeps its first example."""
        document = _document([
            {"category": "C1", "subcategory": "C1a"},
            {"category": "C1", "subcategory": None},
            {"category": "C1", "subcategory": "N/A"},
            {"category": "C1", "subcategory": "x"},
        ])

        analysis = analyze_classifications(document, taxonomy)
        formats = {row.format: row for row in analysis.subcategory_formats}

        assert formats["Null/Empty"].count == 2
        assert formats["Null/Empty"].example == "(null)"
        assert formats["Lowercase letter"].example == "x"
        assert analysis.subcategory_null_count == 2
        assert sum(row.count for row in analysis.subcategory_formats) == 4

    def test_themes_and_candidates(self, taxonomy):
        """Test theme normalization and candidates counted from new_category."""
        document = _document([
            {"category": "C1", "themes": ["Peer_Support", "peer support"], "new_category": "Mentorship"},
            {"category": "C1", "themes": ["  ", "Delivery"], "new_category": " Mentorship "},
            {"category": "C1", "themes": [], "new_category": "Wellbeing"},
        ])

        analysis = analyze_classifications(document, taxonomy, top_themes=5)

        assert [(t.theme, t.count) for t in analysis.top_themes] == [("peer support", 2), ("delivery", 1)]
        assert [(c.name, c.count) for c in analysis.candidate_categories] == [("Mentorship", 2), ("Wellbeing", 1)]

    def test_declared_candidates_preferred(self, taxonomy):
        """Test that a document's own candidate table wins over new_category values."""
        document = _document(
            [{"category": "C1", "new_category": "Ignored"}],
            candidate_categories={"Creativity": 3, "Mentorship": 5},
        )

        analysis = analyze_classifications(document, taxonomy)

        assert [(c.name, c.count) for c in analysis.candidate_categories] == [("Mentorship", 5), ("Creativity", 3)]

    def test_fallback_taxonomy_flagged(self):
        """Test that analysis without a taxonomy records the fallback."""
        analysis = analyze_classifications(_document([{"category": "C4"}]))

        assert analysis.used_fallback_taxonomy
        assert analysis.malformed_count == 0
        assert analysis.valid_categories == list(DEFAULT_CATEGORY_IDS)

    def test_normalize_theme(self):
        assert normalize_theme("  Team_Work ") == "team work"
        assert normalize_theme("_") == ""


class TestSampleRuns:
    """Test the analysis of the sample pipeline runs."""

    @pytest.fixture
    def analyses(self):
        return analyze_runs(discover_runs(DATA_DIR / "runs"))

    def test_run_a(self, analyses):
        """Test the first sample run against hand-computed figures."""
        analysis = analyses["runA"]

        assert analysis.success_rate == 90.0
        assert analysis.malformed_count == 2
        assert analysis.malformed_pct == 22.2
        assert analysis.bias_score == 33.3
        assert analysis.bias_category == "C1"
        assert analysis.missing_batches == []
        assert analysis.top_themes[0].theme == "peer support"
        assert analysis.top_themes[0].count == 3
        assert [c.name for c in analysis.candidate_categories] == ["Creativity", "Mentorship"]

    def test_run_b(self, analyses):
        """Test the second sample run with a wrapped taxonomy and a missing batch."""
        analysis = analyses["runB"]

        assert analysis.success_rate == 60.0
        assert analysis.valid_categories == ["C1", "C2"]
        assert analysis.missing_batches == [1]
        formats = {row.format: row.count for row in analysis.subcategory_formats}
        assert formats == {"Correct": 3, "Letter+number": 1, "Lowercase letter": 1, "Null/Empty": 1}

    def test_frames_match_schemas(self, analyses):
        """Test the exported flat tables."""
        distribution = category_distribution_frame(analyses)
        formats = subcategory_formats_frame(analyses)

        CategoryDistributionSchema.validate(distribution)
        SubcategoryFormatsSchema.validate(formats)
        assert set(distribution["pipeline"]) == {"runA", "runB"}

    def test_empty_frames_match_schemas(self):
        """Test that no runs still give valid, empty tables."""
        CategoryDistributionSchema.validate(category_distribution_frame({}))
        SubcategoryFormatsSchema.validate(subcategory_formats_frame({}))
