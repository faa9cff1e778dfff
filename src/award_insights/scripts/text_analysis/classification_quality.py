"""
Quality assessment of a classification pipeline's per-message output.

Checks each classification against the run's taxonomy and scores malformed
categories, category bias, subcategory format consistency and batch
coverage. Invalid values are counted and bucketed, never raised.
"""

import logging
import math
import re
from collections import Counter
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from ...exceptions import TaxonomyMismatchError
from ...models import (
    BatchHealth, CandidateCategory, Classification, ClassificationAnalysis,
    ClassificationDocument, CategoryCount, PipelineRun, SubcategoryFormat,
    Taxonomy, ThemeCount,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_IDS = ("C1", "C2", "C3", "C4", "C5", "C6")
EMPTY_CATEGORY_LABEL = "(empty)"
NULL_EXAMPLE = "(null)"
NULL_SUBCATEGORY_VALUES = {"null", "None", "N/A"}

# Subcategory format labels, in cascade order
FORMAT_CORRECT = "Correct"
FORMAT_NULL = "Null/Empty"
FORMAT_LETTER = "Letter only"
FORMAT_LETTER_NUMBER = "Letter+number"
FORMAT_ALT_PREFIX = "Alt prefix"
FORMAT_LOWERCASE = "Lowercase letter"
FORMAT_CATEGORY_ID = "Category ID as subcategory"
FORMAT_WRONG_PREFIX = "Wrong category prefix"
FORMAT_OTHER = "Other/Unrecognized"

PATTERN_FORMATS = [
    (re.compile(r"[A-Z]"), FORMAT_LETTER),
    (re.compile(r"[A-Z]\d"), FORMAT_LETTER_NUMBER),
    (re.compile(r"[A-Z]\d[a-z]"), FORMAT_ALT_PREFIX),
    (re.compile(r"[a-z]"), FORMAT_LOWERCASE),
]

_FAMILY_SUFFIX = re.compile(r"[a-z]+$")


class ValidIds(NamedTuple):
    """Identifier sets a run's classifications are checked against."""
    categories: List[str]
    subcategory_owner: Dict[str, str]
    used_fallback: bool

    @property
    def category_set(self) -> set:
        return set(self.categories)


def family_prefix(subcategory_id: str) -> str:
    """Strip trailing lowercase letters: "C1a" -> "C1"."""
    return _FAMILY_SUFFIX.sub("", subcategory_id)


def taxonomy_ids(taxonomy: Taxonomy) -> ValidIds:
    """
    Collect trimmed category and subcategory identifiers from a taxonomy.

    Raises:
        TaxonomyMismatchError: If the taxonomy has no usable category
    """
    categories = []
    owner: Dict[str, str] = {}
    for category in taxonomy.categories:
        category_id = category.id.strip()
        if not category_id:
            continue
        if category_id not in categories:
            categories.append(category_id)
        for sub in category.subcategories:
            sub_id = sub.id.strip()
            if sub_id:
                owner.setdefault(sub_id, category_id)

    if not categories:
        raise TaxonomyMismatchError("Taxonomy has no valid categories")
    return ValidIds(categories=categories, subcategory_owner=owner, used_fallback=False)


def resolve_valid_ids(
    taxonomy: Optional[Taxonomy],
    default_categories: Sequence[str] = DEFAULT_CATEGORY_IDS,
) -> ValidIds:
    """Identifier sets from the taxonomy, or the default category set without subcategories."""
    fallback = ValidIds(categories=list(default_categories), subcategory_owner={}, used_fallback=True)
    if taxonomy is None:
        return fallback
    try:
        return taxonomy_ids(taxonomy)
    except TaxonomyMismatchError as e:
        logger.warning(f"{e}; falling back to default categories {', '.join(default_categories)}")
        return fallback


def is_valid_category(category: Optional[str], ids: ValidIds) -> bool:
    return bool(category) and category.strip() in ids.category_set


def subcategory_format(value: Optional[str], own_category: Optional[str], ids: ValidIds) -> str:
    """
    Classify a subcategory value's format.

    Checks run in a fixed order; the first that holds wins.

    Args:
        value: Raw subcategory value
        own_category: Category assigned to the same message
        ids: Valid identifier sets for the run

    Returns:
        Format label
    """
    s = value.strip() if value is not None else ""

    if s and s in ids.subcategory_owner:
        return FORMAT_CORRECT
    if not s or s in NULL_SUBCATEGORY_VALUES:
        return FORMAT_NULL
    for pattern, label in PATTERN_FORMATS:
        if pattern.fullmatch(s):
            return label

    prefixes = {sub_id: family_prefix(sub_id) for sub_id in ids.subcategory_owner}
    if s in prefixes.values():
        return FORMAT_CATEGORY_ID

    own = (own_category or "").strip()
    for sub_id, prefix in prefixes.items():
        if ids.subcategory_owner[sub_id] != own and prefix and s.startswith(prefix) and len(s) > len(prefix):
            return FORMAT_WRONG_PREFIX

    return FORMAT_OTHER


def _percent(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def _shares(counts: Sequence[int]) -> List[float]:
    """
    One-decimal percentages of ``counts`` that sum to exactly 100.

    Each share is floored to a tenth of a percent and the leftover tenths go
    to the largest remainders, ties resolved in input order.
    """
    total = sum(counts)
    if not total:
        return [0.0 for _ in counts]
    floors = [count * 1000 // total for count in counts]
    remainders = [count * 1000 % total for count in counts]
    leftover = 1000 - sum(floors)
    for index in sorted(range(len(counts)), key=lambda i: -remainders[i])[:leftover]:
        floors[index] += 1
    return [tenths / 10 for tenths in floors]


def _ranked(counts: Dict) -> List[Tuple]:
    return sorted(counts.items(), key=lambda item: -item[1])


def category_distribution(
    classifications: Sequence[Classification],
    ids: ValidIds,
) -> Tuple[List[CategoryCount], int]:
    """Per-category counts with invalid values bucketed individually; returns (rows, malformed)."""
    counts: Dict[str, int] = {}
    malformed = 0
    for c in classifications:
        category = (c.category or "").strip()
        if category in ids.category_set:
            key = category
        else:
            key = category or EMPTY_CATEGORY_LABEL
            malformed += 1
        counts[key] = counts.get(key, 0) + 1

    ranked = _ranked(counts)
    rows = [
        CategoryCount(
            category=category,
            count=count,
            pct=pct,
            is_valid=category in ids.category_set,
        )
        for (category, count), pct in zip(ranked, _shares([count for _, count in ranked]))
    ]
    return rows, malformed


def subcategory_formats(
    classifications: Sequence[Classification],
    ids: ValidIds,
) -> Tuple[List[SubcategoryFormat], int]:
    """Format bucket counts with the first example of each; returns (rows, null count)."""
    buckets: Dict[str, Dict] = {}
    for c in classifications:
        label = subcategory_format(c.subcategory, c.category, ids)
        if label not in buckets:
            buckets[label] = {"count": 0, "example": c.subcategory or NULL_EXAMPLE}
        buckets[label]["count"] += 1

    rows = sorted(
        (SubcategoryFormat(format=label, count=b["count"], example=b["example"]) for label, b in buckets.items()),
        key=lambda row: -row.count,
    )
    null_count = buckets.get(FORMAT_NULL, {}).get("count", 0)
    return rows, null_count


def batch_health(
    classifications: Sequence[Classification],
    ids: ValidIds,
    total_messages: int,
    batch_size: int,
) -> Tuple[List[BatchHealth], List[int]]:
    """
    Per-batch classified/malformed counts and the list of missing batches.

    The expected batches are ``0 .. ceil(total_messages / batch_size) - 1``.
    Without a positive batch size only the observed batches are reported.
    """
    observed: Dict[int, List[int]] = {}
    for c in classifications:
        if c.batch is None:
            continue
        stats = observed.setdefault(c.batch, [0, 0])
        stats[0] += 1
        if not is_valid_category(c.category, ids):
            stats[1] += 1

    if batch_size > 0:
        expected = range(math.ceil(total_messages / batch_size))
    else:
        expected = sorted(observed)

    health = []
    missing = []
    for batch in expected:
        if batch in observed:
            classified, malformed = observed[batch]
            health.append(BatchHealth(batch=batch, classified=classified, malformed=malformed, expected=batch_size))
        else:
            missing.append(batch)
    return health, missing


def normalize_theme(theme: str) -> str:
    return theme.strip().lower().replace("_", " ").strip()


def theme_frequencies(classifications: Iterable[Classification], top_n: int = 20) -> List[ThemeCount]:
    counts: Counter = Counter()
    for c in classifications:
        for theme in c.themes:
            normalized = normalize_theme(theme)
            if normalized:
                counts[normalized] += 1
    return [ThemeCount(theme=t, count=n) for t, n in _ranked(counts)[:top_n]]


def candidate_frequencies(document: ClassificationDocument) -> List[CandidateCategory]:
    """Proposed new categories; counted from ``new_category`` when the document lists none."""
    if document.candidate_categories:
        counts = dict(document.candidate_categories)
    else:
        counts = Counter(
            c.new_category.strip()
            for c in document.classifications
            if c.new_category and c.new_category.strip()
        )
    return [CandidateCategory(name=name, count=count) for name, count in _ranked(counts)]


def bias_score(distribution: Sequence[CategoryCount], total: int, valid_category_count: int) -> Tuple[float, str]:
    """
    Excess of the most frequent valid category over a uniform share, as a percent.

    Returns:
        (score, category); (0.0, "") when no valid category was assigned
    """
    top = next((row for row in distribution if row.is_valid), None)
    if top is None or not total or not valid_category_count:
        return 0.0, ""
    expected = total / valid_category_count
    return round((top.count / expected - 1) * 100, 1), top.category


def analyze_classifications(
    document: ClassificationDocument,
    taxonomy: Optional[Taxonomy] = None,
    default_categories: Sequence[str] = DEFAULT_CATEGORY_IDS,
    top_themes: int = 20,
) -> ClassificationAnalysis:
    """
    Score one run's classifications against its taxonomy.

    Args:
        document: Classification document with metadata and per-message rows
        taxonomy: The run's taxonomy; None or an empty taxonomy falls back
            to ``default_categories`` with no known subcategories
        default_categories: Fallback category identifiers
        top_themes: Size of the theme frequency table

    Returns:
        ClassificationAnalysis
    """
    ids = resolve_valid_ids(taxonomy, default_categories)
    classifications = document.classifications
    metadata = document.metadata
    total = len(classifications)

    distribution, malformed = category_distribution(classifications, ids)
    formats, null_count = subcategory_formats(classifications, ids)
    health, missing = batch_health(classifications, ids, metadata.total_messages, metadata.batch_size)
    bias, bias_category = bias_score(distribution, total, len(ids.categories))

    analysis = ClassificationAnalysis(
        total_classified=metadata.total_classified,
        total_messages=metadata.total_messages,
        success_rate=_percent(metadata.total_classified, metadata.total_messages),
        category_distribution=distribution,
        valid_categories=list(ids.categories),
        malformed_count=malformed,
        malformed_pct=_percent(malformed, total),
        subcategory_formats=formats,
        subcategory_null_count=null_count,
        batch_health=health,
        missing_batches=missing,
        top_themes=theme_frequencies(classifications, top_themes),
        candidate_categories=candidate_frequencies(document),
        bias_score=bias,
        bias_category=bias_category,
        used_fallback_taxonomy=ids.used_fallback,
    )

    logger.info(
        f"Analyzed {total} classifications: {malformed} malformed ({analysis.malformed_pct}%), "
        f"{len(missing)} missing batches, bias {bias}% on '{bias_category}'"
    )
    return analysis


def analyze_runs(
    runs: Sequence[PipelineRun],
    default_categories: Sequence[str] = DEFAULT_CATEGORY_IDS,
    top_themes: int = 20,
) -> Dict[str, ClassificationAnalysis]:
    """Analyze every run that carries a classification document, keyed by run name."""
    analyses = {}
    for run in runs:
        if run.classifications is None:
            logger.warning(f"Run '{run.name}' has no classification results; skipping")
            continue
        analyses[run.name] = analyze_classifications(
            run.classifications, run.taxonomy, default_categories, top_themes
        )
    return analyses


def category_distribution_frame(analyses: Dict[str, ClassificationAnalysis]) -> pd.DataFrame:
    """Flatten per-run category distributions into one table."""
    rows = [
        (name, row.category, row.count, row.pct, row.is_valid)
        for name, analysis in analyses.items()
        for row in analysis.category_distribution
    ]
    frame = pd.DataFrame(rows, columns=["pipeline", "category", "count", "pct", "is_valid"])
    return frame.astype({"pipeline": object, "category": object, "count": "int64", "pct": float, "is_valid": bool})


def subcategory_formats_frame(analyses: Dict[str, ClassificationAnalysis]) -> pd.DataFrame:
    """Flatten per-run subcategory format buckets into one table."""
    rows = [
        (name, row.format, row.count, row.example)
        for name, analysis in analyses.items()
        for row in analysis.subcategory_formats
    ]
    frame = pd.DataFrame(rows, columns=["pipeline", "format", "count", "example"])
    return frame.astype({"pipeline": object, "format": object, "count": "int64", "example": object})
