"""
Cross-run comparison of classification pipeline outputs.

Category identifiers are local to a run, so runs are aligned by category
name. Names are compared after case-folding and collapsing whitespace; two
runs that word the same category differently will not be matched.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from ...models import (
    CategoryOverlap, ClassificationAnalysis, ComparisonData, PipelineRun,
    PipelineScore, RadarMetric, TaxonomyDiff,
)
from ..text_analysis.classification_quality import (
    DEFAULT_CATEGORY_IDS, FORMAT_CORRECT, analyze_classifications,
)

logger = logging.getLogger(__name__)

# (score field, label, ceiling)
DIRECT_RADAR_METRICS = [
    ("success_rate", "Success Rate", 100),
    ("format_consistency", "Format Consistency", 100),
    ("category_count", "Category Richness", 10),
    ("candidates_found", "Discovery", 20),
]
# Lower raw values are better; plotted as max(0, ceiling - raw)
INVERTED_RADAR_METRICS = [
    ("malformed_pct", "Output Quality", 100),
    ("bias_score", "Balance", 200),
]


def normalize_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def score_run(
    run: PipelineRun,
    default_categories: Sequence[str] = DEFAULT_CATEGORY_IDS,
) -> Tuple[PipelineScore, Optional[ClassificationAnalysis]]:
    """
    Scorecard for one run.

    Quality metrics stay at zero when the run has no classifications.

    Returns:
        (score, analysis); analysis is None without a classification document
    """
    analysis = None
    success_rate = malformed_pct = bias = consistency = 0.0
    candidates = 0

    if run.classifications is not None:
        analysis = analyze_classifications(run.classifications, run.taxonomy, default_categories)
        candidates = len(analysis.candidate_categories)
        total = len(run.classifications.classifications)
        if total:
            correct = next((f.count for f in analysis.subcategory_formats if f.format == FORMAT_CORRECT), 0)
            success_rate = analysis.success_rate
            malformed_pct = analysis.malformed_pct
            bias = analysis.bias_score
            consistency = round(correct / total * 100, 1)

    categories = run.taxonomy.categories if run.taxonomy is not None else []
    time_seconds = 0.0
    if run.summary is not None and run.summary.pipeline is not None:
        time_seconds = run.summary.pipeline.total_time_seconds

    score = PipelineScore(
        pipeline=run.name,
        success_rate=success_rate,
        malformed_pct=malformed_pct,
        bias_score=bias,
        format_consistency=consistency,
        category_count=len(categories),
        subcategory_count=sum(len(c.subcategories) for c in categories),
        time_seconds=time_seconds,
        candidates_found=candidates,
    )
    return score, analysis


def category_overlap(
    runs: Sequence[PipelineRun],
    analyses: Sequence[Optional[ClassificationAnalysis]],
) -> List[CategoryOverlap]:
    """Valid classification counts per category name and run, busiest names first."""
    display: Dict[str, str] = {}
    counts: Dict[str, Dict[str, int]] = {}

    for run, analysis in zip(runs, analyses):
        if analysis is None:
            continue
        names = {}
        if run.taxonomy is not None:
            names = {c.id.strip(): c.name for c in run.taxonomy.categories}
        for row in analysis.category_distribution:
            if not row.is_valid:
                continue
            name = names.get(row.category) or row.category
            key = normalize_name(name)
            display.setdefault(key, name)
            per_run = counts.setdefault(key, {})
            per_run[run.name] = per_run.get(run.name, 0) + row.count

    rows = [
        CategoryOverlap(
            category=display[key],
            pipelines={run.name: counts[key].get(run.name, 0) for run in runs},
        )
        for key in display
    ]
    return sorted(rows, key=lambda row: -sum(row.pipelines.values()))


def taxonomy_diff(runs: Sequence[PipelineRun]) -> List[TaxonomyDiff]:
    """Which runs define each category name, most widely shared names first."""
    display: Dict[str, str] = {}
    present: Dict[str, List[str]] = {}

    for run in runs:
        if run.taxonomy is None:
            continue
        for category in run.taxonomy.categories:
            name = category.name or category.id
            key = normalize_name(name)
            if not key:
                continue
            display.setdefault(key, name)
            owners = present.setdefault(key, [])
            if run.name not in owners:
                owners.append(run.name)

    all_runs = [run.name for run in runs]
    rows = [
        TaxonomyDiff(
            category_name=display[key],
            present_in=present[key],
            missing_from=[name for name in all_runs if name not in present[key]],
        )
        for key in display
    ]
    return sorted(rows, key=lambda row: -len(row.present_in))


def radar_metrics(scores: Sequence[PipelineScore]) -> List[RadarMetric]:
    """Radar rows on fixed ceilings so that higher is better on every axis."""
    rows = []
    for field, label, ceiling in DIRECT_RADAR_METRICS:
        rows.append(RadarMetric(
            metric=label,
            full_mark=ceiling,
            values={s.pipeline: float(getattr(s, field)) for s in scores},
        ))
    for field, label, ceiling in INVERTED_RADAR_METRICS:
        rows.append(RadarMetric(
            metric=label,
            full_mark=ceiling,
            values={s.pipeline: float(max(0.0, ceiling - getattr(s, field))) for s in scores},
        ))
    return rows


def compare_pipeline_runs(
    runs: Sequence[PipelineRun],
    default_categories: Sequence[str] = DEFAULT_CATEGORY_IDS,
    max_workers: Optional[int] = None,
) -> ComparisonData:
    """
    Compare two or more pipeline runs.

    Runs are scored independently on a thread pool; alignment starts once
    every score is in.

    Args:
        runs: Pipeline runs to compare
        default_categories: Fallback category identifiers for runs without a taxonomy
        max_workers: Thread pool size (None = executor default)

    Returns:
        ComparisonData

    Raises:
        ValueError: If fewer than two runs are given
    """
    if len(runs) < 2:
        raise ValueError(f"Comparison needs at least two pipeline runs, got {len(runs)}")

    logger.info(f"Scoring {len(runs)} pipeline runs")
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = list(executor.map(lambda run: score_run(run, default_categories), runs))

    scores = [score for score, _ in results]
    analyses = [analysis for _, analysis in results]

    comparison = ComparisonData(
        pipelines=[run.name for run in runs],
        scores=scores,
        category_overlap=category_overlap(runs, analyses),
        taxonomy_diff=taxonomy_diff(runs),
        radar_metrics=radar_metrics(scores),
    )
    logger.info(
        f"Compared runs {', '.join(comparison.pipelines)}: "
        f"{len(comparison.category_overlap)} shared category names, "
        f"{len(comparison.taxonomy_diff)} taxonomy entries"
    )
    return comparison


def pipeline_scores_frame(comparison: Optional[ComparisonData]) -> pd.DataFrame:
    """Flatten run scorecards into one table (empty without a comparison)."""
    columns = list(PipelineScore.model_fields)
    rows = [score.model_dump() for score in comparison.scores] if comparison is not None else []
    frame = pd.DataFrame(rows, columns=columns)
    return frame.astype({
        "pipeline": object,
        "success_rate": float,
        "malformed_pct": float,
        "bias_score": float,
        "format_consistency": float,
        "category_count": "int64",
        "subcategory_count": "int64",
        "time_seconds": float,
        "candidates_found": "int64",
    })
