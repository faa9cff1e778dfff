"""
Hamilton processors for the Award Insights Pipeline

This module contains the processing functions that turn the loaded records
and pipeline runs into statistics, population estimates, classification
quality analyses and the cross-run comparison.
"""

from hamilton.function_modifiers import check_output, save_to, source
from pandera.typing import DataFrame
from typing import Dict, List, Any, Optional
import logging

from .models import (
    AwardReport, ClassificationAnalysis, ComparisonData, DerivedViews,
    PipelineRun, PopulationEstimate, StatisticsReport,
)
from .schemas import (
    AwardRecordsSchema, FrequencyTableSchema, InteractionPairsSchema,
    CategoryDistributionSchema, SubcategoryFormatsSchema, PipelineScoresSchema,
)
from .scripts.reporting.descriptive_statistics import (
    clean_values, compute_statistics_report, frequency_frame, frequency_table,
    interaction_pairs_frame,
)
from .scripts.visualization.derived_views import build_derived_views
from .scripts.statistical.capture_recapture import estimate_population
from .scripts.text_analysis.classification_quality import (
    analyze_runs, category_distribution_frame, subcategory_formats_frame,
)
from .scripts.reporting.pipeline_comparison import compare_pipeline_runs, pipeline_scores_frame

logger = logging.getLogger(__name__)

# ============================================================================
# DESCRIPTIVE STATISTICS
# ============================================================================

def statistics_report(
    award_records: DataFrame[AwardRecordsSchema],
    top_award_titles: int,
    top_role_titles: int,
    top_pairs: int,
    extreme_messages: int,
    preview_chars: int,
) -> StatisticsReport:
    """
    Compute descriptive statistics over the award records.

    Args:
        award_records: Parsed award records
        top_award_titles: Size of the award title table
        top_role_titles: Size of the recipient/nominator title tables
        top_pairs: Number of interaction pairs reported
        extreme_messages: Number of shortest/longest messages
        preview_chars: Preview length for the longest messages

    Returns:
        StatisticsReport
    """
    logger.info("Computing descriptive statistics")

    try:
        report = compute_statistics_report(
            award_records,
            top_award_titles=top_award_titles,
            top_role_titles=top_role_titles,
            top_pairs=top_pairs,
            extreme_messages=extreme_messages,
            preview_chars=preview_chars,
        )
        logger.info(f"Computed statistics for {report.basic.total_rows} records")
        return report
    except Exception as e:
        logger.error(f"Failed to compute descriptive statistics: {str(e)}")
        raise


@save_to.csv(path=source("interaction_pairs_output_path"))
@check_output(schema=InteractionPairsSchema, importance="fail")
def interaction_pairs(statistics_report: StatisticsReport) -> DataFrame[InteractionPairsSchema]:
    """Full nominator -> recipient pair table, busiest pairs first."""
    return interaction_pairs_frame(statistics_report.interactions)


@save_to.csv(path=source("recipient_title_frequencies_output_path"))
@check_output(schema=FrequencyTableSchema, importance="fail")
def recipient_title_frequencies(award_records: DataFrame[AwardRecordsSchema]) -> DataFrame[FrequencyTableSchema]:
    """Ranked frequency table of every recipient title."""
    return frequency_frame(frequency_table(clean_values(award_records["recipient_title"])))


@save_to.csv(path=source("nominator_title_frequencies_output_path"))
@check_output(schema=FrequencyTableSchema, importance="fail")
def nominator_title_frequencies(award_records: DataFrame[AwardRecordsSchema]) -> DataFrame[FrequencyTableSchema]:
    """Ranked frequency table of every nominator title."""
    return frequency_frame(frequency_table(clean_values(award_records["nominator_title"])))


def derived_views(statistics_report: StatisticsReport, bar_rows: int, bar_name_max: int) -> DerivedViews:
    """
    Build chart-ready views from the statistics report.

    Args:
        statistics_report: Descriptive statistics
        bar_rows: Rows per ranked bar view
        bar_name_max: Display name truncation length

    Returns:
        DerivedViews
    """
    logger.info("Building derived views")

    try:
        return build_derived_views(statistics_report, max_bar_rows=bar_rows, bar_name_max=bar_name_max)
    except Exception as e:
        logger.error(f"Failed to build derived views: {str(e)}")
        raise

# ============================================================================
# POPULATION ESTIMATE
# ============================================================================

def population_estimate(
    statistics_report: StatisticsReport,
    z_score: float,
    sensitivity_multipliers: List[float],
    self_recognition_overlap_fraction: float,
) -> PopulationEstimate:
    """
    Estimate the underlying population with the Chapman capture-recapture model.

    Args:
        statistics_report: Descriptive statistics
        z_score: Normal quantile for the confidence interval
        sensitivity_multipliers: People-per-title factors
        self_recognition_overlap_fraction: Overlap share assumed on self-recognition

    Returns:
        PopulationEstimate
    """
    logger.info("Estimating population size")

    try:
        return estimate_population(
            statistics_report,
            z_score=z_score,
            sensitivity_multipliers=sensitivity_multipliers,
            self_overlap_fraction=self_recognition_overlap_fraction,
        )
    except Exception as e:
        logger.error(f"Failed to estimate population size: {str(e)}")
        raise

# ============================================================================
# CLASSIFICATION QUALITY
# ============================================================================

def classification_analyses(
    pipeline_runs: List[PipelineRun],
    default_categories: List[str],
    top_themes: int,
) -> Dict[str, ClassificationAnalysis]:
    """
    Analyze the classification output of every loaded run.

    Args:
        pipeline_runs: Loaded pipeline runs
        default_categories: Fallback category identifiers
        top_themes: Size of the theme frequency table

    Returns:
        Mapping of run name to ClassificationAnalysis
    """
    logger.info(f"Analyzing classifications for {len(pipeline_runs)} runs")

    try:
        analyses = analyze_runs(pipeline_runs, default_categories=default_categories, top_themes=top_themes)
        logger.info(f"Analyzed {len(analyses)} runs")
        return analyses
    except Exception as e:
        logger.error(f"Failed to analyze classifications: {str(e)}")
        raise


@save_to.csv(path=source("category_distribution_output_path"))
@check_output(schema=CategoryDistributionSchema, importance="fail")
def category_distribution(
    classification_analyses: Dict[str, ClassificationAnalysis],
) -> DataFrame[CategoryDistributionSchema]:
    """Per-run category distribution table."""
    return category_distribution_frame(classification_analyses)


@save_to.csv(path=source("subcategory_formats_output_path"))
@check_output(schema=SubcategoryFormatsSchema, importance="fail")
def subcategory_formats(
    classification_analyses: Dict[str, ClassificationAnalysis],
) -> DataFrame[SubcategoryFormatsSchema]:
    """Per-run subcategory format table."""
    return subcategory_formats_frame(classification_analyses)

# ============================================================================
# CROSS-RUN COMPARISON
# ============================================================================

def pipeline_comparison(
    pipeline_runs: List[PipelineRun],
    default_categories: List[str],
    comparison_max_workers: Optional[int] = None,
) -> Optional[ComparisonData]:
    """
    Compare all loaded runs.

    Args:
        pipeline_runs: Loaded pipeline runs
        default_categories: Fallback category identifiers
        comparison_max_workers: Thread pool size for scoring runs

    Returns:
        ComparisonData, or None with fewer than two runs
    """
    if len(pipeline_runs) < 2:
        logger.warning(f"Skipping pipeline comparison: {len(pipeline_runs)} run(s) loaded, need at least 2")
        return None

    try:
        return compare_pipeline_runs(
            pipeline_runs,
            default_categories=default_categories,
            max_workers=comparison_max_workers,
        )
    except Exception as e:
        logger.error(f"Failed to compare pipeline runs: {str(e)}")
        raise


@save_to.csv(path=source("pipeline_scores_output_path"))
@check_output(schema=PipelineScoresSchema, importance="fail")
def pipeline_scores(pipeline_comparison: Optional[ComparisonData]) -> DataFrame[PipelineScoresSchema]:
    """Run scorecards as a flat table."""
    return pipeline_scores_frame(pipeline_comparison)

# ============================================================================
# FULL REPORT
# ============================================================================

def award_report(
    statistics_report: StatisticsReport,
    derived_views: DerivedViews,
    population_estimate: PopulationEstimate,
    classification_analyses: Dict[str, ClassificationAnalysis],
    pipeline_comparison: Optional[ComparisonData],
) -> AwardReport:
    """Bundle every analysis into one report."""
    return AwardReport(
        statistics=statistics_report,
        views=derived_views,
        population=population_estimate,
        classification=classification_analyses,
        comparison=pipeline_comparison,
    )


@save_to.json(path=source("award_report_output_path"))
def award_report_document(award_report: AwardReport) -> Dict[str, Any]:
    """JSON-ready form of the full report."""
    return award_report.model_dump(mode="json")
