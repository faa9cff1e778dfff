"""
Capture-recapture population estimate from title overlap.

Recipient titles and nominator titles are treated as two capture occasions
over the same population. The overlap between them is approximated from the
top title lists and scaled to the full unique counts, so ``m`` is itself an
estimate; the confidence interval does not account for that extra
uncertainty.
"""

import logging
import math
from typing import List, Optional, Sequence

from ...models import (
    CaptureRecaptureEstimate, NetworkEstimate, ParticipationRate,
    PopulationEstimate, RecommendedRange, SensitivityRow, StatisticsReport,
    TitleCountEstimate,
)

logger = logging.getLogger(__name__)

DEFAULT_Z_SCORE = 1.96
DEFAULT_SENSITIVITY_MULTIPLIERS = (1.0, 1.25, 1.5, 2.0, 2.5)
DEFAULT_SELF_OVERLAP_FRACTION = 0.3

ESTIMATION_METHOD = "Chapman estimator (bias-corrected Lincoln-Petersen) with 95% CI"

ASSUMPTIONS = [
    "Population is closed (no joiners/leavers during data period)",
    "Each individual has equal probability of appearing as recipient or nominator",
    "The two captures (recipient, nominator) are independent",
    "Job titles map 1:1 to individuals (sensitivity analysis relaxes this)",
]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def estimate_title_overlap(
    report: StatisticsReport,
    self_overlap_fraction: float = DEFAULT_SELF_OVERLAP_FRACTION,
) -> TitleCountEstimate:
    """
    Estimate how many titles appear both as recipient and as nominator.

    The share of titles shared between the two top lists is scaled to
    ``min(n1, n2)``. When self-recognition was observed, a fixed fraction of
    ``min(n1, n2)`` is taken as a second signal. The larger signal wins and
    the overlap is floored at 1.

    Args:
        report: Descriptive statistics report
        self_overlap_fraction: Overlap share assumed when self-recognition exists

    Returns:
        TitleCountEstimate
    """
    n1 = report.recipient_title.unique_count
    n2 = report.nominator_title.unique_count
    smaller = min(n1, n2)

    top_recipients = {title for title, _ in report.recipient_title.top_titles}
    top_nominators = {title for title, _ in report.nominator_title.top_titles}
    shared = len(top_recipients & top_nominators)
    top_min = min(len(top_recipients), len(top_nominators))

    rate = shared / top_min if top_min else 0.0
    estimated = round_half_up(rate * smaller)

    self_signal = 0
    if report.interactions.self_recognition_count > 0:
        self_signal = round_half_up(smaller * self_overlap_fraction)

    overlap = max(estimated, self_signal, 1)

    return TitleCountEstimate(
        unique_recipients=n1,
        unique_nominators=n2,
        total_unique=n1 + n2 - overlap,
        overlap=overlap,
        overlap_pct=round(overlap / smaller * 100, 1) if smaller else 0.0,
    )


def chapman_estimate(
    n1: int,
    n2: int,
    m: int,
    z_score: float = DEFAULT_Z_SCORE,
    sensitivity_multipliers: Sequence[float] = DEFAULT_SENSITIVITY_MULTIPLIERS,
) -> CaptureRecaptureEstimate:
    """
    Two-sample Chapman estimate with variance, interval and sensitivity table.

    N = (n1+1)(n2+1)/(m+1) - 1
    Var = (n1+1)(n2+1)(n1-m)(n2-m) / ((m+1)^2 (m+2))

    The point estimate and the interval's lower bound never fall below
    ``max(n1, n2)``.

    Args:
        n1: First capture size
        n2: Second capture size
        m: Recaptured overlap
        z_score: Normal quantile for the interval
        sensitivity_multipliers: People-per-title factors for the sensitivity table

    Returns:
        CaptureRecaptureEstimate with integer-rounded figures

    Raises:
        ValueError: If any count is negative
    """
    if n1 < 0 or n2 < 0 or m < 0:
        raise ValueError(f"Capture sizes must be non-negative (n1={n1}, n2={n2}, m={m})")

    floor = max(n1, n2)
    point = (n1 + 1) * (n2 + 1) / (m + 1) - 1
    point = max(point, floor)

    variance = (n1 + 1) * (n2 + 1) * (n1 - m) * (n2 - m) / ((m + 1) ** 2 * (m + 2))
    se = math.sqrt(max(variance, 0.0))

    ci_low = max(point - z_score * se, floor)
    ci_high = point + z_score * se

    sensitivity = [
        SensitivityRow(k=k, estimate=round_half_up(point * k))
        for k in sorted(sensitivity_multipliers)
    ]

    return CaptureRecaptureEstimate(
        n1=n1,
        n2=n2,
        m=m,
        chapman_estimate=round_half_up(point),
        standard_error=round_half_up(se),
        ci95=(round_half_up(ci_low), round_half_up(ci_high)),
        sensitivity=sensitivity,
        assumptions=list(ASSUMPTIONS),
    )


def network_estimate(report: StatisticsReport) -> NetworkEstimate:
    """Density and degree cross-check over the interaction graph."""
    interactions = report.interactions
    n1 = interactions.unique_recipients
    n2 = interactions.unique_nominators

    density_denominator = n1 * n2
    degree_denominator = max(n1, n2)

    return NetworkEstimate(
        total_edges=interactions.total_interactions,
        unique_pairs=interactions.unique_pairs,
        unique_nodes=n1 + n2,
        density=interactions.unique_pairs / density_denominator if density_denominator else 0.0,
        self_loops=interactions.self_recognition_count,
        reciprocal_pairs=interactions.bidirectional_pairs,
        avg_degree=round(2 * interactions.unique_pairs / degree_denominator, 1) if degree_denominator else 0.0,
    )


def participation_rates(total_rows: int, scenarios: List[tuple]) -> List[ParticipationRate]:
    """Awards per person for each (label, population) scenario; empty populations are skipped."""
    rates = []
    for label, population in scenarios:
        if population <= 0:
            continue
        rates.append(ParticipationRate(
            label=label,
            population=population,
            awards_per_person=round(total_rows / population, 1),
        ))
    return rates


def estimate_population(
    report: StatisticsReport,
    z_score: float = DEFAULT_Z_SCORE,
    sensitivity_multipliers: Optional[Sequence[float]] = None,
    self_overlap_fraction: float = DEFAULT_SELF_OVERLAP_FRACTION,
) -> PopulationEstimate:
    """
    Estimate the size of the underlying population from a statistics report.

    Args:
        report: Descriptive statistics report
        z_score: Normal quantile for the confidence interval
        sensitivity_multipliers: People-per-title factors (defaults to 1.0-2.5)
        self_overlap_fraction: Overlap share assumed when self-recognition exists

    Returns:
        PopulationEstimate
    """
    if sensitivity_multipliers is None:
        sensitivity_multipliers = DEFAULT_SENSITIVITY_MULTIPLIERS

    title_count = estimate_title_overlap(report, self_overlap_fraction)
    capture = chapman_estimate(
        title_count.unique_recipients,
        title_count.unique_nominators,
        title_count.overlap,
        z_score=z_score,
        sensitivity_multipliers=sensitivity_multipliers,
    )
    low, high = capture.ci95

    estimate = PopulationEstimate(
        title_count=title_count,
        capture_recapture=capture,
        network=network_estimate(report),
        recommended=RecommendedRange(low=low, mid=capture.chapman_estimate, high=high, method=ESTIMATION_METHOD),
        participation_rates=participation_rates(report.basic.total_rows, [
            ("Lower bound (unique titles)", title_count.total_unique),
            ("Central estimate (Chapman)", capture.chapman_estimate),
            ("Upper bound (95% CI)", high),
        ]),
    )

    logger.info(
        f"Chapman estimate: {capture.chapman_estimate} "
        f"(95% CI {low}-{high}, n1={capture.n1}, n2={capture.n2}, m={capture.m})"
    )
    return estimate
