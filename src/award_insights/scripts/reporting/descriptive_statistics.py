"""
Corpus-level descriptive statistics for award records.

Computes null counts, message length and word-count distributions, title
frequency tables, seniority distributions and the nominator -> recipient
interaction multiset.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ...models import (
    AwardTitleStats, BasicStats, DistributionStats, InteractionPair,
    InteractionStats, MessageStats, StatisticsReport, TitleLengthStats, TitleSection,
)
from ..data_ingestion.record_parser import REQUIRED_COLUMNS
from ..text_analysis.title_classifiers import seniority_distribution

logger = logging.getLogger(__name__)

PERCENTILES = (5, 25, 50, 75, 95)


def clean_values(values: Iterable) -> List[Optional[str]]:
    """Trim string values; None, NaN and whitespace-only values become None."""
    cleaned = []
    for value in values:
        if value is None or (isinstance(value, float) and np.isnan(value)):
            cleaned.append(None)
            continue
        text = str(value).strip()
        cleaned.append(text or None)
    return cleaned


def frequency_table(values: Iterable[Optional[str]]) -> List[Tuple[str, int]]:
    """
    Count distinct non-null values and rank them.

    Ties keep first-seen order (Counter preserves insertion order and
    ``sorted`` is stable).
    """
    counts = Counter(v for v in values if v is not None)
    return sorted(counts.items(), key=lambda item: -item[1])


def frequency_frame(table: Sequence[Tuple[str, int]]) -> pd.DataFrame:
    """Convert a ranked frequency table into a value/count frame."""
    frame = pd.DataFrame(list(table), columns=["value", "count"])
    return frame.astype({"value": object, "count": "int64"})


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Linear-interpolation percentile of an ascending sequence.

    Uses ``rank = p/100 * (n - 1)`` and interpolates between the floor and
    ceiling order statistics.
    """
    if len(sorted_values) == 0:
        return 0.0
    return float(np.percentile(np.asarray(sorted_values, dtype=float), p, method="linear"))


def distribution_stats(values: Sequence[float]) -> DistributionStats:
    """Summarize a numeric sample; an empty sample reports zeros."""
    if len(values) == 0:
        return DistributionStats()

    arr = np.sort(np.asarray(values, dtype=float))
    p5, p25, p50, p75, p95 = (percentile(arr, p) for p in PERCENTILES)

    return DistributionStats(
        mean=round(float(arr.mean()), 1),
        median=round(p50, 1),
        std=round(float(arr.std(ddof=0)), 1),
        min=float(arr[0]),
        max=float(arr[-1]),
        p5=round(p5, 1),
        p25=round(p25, 1),
        p75=round(p75, 1),
        p95=round(p95, 1),
    )


def message_statistics(
    messages: Sequence[Optional[str]],
    extreme_messages: int = 5,
    preview_chars: int = 110,
) -> MessageStats:
    """
    Length and word-count statistics over non-null messages.

    Args:
        messages: Cleaned message values (None for blank)
        extreme_messages: Number of shortest/longest messages to keep
        preview_chars: Longest-message previews are cut to this many characters

    Returns:
        MessageStats
    """
    valid = [m for m in messages if m is not None]
    by_length = sorted(valid, key=len)

    longest = list(reversed(by_length[-extreme_messages:])) if by_length else []
    previews = [m[:preview_chars] + ("..." if len(m) > preview_chars else "") for m in longest]

    return MessageStats(
        count=len(valid),
        null_count=len(messages) - len(valid),
        char_length=distribution_stats([len(m) for m in valid]),
        word_count=distribution_stats([len(m.split()) for m in valid]),
        shortest_messages=by_length[:extreme_messages],
        longest_messages_preview=previews,
    )


def award_title_statistics(titles: Sequence[Optional[str]], top_n: int = 10) -> AwardTitleStats:
    valid = [t for t in titles if t is not None]
    table = frequency_table(valid)
    lengths = sorted(len(t) for t in valid)

    return AwardTitleStats(
        count=len(valid),
        null_count=len(titles) - len(valid),
        empty_count=len(titles) - len(valid),
        unique_count=len(table),
        top_titles=table[:top_n],
        title_length=TitleLengthStats(
            mean=round(float(np.mean(lengths)), 1) if lengths else 0.0,
            median=round(percentile(lengths, 50), 1),
            max=lengths[-1] if lengths else 0,
        ),
    )


def title_section(label: str, titles: Sequence[Optional[str]], top_n: int = 15) -> TitleSection:
    """Frequency and seniority summary for one title role."""
    valid = [t for t in titles if t is not None]
    table = frequency_table(valid)

    return TitleSection(
        label=label,
        count=len(valid),
        null_count=len(titles) - len(valid),
        unique_count=len(table),
        top_titles=table[:top_n],
        seniority_distribution=seniority_distribution(valid),
    )


def interaction_statistics(
    nominators: Sequence[Optional[str]],
    recipients: Sequence[Optional[str]],
    top_pairs: int = 10,
) -> InteractionStats:
    """
    Aggregate ordered (nominator, recipient) title pairs.

    Rows missing either title are skipped. Self pairs contribute their full
    count to the self-recognition total; a reciprocal pair is counted once
    per unordered pair of distinct titles.

    Args:
        nominators: Cleaned nominator titles, aligned with recipients
        recipients: Cleaned recipient titles
        top_pairs: Number of highest-count pairs to report

    Returns:
        InteractionStats including the full ranked pair table
    """
    pair_counts: Dict[Tuple[str, str], int] = {}
    for nominator, recipient in zip(nominators, recipients):
        if nominator is None or recipient is None:
            continue
        key = (nominator, recipient)
        pair_counts[key] = pair_counts.get(key, 0) + 1

    ranked = sorted(pair_counts.items(), key=lambda item: -item[1])
    pairs = [InteractionPair(nominator=n, recipient=r, count=c) for (n, r), c in ranked]

    self_count = sum(p.count for p in pairs if p.is_self)
    directed_reciprocal = sum(
        1 for (n, r) in pair_counts if n != r and (r, n) in pair_counts
    )

    unique_recipients = len({r for r in recipients if r is not None})
    unique_nominators = len({n for n in nominators if n is not None})

    return InteractionStats(
        total_interactions=sum(pair_counts.values()),
        unique_pairs=len(pair_counts),
        unique_recipients=unique_recipients,
        unique_nominators=unique_nominators,
        self_recognition_count=self_count,
        bidirectional_pairs=directed_reciprocal // 2,
        top_pairs=pairs[:top_pairs],
        pairs=pairs,
    )


def interaction_pairs_frame(interactions: InteractionStats) -> pd.DataFrame:
    """Flatten the full pair table into a nominator/recipient/count frame."""
    frame = pd.DataFrame(
        [(p.nominator, p.recipient, p.count, p.is_self) for p in interactions.pairs],
        columns=["nominator", "recipient", "count", "is_self"],
    )
    return frame.astype({"nominator": object, "recipient": object, "count": "int64", "is_self": bool})


def compute_statistics_report(
    records: pd.DataFrame,
    top_award_titles: int = 10,
    top_role_titles: int = 15,
    top_pairs: int = 10,
    extreme_messages: int = 5,
    preview_chars: int = 110,
) -> StatisticsReport:
    """
    Compute the full descriptive statistics report for a records frame.

    Args:
        records: Frame with the four record columns
        top_award_titles: Size of the award title frequency table
        top_role_titles: Size of the recipient/nominator title tables
        top_pairs: Number of interaction pairs to report
        extreme_messages: Number of shortest/longest messages
        preview_chars: Preview length for the longest messages

    Returns:
        StatisticsReport
    """
    columns = {name: clean_values(records[name]) for name in REQUIRED_COLUMNS}
    null_counts = {name: sum(v is None for v in values) for name, values in columns.items()}

    basic = BasicStats(
        total_rows=len(records),
        total_columns=len(REQUIRED_COLUMNS),
        columns=list(REQUIRED_COLUMNS),
        null_counts=null_counts,
        empty_string_counts=dict(null_counts),
    )

    report = StatisticsReport(
        basic=basic,
        message=message_statistics(columns["message"], extreme_messages, preview_chars),
        award_title=award_title_statistics(columns["award_title"], top_award_titles),
        recipient_title=title_section("Recipient", columns["recipient_title"], top_role_titles),
        nominator_title=title_section("Nominator", columns["nominator_title"], top_role_titles),
        interactions=interaction_statistics(
            columns["nominator_title"], columns["recipient_title"], top_pairs
        ),
    )

    logger.info(
        f"Computed statistics for {basic.total_rows} records: "
        f"{report.interactions.unique_pairs} unique pairs, "
        f"{report.recipient_title.unique_count} recipient / "
        f"{report.nominator_title.unique_count} nominator titles"
    )
    return report
