"""
Chart-ready views derived from a statistics report.

Nothing here computes new statistics; every number is taken from the
report and regrouped by seniority or department.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from ...models import (
    BarRow, DepartmentRow, DerivedViews, Heatmap, InteractionPair,
    NetworkEdge, NetworkGraph, NetworkNode, SeniorityRow, StatisticsReport,
)
from ..text_analysis.title_classifiers import classify_department

logger = logging.getLogger(__name__)

SENIORITY_LADDER = [
    "Junior", "Associate", "Specialist", "Lead",
    "Senior", "Manager", "Director", "Principal", "VP/C-Suite",
]
EXECUTIVE_LEVEL = "VP/C-Suite"
EXECUTIVE_SOURCE_LEVELS = ("VP", "Vice President")


def merge_executive_levels(distribution: Dict[str, int]) -> Dict[str, int]:
    """Fold "VP" and "Vice President" into a single "VP/C-Suite" bucket."""
    merged = {k: v for k, v in distribution.items() if k not in EXECUTIVE_SOURCE_LEVELS}
    executive = sum(distribution.get(level, 0) for level in EXECUTIVE_SOURCE_LEVELS)
    if executive:
        merged[EXECUTIVE_LEVEL] = merged.get(EXECUTIVE_LEVEL, 0) + executive
    return merged


def seniority_table(report: StatisticsReport) -> List[SeniorityRow]:
    """Recipient vs nominator counts per ladder level present in either role."""
    recipients = merge_executive_levels(report.recipient_title.seniority_distribution)
    nominators = merge_executive_levels(report.nominator_title.seniority_distribution)

    return [
        SeniorityRow(
            level=level,
            recipients=recipients.get(level, 0),
            nominators=nominators.get(level, 0),
        )
        for level in SENIORITY_LADDER
        if level in recipients or level in nominators
    ]


def department_activity(report: StatisticsReport) -> List[DepartmentRow]:
    """Sum top-title frequencies of both roles per inferred department."""
    counts: Dict[str, int] = {}
    for title, count in list(report.recipient_title.top_titles) + list(report.nominator_title.top_titles):
        department = classify_department(title)
        counts[department] = counts.get(department, 0) + count

    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [DepartmentRow(department=d, count=c) for d, c in ranked]


def department_heatmap(pairs: Sequence[InteractionPair]) -> Heatmap:
    """
    Department x department interaction matrix over the given pairs.

    Rows are nominator departments, columns recipient departments; labels are
    the sorted distinct departments seen at either end of any pair.
    """
    flows: Dict[Tuple[str, str], int] = {}
    departments = set()
    for pair in pairs:
        source = classify_department(pair.nominator)
        target = classify_department(pair.recipient)
        departments.update((source, target))
        flows[(source, target)] = flows.get((source, target), 0) + pair.count

    labels = sorted(departments)
    matrix = [[flows.get((row, col), 0) for col in labels] for row in labels]
    return Heatmap(labels=labels, matrix=matrix)


def interaction_network(report: StatisticsReport) -> NetworkGraph:
    """Nodes from the top title lists, directed edges from the top pairs."""
    nodes: Dict[str, Dict] = {}
    for title, count in report.recipient_title.top_titles:
        nodes[title] = {"id": title, "received": count, "given": 0, "department": classify_department(title)}
    for title, count in report.nominator_title.top_titles:
        if title in nodes:
            nodes[title]["given"] = count
        else:
            nodes[title] = {"id": title, "received": 0, "given": count, "department": classify_department(title)}

    edges = [
        NetworkEdge(source=p.nominator, target=p.recipient, value=p.count)
        for p in report.interactions.top_pairs
    ]
    return NetworkGraph(nodes=[NetworkNode(**n) for n in nodes.values()], edges=edges)


def bar_rows(titles: Sequence[Tuple[str, int]], max_rows: int = 12, name_max: int = 30) -> List[BarRow]:
    """Ranked bar rows; names longer than ``name_max`` are cut and suffixed with "..."."""
    rows = []
    for title, count in list(titles)[:max_rows]:
        name = title[:name_max - 2] + "..." if len(title) > name_max else title
        rows.append(BarRow(name=name, full_name=title, count=count, department=classify_department(title)))
    return rows


def build_derived_views(report: StatisticsReport, max_bar_rows: int = 12, bar_name_max: int = 30) -> DerivedViews:
    """
    Build every derived view from a statistics report.

    Args:
        report: Output of the descriptive aggregator
        max_bar_rows: Rows kept in each ranked bar view
        bar_name_max: Display names longer than this are truncated

    Returns:
        DerivedViews
    """
    views = DerivedViews(
        seniority=seniority_table(report),
        departments=department_activity(report),
        heatmap=department_heatmap(report.interactions.top_pairs),
        network=interaction_network(report),
        recipient_bars=bar_rows(report.recipient_title.top_titles, max_bar_rows, bar_name_max),
        nominator_bars=bar_rows(report.nominator_title.top_titles, max_bar_rows, bar_name_max),
    )
    logger.info(
        f"Built derived views: {len(views.network.nodes)} nodes, "
        f"{len(views.heatmap.labels)} heatmap departments"
    )
    return views
