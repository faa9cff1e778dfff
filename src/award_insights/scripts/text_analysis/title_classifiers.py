"""
Department and seniority inference from free-text job titles.

Both classifiers walk an ordered rule list and return the label of the first
matching pattern. Order matters: more specific rules sit above the general
ones they overlap with (``Senior Manager`` before ``Senior``).
"""

import re
from typing import Iterable, Dict, Optional, List, Tuple

OTHER_DEPARTMENT = "Other"

# (pattern, department) pairs, evaluated top to bottom
DEPARTMENT_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"engineer|software|QA|helpdesk|techflow", re.IGNORECASE), "Engineering"),
    (re.compile(r"creative|copywrite|design|presentation|art director", re.IGNORECASE), "Creative & Design"),
    (re.compile(r"marketing|demand gen|brand|paid media|ABM|content strat", re.IGNORECASE), "Marketing"),
    (re.compile(r"event", re.IGNORECASE), "Events"),
    (re.compile(r"customer (service|success)|customer insight", re.IGNORECASE), "Customer Service"),
    (re.compile(r"finance|accountant|accounts payable|payroll", re.IGNORECASE), "Finance"),
    (re.compile(r"sale|store experience|buyer", re.IGNORECASE), "Sales & Procurement"),
    (re.compile(r"product (manager|designer)", re.IGNORECASE), "Product"),
    (re.compile(r"linguistic|WHiQ|thought leadership", re.IGNORECASE), "Content & Linguistics"),
    (re.compile(r"chief|VP|vice president|chief of staff", re.IGNORECASE), "Executive"),
    (re.compile(r"HR|people|talent", re.IGNORECASE), "HR"),
]

# (pattern, seniority level) pairs; only "VP" is case-sensitive
SENIORITY_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\bVice President\b", re.IGNORECASE), "Vice President"),
    (re.compile(r"\bVP\b"), "VP"),
    (re.compile(r"\bDirector\b", re.IGNORECASE), "Director"),
    (re.compile(r"\bPrincipal\b", re.IGNORECASE), "Principal"),
    (re.compile(r"\bSenior Manager\b", re.IGNORECASE), "Manager"),
    (re.compile(r"\bSenior\b", re.IGNORECASE), "Senior"),
    (re.compile(r"\bLead\b", re.IGNORECASE), "Lead"),
    (re.compile(r"\bManager\b", re.IGNORECASE), "Manager"),
    (re.compile(r"\bAssociate\b", re.IGNORECASE), "Associate"),
    (re.compile(r"\bJunior\b", re.IGNORECASE), "Junior"),
]


def classify_department(title: Optional[str]) -> str:
    """
    Map a job title to a coarse department.

    Args:
        title: Free-text job title (None and blank titles are allowed)

    Returns:
        Department label, "Other" when no rule matches
    """
    if not title:
        return OTHER_DEPARTMENT
    for pattern, department in DEPARTMENT_RULES:
        if pattern.search(title):
            return department
    return OTHER_DEPARTMENT


def classify_seniority(title: Optional[str]) -> Optional[str]:
    """
    Map a job title to a seniority level.

    Args:
        title: Free-text job title

    Returns:
        Seniority label, or None when the title carries no seniority signal
    """
    if not title:
        return None
    for pattern, level in SENIORITY_RULES:
        if pattern.search(title):
            return level
    return None


def seniority_distribution(titles: Iterable[Optional[str]]) -> Dict[str, int]:
    """Count seniority levels over titles, skipping those without a signal."""
    distribution: Dict[str, int] = {}
    for title in titles:
        level = classify_seniority(title)
        if level is not None:
            distribution[level] = distribution.get(level, 0) + 1
    return distribution
