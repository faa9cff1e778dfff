"""
Award Insights Pipeline

Descriptive statistics, population estimates and classification quality
reports for recognition-award records.
"""

# Suppress upstream warnings on import
from .utils.warning_suppression import suppress_upstream_warnings
suppress_upstream_warnings()

__version__ = "0.1.0"
