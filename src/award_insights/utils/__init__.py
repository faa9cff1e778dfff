"""
Utility functions for the Award Insights Pipeline.
"""

from .warning_suppression import suppress_upstream_warnings

__all__ = ['suppress_upstream_warnings']
