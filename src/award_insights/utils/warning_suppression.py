"""
Warning suppression utilities for the Award Insights Pipeline.
"""

import warnings
import logging

def suppress_upstream_warnings():
    """
    Suppress common upstream warnings that clutter the output.
    """
    # Suppress pandas warnings
    warnings.filterwarnings('ignore', category=FutureWarning, module='pandas')
    warnings.filterwarnings('ignore', category=UserWarning, module='pandas')

    # Suppress numpy warnings
    warnings.filterwarnings('ignore', category=FutureWarning, module='numpy')

    # Suppress pandera warnings
    warnings.filterwarnings('ignore', category=FutureWarning, module='pandera')

    # Suppress hamilton warnings
    warnings.filterwarnings('ignore', category=UserWarning, module='hamilton')

    # Hamilton's cache and graph adapters are chatty at INFO
    logging.getLogger('hamilton').setLevel(logging.WARNING)
