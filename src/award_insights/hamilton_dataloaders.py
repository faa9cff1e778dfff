"""
Hamilton dataloaders for the Award Insights Pipeline

This module contains the functions that read the award records file and
the pipeline run documents from disk and validate them.
"""

from hamilton.function_modifiers import check_output
from pandera.typing import DataFrame
from typing import List, Optional
import logging
from pathlib import Path

from .models import PipelineRun
from .schemas import AwardRecordsSchema
from .scripts.data_ingestion.record_parser import parse_records
from .scripts.data_ingestion.run_documents import discover_runs

logger = logging.getLogger(__name__)

# ============================================================================
# OUTPUT DATA CONFIGURATION
# ============================================================================

# Output file paths relative to output_dir
# These are expanded to full paths in hamilton_pipeline.py
OUTPUT_DATA_CONFIG = {
    "interaction_pairs_output_path": "interaction_pairs.csv",
    "recipient_title_frequencies_output_path": "recipient_title_frequencies.csv",
    "nominator_title_frequencies_output_path": "nominator_title_frequencies.csv",
    "category_distribution_output_path": "category_distribution.csv",
    "subcategory_formats_output_path": "subcategory_formats.csv",
    "pipeline_scores_output_path": "pipeline_scores.csv",
    "award_report_output_path": "award_report.json",
}

# ============================================================================
# INPUT DATA LOADERS
# ============================================================================

@check_output(schema=AwardRecordsSchema, importance="fail")
def award_records(records_file_path: str) -> DataFrame[AwardRecordsSchema]:
    """
    Load and parse the award records CSV.

    Args:
        records_file_path: Path to the records CSV

    Returns:
        DataFrame with the four record columns
    """
    logger.info(f"Loading award records from: {records_file_path}")

    try:
        path = Path(records_file_path)
        if not path.exists():
            raise FileNotFoundError(f"Records file not found: {records_file_path}")

        text = path.read_text(encoding="utf-8")
        records = parse_records(text)

        logger.info(f"Loaded {len(records)} award records")
        return records
    except Exception as e:
        logger.error(f"Failed to load award records: {str(e)}")
        raise


def pipeline_runs(runs_dir: Optional[str] = None) -> List[PipelineRun]:
    """
    Load all classification pipeline runs from the runs directory.

    Args:
        runs_dir: Directory of run folders; None loads no runs

    Returns:
        List of PipelineRun, sorted by run name
    """
    try:
        runs = discover_runs(runs_dir)
        logger.info(f"Loaded {len(runs)} pipeline runs")
        return runs
    except Exception as e:
        logger.error(f"Failed to load pipeline runs: {str(e)}")
        raise
