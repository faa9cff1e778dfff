"""
Parsing and discovery of classification pipeline run documents.

A runs directory holds one sub-directory per run. Each run directory may
contain ``final_taxonomy.json``, ``phase_2_results.json`` and
``pipeline_summary.json``. When no sub-directory holds any of these, the
same files placed directly in the runs directory form a single run named
``default``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...models import ClassificationDocument, PipelineRun, RunSummary, Taxonomy

logger = logging.getLogger(__name__)

RUN_FILES = {
    "taxonomy": "final_taxonomy.json",
    "classifications": "phase_2_results.json",
    "summary": "pipeline_summary.json",
}
LEGACY_RUN_NAME = "default"


def parse_taxonomy(document: Dict[str, Any]) -> Taxonomy:
    """
    Build a Taxonomy from a taxonomy document.

    A legacy ``{"final_taxonomy": {...}}`` wrapper is unwrapped.

    Raises:
        ValueError: If the document is not a taxonomy
    """
    if isinstance(document, dict) and isinstance(document.get("final_taxonomy"), dict):
        document = document["final_taxonomy"]
    if not isinstance(document, dict):
        raise ValueError(f"Taxonomy document must be an object, got {type(document).__name__}")
    return Taxonomy.model_validate(document)


def parse_classification_document(document: Dict[str, Any]) -> ClassificationDocument:
    """Build a ClassificationDocument from a per-message classification document."""
    if not isinstance(document, dict):
        raise ValueError(f"Classification document must be an object, got {type(document).__name__}")
    return ClassificationDocument.model_validate(document)


def parse_run_summary(document: Dict[str, Any]) -> RunSummary:
    """Build a RunSummary from a pipeline summary document."""
    if not isinstance(document, dict):
        raise ValueError(f"Run summary must be an object, got {type(document).__name__}")
    return RunSummary.model_validate(document)


PARSERS = {
    "taxonomy": parse_taxonomy,
    "classifications": parse_classification_document,
    "summary": parse_run_summary,
}


def _load_document(path: Path, kind: str):
    """Read and parse one run document; unreadable or invalid files yield None."""
    if not path.is_file():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return PARSERS[kind](raw)
    except (OSError, ValueError) as e:
        logger.warning(f"Skipping {kind} document {path}: {e}")
        return None


def load_pipeline_run(run_dir: Union[str, Path], name: Optional[str] = None) -> Optional[PipelineRun]:
    """
    Load one pipeline run from a directory.

    Args:
        run_dir: Directory holding the run documents
        name: Run name (defaults to the directory name)

    Returns:
        PipelineRun, or None when the directory holds no usable document
    """
    run_dir = Path(run_dir)
    documents = {kind: _load_document(run_dir / filename, kind) for kind, filename in RUN_FILES.items()}

    if all(doc is None for doc in documents.values()):
        return None

    return PipelineRun(name=name or run_dir.name, **documents)


def discover_runs(runs_dir: Union[str, Path, None]) -> List[PipelineRun]:
    """
    Load every pipeline run under a runs directory.

    Args:
        runs_dir: Directory of run sub-directories (None or missing yields no runs)

    Returns:
        Runs sorted by name, or the single legacy ``default`` run
    """
    if runs_dir is None:
        return []

    runs_dir = Path(runs_dir)
    if not runs_dir.is_dir():
        logger.warning(f"Runs directory not found: {runs_dir}")
        return []

    runs = []
    for entry in sorted(runs_dir.iterdir()):
        if not entry.is_dir():
            continue
        run = load_pipeline_run(entry)
        if run is not None:
            runs.append(run)

    if runs:
        logger.info(f"Found {len(runs)} pipeline runs: {', '.join(r.name for r in runs)}")
        return runs

    legacy = load_pipeline_run(runs_dir, name=LEGACY_RUN_NAME)
    if legacy is not None and (legacy.taxonomy is not None or legacy.classifications is not None):
        logger.info(f"Loaded legacy single-run layout from {runs_dir} as '{LEGACY_RUN_NAME}'")
        return [legacy]

    logger.info(f"No pipeline runs found in {runs_dir}")
    return []
