"""
Configuration management for the Award Insights pipeline.

This module provides centralized configuration using Pydantic for validation
and YAML for human-readable config files.
"""

from pathlib import Path
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
import yaml
import logging

from .scripts.text_analysis.classification_quality import DEFAULT_CATEGORY_IDS

logger = logging.getLogger(__name__)


class ReportingConfig(BaseModel):
    """Configuration for descriptive statistics and derived views."""
    top_award_titles: int = Field(default=10, gt=0, description="Number of award titles in the frequency table")
    top_role_titles: int = Field(default=15, gt=0, description="Number of recipient/nominator titles per role")
    top_pairs: int = Field(default=10, gt=0, description="Number of interaction pairs reported")
    extreme_messages: int = Field(default=5, gt=0, description="Number of shortest/longest messages reported")
    preview_chars: int = Field(default=110, gt=0, description="Truncation length for long message previews")
    bar_rows: int = Field(default=12, gt=0, description="Maximum rows in ranked bar views")
    bar_name_max: int = Field(default=30, gt=3, description="Display names longer than this are truncated")


class PopulationConfig(BaseModel):
    """Configuration for the capture-recapture population estimator."""
    z_score: float = Field(default=1.96, gt=0, description="Normal quantile used for the 95% interval")
    sensitivity_multipliers: List[float] = Field(
        default_factory=lambda: [1.0, 1.25, 1.5, 2.0, 2.5],
        description="Average number of people sharing one title"
    )
    self_recognition_overlap_fraction: float = Field(
        default=0.3,
        ge=0,
        le=1,
        description="Overlap share assumed when self-recognition is observed"
    )

    @field_validator('sensitivity_multipliers')
    @classmethod
    def validate_multipliers(cls, v):
        if not v:
            raise ValueError("sensitivity_multipliers must not be empty")
        if any(k <= 0 for k in v):
            raise ValueError("sensitivity_multipliers must be positive")
        return sorted(v)


class ClassificationConfig(BaseModel):
    """Configuration for the classification quality analyzer."""
    default_categories: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORY_IDS),
        description="Category identifiers assumed when a run has no usable taxonomy"
    )
    top_themes: int = Field(default=20, gt=0, description="Number of themes in the frequency table")

    @field_validator('default_categories')
    @classmethod
    def validate_default_categories(cls, v):
        if not v:
            raise ValueError("default_categories must contain at least one identifier")
        return v


class ComparisonConfig(BaseModel):
    """Configuration for cross-run comparison."""
    max_workers: Optional[int] = Field(default=None, gt=0, description="Threads used to score runs (None = executor default)")


class DataPathsConfig(BaseModel):
    """Configuration for data paths."""
    records_file: str = Field(description="Award records CSV path")
    runs_dir: Optional[str] = Field(default=None, description="Directory holding pipeline run folders")
    output_dir: str = Field(default="outputs", description="Output directory path")


class ExecutionConfig(BaseModel):
    """Configuration for execution settings."""
    disable_cache: bool = Field(default=True, description="Disable Hamilton caching")


class PipelineConfig(BaseModel):
    """Complete pipeline configuration."""
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    population: PopulationConfig = Field(default_factory=PopulationConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    data_paths: DataPathsConfig
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)

    def to_hamilton_inputs(self) -> dict:
        """
        Convert config to flat dictionary for Hamilton inputs.

        Returns:
            Dictionary with all config values as Hamilton input parameters
        """
        inputs = {}

        # Reporting parameters
        inputs['top_award_titles'] = self.reporting.top_award_titles
        inputs['top_role_titles'] = self.reporting.top_role_titles
        inputs['top_pairs'] = self.reporting.top_pairs
        inputs['extreme_messages'] = self.reporting.extreme_messages
        inputs['preview_chars'] = self.reporting.preview_chars
        inputs['bar_rows'] = self.reporting.bar_rows
        inputs['bar_name_max'] = self.reporting.bar_name_max

        # Population estimator parameters
        inputs['z_score'] = self.population.z_score
        inputs['sensitivity_multipliers'] = list(self.population.sensitivity_multipliers)
        inputs['self_recognition_overlap_fraction'] = self.population.self_recognition_overlap_fraction

        # Classification parameters
        inputs['default_categories'] = list(self.classification.default_categories)
        inputs['top_themes'] = self.classification.top_themes

        # Comparison parameters
        inputs['comparison_max_workers'] = self.comparison.max_workers

        # Data paths
        inputs['records_file_path'] = self.data_paths.records_file
        inputs['runs_dir'] = self.data_paths.runs_dir
        inputs['output_dir'] = self.data_paths.output_dir

        return inputs


def load_config(config_path: Optional[Path] = None) -> PipelineConfig:
    """
    Load pipeline configuration from YAML file.

    Args:
        config_path: Path to YAML config file. If None, uses config/default.yaml

    Returns:
        Validated PipelineConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config validation fails
    """
    if config_path is None:
        # Default to config/default.yaml in project root
        project_root = Path(__file__).parent.parent.parent
        config_path = project_root / "config" / "default.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, 'r') as f:
        config_dict = yaml.safe_load(f) or {}

    try:
        config = PipelineConfig(**config_dict)
        logger.info("Configuration loaded and validated successfully")
        return config
    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        raise ValueError(f"Invalid configuration: {e}") from e
