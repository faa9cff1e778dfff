"""
Pandera schemas for the Award Insights pipeline

This module defines the data validation schemas used for the parsed award
records and for the flat tables exported alongside the report.
"""

import pandera.pandas as pa
from pandera.typing import Series

# ============================================================================
# INPUT DATA SCHEMAS
# ============================================================================

class AwardRecordsSchema(pa.DataFrameModel):
    """Schema for parsed award records (nulls stand for blank fields)"""
    message: Series[str] = pa.Field(nullable=True, description="Free-text recognition message")
    award_title: Series[str] = pa.Field(nullable=True, description="Award name")
    recipient_title: Series[str] = pa.Field(nullable=True, description="Job title of the recipient")
    nominator_title: Series[str] = pa.Field(nullable=True, description="Job title of the nominator")

    class Config:
        strict = True  # Exactly the four record fields, in canonical order
        ordered = True

# ============================================================================
# INTERMEDIATE DATA SCHEMAS
# ============================================================================

class FrequencyTableSchema(pa.DataFrameModel):
    """Schema for a ranked value/count frequency table"""
    value: Series[str] = pa.Field(description="Distinct trimmed value")
    count: Series[int] = pa.Field(ge=1, description="Occurrence count")

class InteractionPairsSchema(pa.DataFrameModel):
    """Schema for the nominator -> recipient interaction table"""
    nominator: Series[str] = pa.Field(description="Nominator job title")
    recipient: Series[str] = pa.Field(description="Recipient job title")
    count: Series[int] = pa.Field(ge=1, description="Number of awards along this pair")
    is_self: Series[bool] = pa.Field(description="Nominator and recipient share a title")

# ============================================================================
# OUTPUT DATA SCHEMAS
# ============================================================================

class CategoryDistributionSchema(pa.DataFrameModel):
    """Schema for per-run category distributions"""
    pipeline: Series[str] = pa.Field(description="Pipeline run name")
    category: Series[str] = pa.Field(description="Category identifier or invalid bucket label")
    count: Series[int] = pa.Field(ge=0, description="Classifications in this bucket")
    pct: Series[float] = pa.Field(ge=0, le=100, description="Share of all classifications (percent)")
    is_valid: Series[bool] = pa.Field(description="Whether the bucket is a valid taxonomy category")

class SubcategoryFormatsSchema(pa.DataFrameModel):
    """Schema for per-run subcategory format buckets"""
    pipeline: Series[str] = pa.Field(description="Pipeline run name")
    format: Series[str] = pa.Field(description="Format label")
    count: Series[int] = pa.Field(ge=0, description="Classifications with this format")
    example: Series[str] = pa.Field(description="First value seen with this format")

class PipelineScoresSchema(pa.DataFrameModel):
    """Schema for cross-run pipeline scorecards"""
    pipeline: Series[str] = pa.Field(unique=True, description="Pipeline run name")
    success_rate: Series[float] = pa.Field(ge=0, description="Classified / total messages (percent)")
    malformed_pct: Series[float] = pa.Field(ge=0, le=100, description="Invalid category share (percent)")
    bias_score: Series[float] = pa.Field(description="Top valid category excess over uniform (percent)")
    format_consistency: Series[float] = pa.Field(ge=0, le=100, description="Correct subcategory share (percent)")
    category_count: Series[int] = pa.Field(ge=0, description="Categories in the run's taxonomy")
    subcategory_count: Series[int] = pa.Field(ge=0, description="Subcategories in the run's taxonomy")
    time_seconds: Series[float] = pa.Field(ge=0, description="Reported pipeline wall time")
    candidates_found: Series[int] = pa.Field(ge=0, description="Proposed new categories")
