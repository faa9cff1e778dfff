"""
Typed report structures for the Award Insights engine.

All models are frozen pydantic models: they are built fresh for every report
and never mutated afterwards. Consumers render them directly; no numeric value
needs to be re-derived downstream.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrozenModel(BaseModel):
    """Base class for immutable report structures."""
    model_config = ConfigDict(frozen=True)


# ============================================================================
# DESCRIPTIVE STATISTICS
# ============================================================================

class DistributionStats(FrozenModel):
    """Summary of a numeric distribution, rounded to one decimal."""
    mean: float = 0.0
    median: float = 0.0
    std: float = 0.0
    min: float = 0.0
    max: float = 0.0
    p5: float = 0.0
    p25: float = 0.0
    p75: float = 0.0
    p95: float = 0.0


class TitleLengthStats(FrozenModel):
    mean: float = 0.0
    median: float = 0.0
    max: int = 0


class BasicStats(FrozenModel):
    total_rows: int
    total_columns: int
    columns: List[str]
    null_counts: Dict[str, int]
    empty_string_counts: Dict[str, int]


class MessageStats(FrozenModel):
    count: int
    null_count: int
    char_length: DistributionStats
    word_count: DistributionStats
    shortest_messages: List[str]
    longest_messages_preview: List[str]


class AwardTitleStats(FrozenModel):
    count: int
    null_count: int
    empty_count: int
    unique_count: int
    top_titles: List[Tuple[str, int]]
    title_length: TitleLengthStats


class TitleSection(FrozenModel):
    """Frequency summary for one title role (recipient or nominator)."""
    label: str
    count: int
    null_count: int
    unique_count: int
    top_titles: List[Tuple[str, int]]
    seniority_distribution: Dict[str, int]


class InteractionPair(FrozenModel):
    """Ordered (nominator, recipient) title pair with its aggregated count."""
    nominator: str
    recipient: str
    count: int

    @property
    def is_self(self) -> bool:
        return self.nominator == self.recipient


class InteractionStats(FrozenModel):
    total_interactions: int
    unique_pairs: int
    unique_recipients: int
    unique_nominators: int
    self_recognition_count: int
    bidirectional_pairs: int
    top_pairs: List[InteractionPair]
    pairs: List[InteractionPair] = Field(default_factory=list, description="Full pair frequency table")


class StatisticsReport(FrozenModel):
    basic: BasicStats
    message: MessageStats
    award_title: AwardTitleStats
    recipient_title: TitleSection
    nominator_title: TitleSection
    interactions: InteractionStats


# ============================================================================
# DERIVED VIEWS
# ============================================================================

class SeniorityRow(FrozenModel):
    level: str
    recipients: int
    nominators: int


class DepartmentRow(FrozenModel):
    department: str
    count: int


class Heatmap(FrozenModel):
    labels: List[str]
    matrix: List[List[int]]


class NetworkNode(FrozenModel):
    id: str
    received: int
    given: int
    department: str


class NetworkEdge(FrozenModel):
    source: str
    target: str
    value: int


class NetworkGraph(FrozenModel):
    nodes: List[NetworkNode]
    edges: List[NetworkEdge]


class BarRow(FrozenModel):
    name: str
    full_name: str
    count: int
    department: str


class DerivedViews(FrozenModel):
    seniority: List[SeniorityRow]
    departments: List[DepartmentRow]
    heatmap: Heatmap
    network: NetworkGraph
    recipient_bars: List[BarRow]
    nominator_bars: List[BarRow]


# ============================================================================
# POPULATION ESTIMATE
# ============================================================================

class TitleCountEstimate(FrozenModel):
    unique_recipients: int
    unique_nominators: int
    total_unique: int
    overlap: int
    overlap_pct: float


class SensitivityRow(FrozenModel):
    k: float = Field(description="Average number of people sharing one title")
    estimate: int


class CaptureRecaptureEstimate(FrozenModel):
    n1: int = Field(description="First capture size (unique recipient titles)")
    n2: int = Field(description="Second capture size (unique nominator titles)")
    m: int = Field(description="Recaptured overlap between the two title sets")
    chapman_estimate: int
    standard_error: int
    ci95: Tuple[int, int]
    sensitivity: List[SensitivityRow]
    assumptions: List[str]


class NetworkEstimate(FrozenModel):
    total_edges: int
    unique_pairs: int
    unique_nodes: int
    density: float
    self_loops: int
    reciprocal_pairs: int
    avg_degree: float


class RecommendedRange(FrozenModel):
    low: int
    mid: int
    high: int
    method: str


class ParticipationRate(FrozenModel):
    label: str
    population: int
    awards_per_person: float


class PopulationEstimate(FrozenModel):
    title_count: TitleCountEstimate
    capture_recapture: CaptureRecaptureEstimate
    network: NetworkEstimate
    recommended: RecommendedRange
    participation_rates: List[ParticipationRate]


# ============================================================================
# PIPELINE RUN DOCUMENTS
# ============================================================================

def _coerce_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


class TaxonomySubcategory(FrozenModel):
    id: str
    name: str = ""
    description: str = ""
    examples: List[str] = Field(default_factory=list)

    @field_validator("id", "name", "description", mode="before")
    @classmethod
    def _stringify(cls, v):
        return _coerce_optional_str(v) or ""

    @field_validator("examples", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else [str(e) for e in v]


class TaxonomyCategory(FrozenModel):
    id: str
    name: str = ""
    description: str = ""
    subcategories: List[TaxonomySubcategory] = Field(default_factory=list)

    @field_validator("id", "name", "description", mode="before")
    @classmethod
    def _stringify(cls, v):
        return _coerce_optional_str(v) or ""

    @field_validator("subcategories", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v


class Taxonomy(FrozenModel):
    categories: List[TaxonomyCategory] = Field(default_factory=list)
    reasoning: Optional[str] = None

    @field_validator("categories", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v

    @property
    def category_ids(self) -> List[str]:
        return [c.id.strip() for c in self.categories]

    @property
    def subcategory_ids(self) -> List[str]:
        return [s.id.strip() for c in self.categories for s in c.subcategories]


class Classification(FrozenModel):
    """One message's classification as emitted by the upstream pipeline."""
    batch: Optional[int] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    themes: List[str] = Field(default_factory=list)
    new_category: Optional[str] = None

    @field_validator("category", "subcategory", "new_category", mode="before")
    @classmethod
    def _stringify(cls, v):
        # Upstream output is untrusted; odd values are data points, not errors
        return _coerce_optional_str(v)

    @field_validator("batch", mode="before")
    @classmethod
    def _batch_index(cls, v):
        try:
            return None if v is None else int(v)
        except (TypeError, ValueError):
            return None

    @field_validator("themes", mode="before")
    @classmethod
    def _stringify_themes(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(t) for t in v if t is not None]


class ClassificationMetadata(FrozenModel):
    model_config = ConfigDict(frozen=True, extra="allow")
    total_messages: int = 0
    total_classified: int = 0
    batch_size: int = 0
    phase: Optional[int] = None
    model: Optional[str] = None

    @field_validator("total_messages", "total_classified", "batch_size", mode="before")
    @classmethod
    def _none_as_zero(cls, v):
        return 0 if v is None else v


class ClassificationDocument(FrozenModel):
    metadata: ClassificationMetadata = Field(default_factory=ClassificationMetadata)
    classifications: List[Classification] = Field(default_factory=list)
    candidate_categories: Dict[str, int] = Field(default_factory=dict)

    @field_validator("classifications", mode="before")
    @classmethod
    def _none_as_empty_list(cls, v):
        return [] if v is None else v

    @field_validator("candidate_categories", mode="before")
    @classmethod
    def _none_as_empty_dict(cls, v):
        return {} if v is None else v


class PipelineTiming(FrozenModel):
    model_config = ConfigDict(frozen=True, extra="allow")
    total_time_seconds: float = 0.0
    phases_run: List[int] = Field(default_factory=list)

    @field_validator("total_time_seconds", mode="before")
    @classmethod
    def _none_as_zero(cls, v):
        return 0.0 if v is None else v


class SummaryResults(FrozenModel):
    model_config = ConfigDict(frozen=True, extra="allow")
    final_categories: int = 0
    total_subcategories: int = 0
    candidates_found: int = 0
    changes_applied: int = 0


class RunSummary(FrozenModel):
    pipeline: Optional[PipelineTiming] = None
    results: Optional[SummaryResults] = None


class PipelineRun(FrozenModel):
    """A named bundle of one classification pipeline run's outputs."""
    name: str
    taxonomy: Optional[Taxonomy] = None
    classifications: Optional[ClassificationDocument] = None
    summary: Optional[RunSummary] = None


# ============================================================================
# CLASSIFICATION QUALITY
# ============================================================================

class CategoryCount(FrozenModel):
    category: str
    count: int
    pct: float
    is_valid: bool


class SubcategoryFormat(FrozenModel):
    format: str
    count: int
    example: str


class BatchHealth(FrozenModel):
    batch: int
    classified: int
    malformed: int
    expected: int


class ThemeCount(FrozenModel):
    theme: str
    count: int


class CandidateCategory(FrozenModel):
    name: str
    count: int


class ClassificationAnalysis(FrozenModel):
    total_classified: int
    total_messages: int
    success_rate: float
    category_distribution: List[CategoryCount]
    valid_categories: List[str]
    malformed_count: int
    malformed_pct: float
    subcategory_formats: List[SubcategoryFormat]
    subcategory_null_count: int
    batch_health: List[BatchHealth]
    missing_batches: List[int]
    top_themes: List[ThemeCount]
    candidate_categories: List[CandidateCategory]
    bias_score: float
    bias_category: str
    used_fallback_taxonomy: bool = False


# ============================================================================
# CROSS-RUN COMPARISON
# ============================================================================

class PipelineScore(FrozenModel):
    pipeline: str
    success_rate: float
    malformed_pct: float
    bias_score: float
    format_consistency: float
    category_count: int
    subcategory_count: int
    time_seconds: float
    candidates_found: int


class CategoryOverlap(FrozenModel):
    category: str
    pipelines: Dict[str, int]


class TaxonomyDiff(FrozenModel):
    category_name: str
    present_in: List[str]
    missing_from: List[str]


class RadarMetric(FrozenModel):
    metric: str
    full_mark: float
    values: Dict[str, float]


class ComparisonData(FrozenModel):
    pipelines: List[str]
    scores: List[PipelineScore]
    category_overlap: List[CategoryOverlap]
    taxonomy_diff: List[TaxonomyDiff]
    radar_metrics: List[RadarMetric]


# ============================================================================
# FULL REPORT
# ============================================================================

class AwardReport(FrozenModel):
    statistics: Optional[StatisticsReport] = None
    views: Optional[DerivedViews] = None
    population: Optional[PopulationEstimate] = None
    classification: Dict[str, ClassificationAnalysis] = Field(default_factory=dict)
    comparison: Optional[ComparisonData] = None
