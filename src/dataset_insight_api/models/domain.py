from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Dataset(BaseModel):
    """An ordered, immutable sequence of records sharing one header list.

    Record values are plain scalars: ``None``, ``int``/``float``, ``bool`` or
    ``str`` (dates are ISO text once cast). Operations that change data build
    a new ``Dataset`` and never touch the rows of an existing one.

    Only the constructor validates (and copies) rows. ``with_rows`` skips
    validation so derived snapshots share unchanged row dicts with their
    source.
    """

    model_config = ConfigDict(frozen=True)

    headers: List[str]
    rows: List[Dict[str, Any]] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> List[Any]:
        return [row.get(name) for row in self.rows]

    def with_rows(self, rows: List[Dict[str, Any]]) -> "Dataset":
        return Dataset.model_construct(headers=self.headers, rows=rows)


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    BOOLEAN = "boolean"
    DATE = "date"
    UNKNOWN = "unknown"


class ColumnMetadata(BaseModel):
    name: str
    type: ColumnType
    null_count: int
    unique_count: int


class NumericStats(BaseModel):
    min: float
    max: float
    mean: float
    median: float
    std_dev: float
    outliers_count: int
    skewness: Literal["positive", "negative", "normal"] = "normal"


class CategoricalStats(BaseModel):
    top_value: str
    top_value_count: int


ColumnStats = Union[NumericStats, CategoricalStats]


class ColumnSummary(ColumnMetadata):
    stats: Optional[ColumnStats] = None


class Suggestion(BaseModel):
    id: str
    type: Literal["warning", "info", "critical"]
    title: str
    description: str
    impact: str
    action_label: str


class OperationLog(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)
    action: str
    reason: str
    details: str


class Contributor(BaseModel):
    factor: str
    dimension: str
    absolute_impact: float
    contribution_percentage: float
    direction: Literal["increase", "decrease"]


class RootCauseSummary(BaseModel):
    kpi_name: str
    total_delta: float
    total_delta_pct: float
    top_contributors: List[Contributor]
    confidence_score: float
    analysis_method: str = "Variance Decomposition (PoP Split)"


class KpiTile(BaseModel):
    label: str
    value: str
    trend: Optional[float] = None


class ChartPoint(BaseModel):
    segment: str
    value: float


ChartType = Literal["bar", "line", "pie", "scatter"]


class Chart(BaseModel):
    type: ChartType
    title: str
    x_key: str = "segment"
    y_key: str = "value"
    data: List[ChartPoint]


class Dashboard(BaseModel):
    kpis: List[KpiTile] = Field(default_factory=list)
    charts: List[Chart] = Field(default_factory=list)


class KpiRef(BaseModel):
    label: str
    column: str


class ChartSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: ChartType = "bar"
    title: str
    x_key: str = Field(alias="xKey")
    y_key: str = Field(alias="yKey")


class DashboardBlueprint(BaseModel):
    kpis: List[KpiRef] = Field(default_factory=list)
    charts: List[ChartSpec] = Field(default_factory=list)


class DataSummary(BaseModel):
    row_count: int
    column_count: int
    duplicate_count: int
    quality_score: int = Field(ge=0, le=100)
    suggestions: List[Suggestion] = Field(default_factory=list)
    operation_history: List[OperationLog] = Field(default_factory=list)
    columns: Dict[str, ColumnSummary] = Field(default_factory=dict)
    sample_data: List[Dict[str, Any]] = Field(default_factory=list)
    root_cause: Optional[RootCauseSummary] = None
    dashboard: Optional[Dashboard] = None


class EnrichmentResult(BaseModel):
    summary: str
    key_insights: List[str] = Field(default_factory=list)
    suggested_kpis: List[str] = Field(default_factory=list)
    risks_or_anomalies: Optional[List[str]] = None
    token_usage: Optional[int] = None


class CacheRecord(BaseModel):
    key: str
    summary: DataSummary
    enrichment: Optional[EnrichmentResult] = None
    created_at: datetime = Field(default_factory=utc_now)
