from typing import Any, List, Optional

import polars as pl

from ..core.config import settings
from ..models.domain import (
    Chart,
    ChartPoint,
    ChartSpec,
    ColumnType,
    Dashboard,
    DashboardBlueprint,
    Dataset,
    DataSummary,
    KpiRef,
    KpiTile,
    NumericStats,
)
from .schema import parse_number


def _segment(value: Any) -> str:
    # empty, zero and false-like keys collapse into a single bucket
    return str(value) if value else "N/A"


def _measure(value: Any) -> float:
    number = parse_number(value)
    return number if number is not None else 0.0


def format_kpi_value(summary: DataSummary, column: str) -> str:
    meta = summary.columns.get(column)
    if meta is None or not isinstance(meta.stats, NumericStats):
        return "N/A"
    return f"{meta.stats.mean:,.1f}"


def aggregate_chart(
    dataset: Dataset,
    spec: ChartSpec,
    row_limit: Optional[int] = None,
    top_groups: Optional[int] = None,
) -> Chart:
    """Sum ``y_key`` per ``x_key`` over the leading rows, largest first."""
    row_limit = row_limit if row_limit is not None else settings.DASHBOARD_ROW_LIMIT
    top_groups = top_groups if top_groups is not None else settings.DASHBOARD_TOP_GROUPS

    rows = dataset.rows[:row_limit]
    frame = pl.DataFrame(
        {
            "segment": [_segment(r.get(spec.x_key)) for r in rows],
            "value": [_measure(r.get(spec.y_key)) for r in rows],
        },
        schema={"segment": pl.Utf8, "value": pl.Float64},
    )
    grouped = (
        frame.group_by("segment", maintain_order=True)
        .agg(pl.col("value").sum())
        .sort("value", descending=True, maintain_order=True)
        .head(top_groups)
    )

    return Chart(
        type=spec.type,
        title=spec.title,
        data=[ChartPoint(**point) for point in grouped.to_dicts()],
    )


def build_dashboard_from_blueprint(
    dataset: Dataset, summary: DataSummary, blueprint: DashboardBlueprint
) -> Dashboard:
    kpis = [
        KpiTile(label=k.label, value=format_kpi_value(summary, k.column))
        for k in blueprint.kpis
    ]
    charts = [aggregate_chart(dataset, spec) for spec in blueprint.charts]
    return Dashboard(kpis=kpis, charts=charts)


def fallback_blueprint(summary: DataSummary) -> DashboardBlueprint:
    """Rule-based layout used when no external blueprint is available."""
    numeric = [n for n, c in summary.columns.items() if c.type == ColumnType.NUMERIC]
    categorical = [
        n for n, c in summary.columns.items() if c.type == ColumnType.CATEGORICAL
    ]

    charts: List[ChartSpec] = [
        ChartSpec(
            type="bar",
            title=f"{num} Distribution by {cat}",
            x_key=cat,
            y_key=num,
        )
        for cat in categorical[:2]
        for num in numeric[:1]
    ]
    return DashboardBlueprint(
        kpis=[KpiRef(label=f"Total {c}", column=c) for c in numeric[:3]],
        charts=charts,
    )


def build_dashboard(dataset: Dataset, summary: DataSummary) -> Dashboard:
    return build_dashboard_from_blueprint(dataset, summary, fallback_blueprint(summary))
