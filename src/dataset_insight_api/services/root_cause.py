import logging
from typing import List, Optional, Sequence

import polars as pl

from ..core.config import settings
from ..models.domain import (
    ColumnMetadata,
    ColumnType,
    Contributor,
    Dataset,
    RootCauseSummary,
)
from .schema import parse_number

logger = logging.getLogger(__name__)

ANALYSIS_METHOD = "Variance Decomposition (PoP Split)"


def _kpi_value(value) -> float:
    number = parse_number(value)
    return number if number is not None else 0.0


def _segment(value) -> str:
    return "N/A" if value is None else str(value)


def dimension_deltas(frame: pl.DataFrame) -> pl.DataFrame:
    """Per-segment KPI sums for each half and their difference.

    ``frame`` holds ``segment``, ``kpi`` and the half marker ``is_current``.
    Segments keep first-seen order.
    """
    return (
        frame.group_by("segment", maintain_order=True)
        .agg(
            pl.col("kpi").filter(~pl.col("is_current")).sum().alias("baseline"),
            pl.col("kpi").filter(pl.col("is_current")).sum().alias("current"),
        )
        .with_columns((pl.col("current") - pl.col("baseline")).alias("delta"))
    )


def analyze(
    dataset: Dataset,
    columns: Sequence[ColumnMetadata],
    min_rows: Optional[int] = None,
    max_cardinality: Optional[int] = None,
    top_n: Optional[int] = None,
) -> Optional[RootCauseSummary]:
    """Period-over-period variance decomposition of the first numeric column.

    Rows are split by position: the first half is the baseline and the second
    half is the current period. Callers are expected to order rows
    meaningfully (e.g. chronologically) before calling.
    """
    min_rows = min_rows if min_rows is not None else settings.ROOT_CAUSE_MIN_ROWS
    max_cardinality = (
        max_cardinality
        if max_cardinality is not None
        else settings.ROOT_CAUSE_MAX_CARDINALITY
    )
    top_n = top_n if top_n is not None else settings.ROOT_CAUSE_TOP_N

    row_count = len(dataset)
    if row_count < min_rows:
        return None

    kpi_col = next((c for c in columns if c.type == ColumnType.NUMERIC), None)
    if kpi_col is None:
        return None

    midpoint = row_count // 2
    kpi = [_kpi_value(v) for v in dataset.column(kpi_col.name)]
    baseline_sum = sum(kpi[:midpoint])
    current_sum = sum(kpi[midpoint:])
    total_delta = current_sum - baseline_sum
    total_delta_pct = (total_delta / baseline_sum) * 100 if baseline_sum != 0 else 0.0

    dimensions = [
        c.name
        for c in columns
        if c.type == ColumnType.CATEGORICAL and 1 < c.unique_count < max_cardinality
    ]

    contributors: List[Contributor] = []
    for dimension in dimensions:
        frame = pl.DataFrame(
            {
                "segment": [_segment(v) for v in dataset.column(dimension)],
                "kpi": kpi,
                "is_current": [i >= midpoint for i in range(row_count)],
            },
            schema={"segment": pl.Utf8, "kpi": pl.Float64, "is_current": pl.Boolean},
        )
        deltas = dimension_deltas(frame).select("segment", "delta")
        for factor, delta in deltas.iter_rows():
            if delta == 0:
                continue
            contributors.append(
                Contributor(
                    factor=factor,
                    dimension=dimension,
                    absolute_impact=delta,
                    contribution_percentage=(
                        delta / abs(total_delta) * 100 if total_delta != 0 else 0.0
                    ),
                    direction="increase" if delta > 0 else "decrease",
                )
            )

    contributors.sort(key=lambda c: abs(c.absolute_impact), reverse=True)
    logger.debug(
        "Root cause on %s: delta=%s across %d dimensions",
        kpi_col.name,
        total_delta,
        len(dimensions),
    )

    return RootCauseSummary(
        kpi_name=kpi_col.name,
        total_delta=total_delta,
        total_delta_pct=total_delta_pct,
        top_contributors=contributors[:top_n],
        confidence_score=min(95.0, row_count / 10 + 70),
        analysis_method=ANALYSIS_METHOD,
    )
