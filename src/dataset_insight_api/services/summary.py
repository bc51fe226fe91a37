import math
from typing import List, Mapping, Optional, Sequence

from ..core.config import settings
from ..models.domain import (
    ColumnMetadata,
    ColumnStats,
    ColumnSummary,
    Dataset,
    DataSummary,
    NumericStats,
    OperationLog,
    Suggestion,
)

DUPLICATE_PENALTY = 10
SPARSE_PENALTY = 5
OUTLIER_PENALTY = 3
SPARSE_RATIO = 0.1
OUTLIER_RATIO = 0.05


def _round_half_up(value: float) -> int:
    # round() would send 12.5 to 12
    return math.floor(value + 0.5)


def generate(
    dataset: Dataset,
    columns: Sequence[ColumnMetadata],
    duplicate_count: int,
    stats: Mapping[str, ColumnStats],
    history: List[OperationLog],
    sample_rows: Optional[int] = None,
) -> DataSummary:
    """Assemble column metadata, statistics and rule-based suggestions.

    Each rule deducts from a health score starting at 100; the final
    ``quality_score`` never drops below 0. Suggestions are advisory only.
    """
    sample_rows = sample_rows if sample_rows is not None else settings.SAMPLE_ROWS
    row_count = len(dataset)
    suggestions: List[Suggestion] = []
    health = 100

    if duplicate_count > 0:
        health -= DUPLICATE_PENALTY
        suggestions.append(
            Suggestion(
                id="dup_01",
                type="warning",
                title="Redundant Data Found",
                description=f"Found {duplicate_count} exact duplicate rows.",
                impact="Duplicates can skew averages and inflate metrics artificially.",
                action_label="Remove Duplicates",
            )
        )

    column_summary = {}
    for col in columns:
        col_stats = stats.get(col.name)
        column_summary[col.name] = ColumnSummary(**col.model_dump(), stats=col_stats)

        if col.null_count > row_count * SPARSE_RATIO:
            health -= SPARSE_PENALTY
            suggestions.append(
                Suggestion(
                    id=f"null_{col.name}",
                    type="critical",
                    title=f"Sparse Data: {col.name}",
                    description=f"{_round_half_up(col.null_count / row_count * 100)}% of values are missing.",
                    impact="High null counts lead to unreliable statistical projections.",
                    action_label="Impute Values",
                )
            )

        if (
            isinstance(col_stats, NumericStats)
            and col_stats.outliers_count > row_count * OUTLIER_RATIO
        ):
            health -= OUTLIER_PENALTY
            suggestions.append(
                Suggestion(
                    id=f"out_{col.name}",
                    type="info",
                    title=f"Statistical Noise: {col.name}",
                    description=f"Detected {col_stats.outliers_count} anomalies in distribution.",
                    impact="Outliers can pull the mean away from the true central tendency.",
                    action_label="Trim Outliers",
                )
            )

    return DataSummary(
        row_count=row_count,
        column_count=len(columns),
        duplicate_count=duplicate_count,
        quality_score=min(100, max(0, health)),
        suggestions=suggestions,
        operation_history=list(history),
        columns=column_summary,
        sample_data=[dict(r) for r in dataset.rows[:sample_rows]],
    )
