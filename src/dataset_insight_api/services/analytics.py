from typing import Any, Dict, Sequence

import polars as pl

from ..models.domain import (
    CategoricalStats,
    ColumnMetadata,
    ColumnStats,
    ColumnType,
    Dataset,
    NumericStats,
)
from .schema import parse_number

# mean must sit this many standard deviations away from the median to be skewed
SKEW_TOLERANCE = 0.1
TUKEY_FENCE = 1.5


def calculate_numeric_stats(values: Sequence[float]) -> NumericStats:
    """Descriptive statistics for a non-empty list of numbers.

    Standard deviation is the population one (divide by n). Quartiles are
    taken by index into the sorted values, and ``skewness`` is only a label
    comparing mean and median, not a moment statistic.
    """
    if not values:
        raise ValueError("Cannot compute statistics of an empty column")

    series = pl.Series("values", values, dtype=pl.Float64).sort()
    n = len(series)

    mean = series.mean()
    median = series.median()
    std_dev = series.std(ddof=0) or 0.0

    skewness = "normal"
    if mean > median + std_dev * SKEW_TOLERANCE:
        skewness = "positive"
    elif mean < median - std_dev * SKEW_TOLERANCE:
        skewness = "negative"

    q1 = series[int(n * 0.25)]
    q3 = series[int(n * 0.75)]
    iqr = q3 - q1
    lower_bound = q1 - TUKEY_FENCE * iqr
    upper_bound = q3 + TUKEY_FENCE * iqr
    outliers_count = int(((series < lower_bound) | (series > upper_bound)).sum())

    return NumericStats(
        min=series[0],
        max=series[-1],
        mean=mean,
        median=median,
        std_dev=std_dev,
        outliers_count=outliers_count,
        skewness=skewness,
    )


def calculate_categorical_stats(values: Sequence[Any]) -> CategoricalStats:
    """Mode of the values.

    Ties go to whichever value reached the maximum count first while scanning
    in row order.
    """
    counts: Dict[str, int] = {}
    top_value = "N/A"
    top_value_count = 0

    for value in values:
        key = str(value)
        counts[key] = counts.get(key, 0) + 1
        if counts[key] > top_value_count:
            top_value_count = counts[key]
            top_value = key

    return CategoricalStats(top_value=top_value, top_value_count=top_value_count)


def compute_column_stats(
    dataset: Dataset, columns: Sequence[ColumnMetadata]
) -> Dict[str, ColumnStats]:
    stats: Dict[str, ColumnStats] = {}
    for col in columns:
        values = [v for v in dataset.column(col.name) if v is not None]
        if col.type == ColumnType.NUMERIC:
            numbers = [n for n in map(parse_number, values) if n is not None]
            if numbers:
                stats[col.name] = calculate_numeric_stats(numbers)
        elif col.type == ColumnType.CATEGORICAL:
            stats[col.name] = calculate_categorical_stats(values)
    return stats
