import logging
from typing import Any, Dict, Hashable, List, Sequence, Tuple

from ..models.domain import ColumnMetadata, ColumnType, Dataset
from .schema import TRUTHY_VALUES, parse_date, parse_number

logger = logging.getLogger(__name__)

NULL_SENTINEL = "N/A"


def canonical_key(row: Dict[str, Any], headers: Sequence[str]) -> Tuple[Hashable, ...]:
    """Field-ordered identity of a row.

    Values are tagged so that ``True``, ``1`` and ``"1"`` never collide, while
    ``1`` and ``1.0`` do.
    """
    return tuple(
        (isinstance(v, bool), isinstance(v, str), v)
        for v in (row.get(h) for h in headers)
    )


def deduplicate(dataset: Dataset) -> Tuple[Dataset, int]:
    """Drop repeated rows, keeping the first occurrence."""
    seen = set()
    cleaned: List[Dict[str, Any]] = []
    duplicate_count = 0

    for row in dataset.rows:
        key = canonical_key(row, dataset.headers)
        if key in seen:
            duplicate_count += 1
        else:
            seen.add(key)
            cleaned.append(row)

    if duplicate_count:
        logger.debug("Removed %d duplicate rows", duplicate_count)
    return dataset.with_rows(cleaned), duplicate_count


def _cast_value(value: Any, column_type: ColumnType) -> Any:
    if value is None:
        return None
    if column_type == ColumnType.NUMERIC:
        return parse_number(value)
    if column_type == ColumnType.BOOLEAN:
        return str(value).lower() in TRUTHY_VALUES
    if column_type == ColumnType.DATE:
        parsed = parse_date(value)
        return parsed.isoformat() if parsed is not None else value
    return value


def cast_and_fill(dataset: Dataset, columns: Sequence[ColumnMetadata]) -> Dataset:
    """Apply each column's inferred type. Nulls stay null."""
    typed = [(c.name, c.type) for c in columns if c.type != ColumnType.CATEGORICAL]
    if not typed:
        return dataset.with_rows(list(dataset.rows))

    rows = []
    for row in dataset.rows:
        new_row = dict(row)
        for name, column_type in typed:
            new_row[name] = _cast_value(row.get(name), column_type)
        rows.append(new_row)
    return dataset.with_rows(rows)


def _fill_value(column_type: ColumnType) -> Any:
    if column_type == ColumnType.NUMERIC:
        return 0
    if column_type == ColumnType.BOOLEAN:
        return False
    return NULL_SENTINEL


def clean(dataset: Dataset, columns: Sequence[ColumnMetadata]) -> Dataset:
    """On-demand remediation: impute nulls per type and trim text."""
    rows = []
    for row in dataset.rows:
        new_row = dict(row)
        for col in columns:
            value = new_row.get(col.name)
            if value is None:
                new_row[col.name] = _fill_value(col.type)
            elif isinstance(value, str):
                new_row[col.name] = value.strip()
        rows.append(new_row)
    return dataset.with_rows(rows)
