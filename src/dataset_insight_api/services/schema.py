import math
from datetime import date, datetime, time
from typing import Any, Iterable, List, Optional

from ..models.domain import ColumnMetadata, ColumnType, Dataset

BOOLEAN_VOCABULARY = frozenset({"true", "false", "1", "0", "yes", "no"})
TRUTHY_VALUES = frozenset({"true", "1", "yes"})

_DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%B %d, %Y",
)


def parse_number(value: Any) -> Optional[float]:
    """Return the numeric reading of a value, or None if it is not a number.

    Booleans are not numbers here even though ``bool`` subclasses ``int``,
    and neither are NaN or infinities.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def is_boolean_like(value: Any) -> bool:
    return str(value).lower() in BOOLEAN_VOCABULARY


def detect_type(values: Iterable[Any]) -> ColumnType:
    """Classify a column from its non-null values.

    Priority is fixed: numeric, boolean, date, then categorical. A column with
    no non-null values is unknown.
    """
    non_nulls = [v for v in values if v is not None]
    if not non_nulls:
        return ColumnType.UNKNOWN
    if all(parse_number(v) is not None for v in non_nulls):
        return ColumnType.NUMERIC
    if all(is_boolean_like(v) for v in non_nulls):
        return ColumnType.BOOLEAN
    if all(parse_date(v) is not None for v in non_nulls):
        return ColumnType.DATE
    return ColumnType.CATEGORICAL


def _identity(value: Any) -> tuple:
    # keeps True distinct from 1 and "1" distinct from 1
    return (isinstance(value, bool), isinstance(value, str), value)


def get_column_metadata(name: str, values: List[Any]) -> ColumnMetadata:
    non_nulls = [v for v in values if v is not None]
    return ColumnMetadata(
        name=name,
        type=detect_type(non_nulls),
        null_count=len(values) - len(non_nulls),
        unique_count=len({_identity(v) for v in non_nulls}),
    )


def detect_schema(dataset: Dataset) -> List[ColumnMetadata]:
    return [get_column_metadata(h, dataset.column(h)) for h in dataset.headers]
