import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import polars as pl

from ..core.config import settings
from ..core.exceptions import IngestionError
from ..models.domain import Dataset

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")


def _normalize(value: Any) -> Any:
    """Trim text and store empty strings as null."""
    if isinstance(value, str):
        value = value.strip()
        return value if value else None
    return value


def parse_text(text: str, delimiter: Optional[str] = None) -> Dataset:
    """Parse raw delimited text into a dataset.

    The first non-blank line is the header. Quoted fields are not supported:
    every line is split on the delimiter as-is. Missing trailing fields are
    stored as null and surplus fields are dropped.
    """
    delimiter = delimiter or settings.CSV_DELIMITER
    lines = [line for line in _LINE_SPLIT.split(text or "") if line.strip()]
    if not lines:
        raise IngestionError("File is empty")

    headers = [h.strip() for h in lines[0].split(delimiter)]
    rows: List[Dict[str, Any]] = []
    for line in lines[1:]:
        values = line.split(delimiter)
        rows.append(
            {
                header: _normalize(values[i]) if i < len(values) else None
                for i, header in enumerate(headers)
            }
        )

    logger.debug("Parsed %d rows with %d headers", len(rows), len(headers))
    return Dataset(headers=headers, rows=rows)


def from_records(
    headers: Sequence[str], records: Iterable[Mapping[str, Any]]
) -> Dataset:
    """Build a dataset from records produced by an external reader."""
    headers = [str(h).strip() for h in headers]
    if not headers:
        raise IngestionError("No headers supplied")

    rows = [{h: _normalize(record.get(h)) for h in headers} for record in records]
    return Dataset(headers=headers, rows=rows)


def from_frame(frame: pl.DataFrame) -> Dataset:
    """Convert a polars frame (e.g. from read_excel or read_parquet)."""
    if frame.width == 0:
        raise IngestionError("Frame has no columns")
    return from_records(frame.columns, frame.iter_rows(named=True))


def load_parquet(path: Path) -> Dataset:
    path = Path(path)
    if not path.exists():
        raise IngestionError(f"File not found: {path}")
    return from_frame(pl.read_parquet(path))
