import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from ..models.domain import Dataset, DataSummary, OperationLog
from . import analytics, cleaning, loader, root_cause, schema, summary

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    summary: DataSummary
    cleaned: Dataset
    processing_time_ms: float = 0.0


def analyze(
    dataset: Dataset,
    history: Optional[List[OperationLog]] = None,
    duplicate_count: int = 0,
) -> PipelineResult:
    """Schema detection, casting, statistics, root cause and summary.

    Can be re-run on any snapshot, e.g. after an interactive action or undo.
    """
    history = list(history or [])

    columns = schema.detect_schema(dataset)
    cleaned = cleaning.cast_and_fill(dataset, columns)
    stats = analytics.compute_column_stats(cleaned, columns)
    cause = root_cause.analyze(cleaned, columns)

    result = summary.generate(cleaned, columns, duplicate_count, stats, history)
    if cause is not None:
        result.root_cause = cause
    return PipelineResult(summary=result, cleaned=cleaned)


def process_dataset(dataset: Dataset) -> PipelineResult:
    """Full deterministic run on a freshly loaded dataset."""
    start = time.perf_counter()
    history = [
        OperationLog(
            action="Ingestion",
            reason="Initial loading",
            details=f"Loaded {len(dataset)} raw rows with {len(dataset.headers)} headers.",
        )
    ]

    deduped, duplicate_count = cleaning.deduplicate(dataset)
    if duplicate_count > 0:
        history.append(
            OperationLog(
                action="Deduplication",
                reason="Data integrity",
                details=f"Removed {duplicate_count} redundant records.",
            )
        )

    result = analyze(deduped, history, duplicate_count)
    result.processing_time_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "Processed %d rows (%d duplicates) in %.1f ms",
        len(dataset),
        duplicate_count,
        result.processing_time_ms,
    )
    return result


def process_text(text: str, delimiter: Optional[str] = None) -> PipelineResult:
    return process_dataset(loader.parse_text(text, delimiter))


def prepare_snapshot(text: str) -> Dataset:
    """Rebuild the initial cleaned snapshot without recomputing statistics."""
    deduped, _ = cleaning.deduplicate(loader.parse_text(text))
    return cleaning.cast_and_fill(deduped, schema.detect_schema(deduped))
