import csv
import io
from typing import Any

from ..models.domain import Dashboard, Dataset


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_cleaned_csv(dataset: Dataset) -> str:
    """Serialize a snapshot as CSV; nulls become empty fields."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(dataset.headers)
    for row in dataset.rows:
        writer.writerow([_cell(row.get(h)) for h in dataset.headers])
    return buffer.getvalue().rstrip("\n")


def to_dashboard_report(board: Dashboard) -> str:
    """Single-sheet CSV report of KPI tiles followed by chart aggregates."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["DASHBOARD KPI SUMMARY"])
    writer.writerow(["Metric", "Value", "Trend (%)"])
    for kpi in board.kpis:
        writer.writerow([kpi.label, kpi.value, kpi.trend or 0])

    writer.writerow([])
    writer.writerow([])

    writer.writerow(["VISUALIZATION DATA AGGREGATES"])
    for chart in board.charts:
        writer.writerow([f"Chart: {chart.title}"])
        writer.writerow(["Dimension", "Value"])
        for point in chart.data:
            writer.writerow([point.segment, point.value])
        writer.writerow([])

    return buffer.getvalue()
