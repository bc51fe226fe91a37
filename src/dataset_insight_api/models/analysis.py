from pydantic import BaseModel
from typing import Optional

from .domain import DataSummary


class AnalysisRequest(BaseModel):
    content: str
    delimiter: Optional[str] = None
    with_dashboard: bool = True


class AnalysisResult(BaseModel):
    cache_key: str
    cached: bool = False
    summary: DataSummary


class PlotRequest(BaseModel):
    job_id: str
    chart_index: int = 0
    backend: Optional[str] = None
