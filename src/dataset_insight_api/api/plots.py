from fastapi import APIRouter, Depends, HTTPException
from typing import Dict, Any

from ..core.exceptions import JobNotFoundError
from ..models.analysis import PlotRequest
from ..services import plotting
from ..services.jobs import JobService
from .deps import get_job_service

router = APIRouter()


@router.post("/", response_model=Dict[str, Any], tags=["Plots"])
def generate_plot_endpoint(
    request: PlotRequest, jobs: JobService = Depends(get_job_service)
):
    """
    Renders one chart of a job's dashboard as Vega-Lite JSON.
    """
    try:
        job = jobs.get(request.job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if job.summary is None or job.summary.dashboard is None:
        raise HTTPException(status_code=409, detail="Job has no dashboard")

    charts = job.summary.dashboard.charts
    if not 0 <= request.chart_index < len(charts):
        raise HTTPException(
            status_code=404, detail=f"Chart {request.chart_index} not found"
        )

    try:
        return plotting.render_chart(charts[request.chart_index], request.backend)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"An unexpected error occurred: {e}"
        )
