from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse

from ..core.exceptions import (
    InvalidJobStateError,
    JobNotFoundError,
    UnsupportedActionError,
)
from ..models.jobs import Job, JobSubmitRequest
from ..services import export
from ..services.jobs import JobService
from .deps import get_job_service

router = APIRouter()


@router.post("/", response_model=Job, status_code=status.HTTP_202_ACCEPTED)
async def submit_job(
    request: JobSubmitRequest, jobs: JobService = Depends(get_job_service)
):
    try:
        return await jobs.create_job(
            request.content, request.file_name, request.user_id, request.mode
        )
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"An unexpected error occurred: {e}"
        )


@router.get("/", response_model=List[Job])
def list_jobs(jobs: JobService = Depends(get_job_service)):
    return jobs.list_jobs()


@router.get("/{job_id}", response_model=Job)
def get_job(job_id: str, jobs: JobService = Depends(get_job_service)):
    try:
        return jobs.get(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{job_id}/actions/{action}", response_model=Job)
async def run_action(
    job_id: str, action: str, jobs: JobService = Depends(get_job_service)
):
    try:
        return await jobs.apply_action(job_id, action)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnsupportedActionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidJobStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{job_id}/retry", response_model=Dict[str, bool])
async def retry_job(job_id: str, jobs: JobService = Depends(get_job_service)):
    try:
        scheduled = await jobs.resubmit(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidJobStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"scheduled": scheduled}


@router.get("/{job_id}/export/csv", response_class=PlainTextResponse)
def export_cleaned_csv(job_id: str, jobs: JobService = Depends(get_job_service)):
    try:
        job = jobs.get(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if job.data_stack.top is None:
        raise HTTPException(status_code=409, detail="Job has no processed data yet")
    return PlainTextResponse(export.to_cleaned_csv(job.data_stack.top), media_type="text/csv")


@router.get("/{job_id}/export/dashboard", response_class=PlainTextResponse)
def export_dashboard(job_id: str, jobs: JobService = Depends(get_job_service)):
    try:
        job = jobs.get(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if job.summary is None or job.summary.dashboard is None:
        raise HTTPException(status_code=409, detail="Job has no dashboard")
    return PlainTextResponse(
        export.to_dashboard_report(job.summary.dashboard), media_type="text/csv"
    )
