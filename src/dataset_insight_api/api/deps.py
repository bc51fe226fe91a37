from fastapi import Request

from ..core.cache import CacheService
from ..services.jobs import JobService


def get_job_service(request: Request) -> JobService:
    return request.app.state.job_service


def get_cache(request: Request) -> CacheService:
    return request.app.state.cache
