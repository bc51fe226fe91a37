import asyncio

from fastapi import APIRouter, Depends, HTTPException

from ..core.cache import CacheService
from ..core.exceptions import IngestionError
from ..models.analysis import AnalysisRequest, AnalysisResult
from ..services import dashboard, pipeline
from .deps import get_cache

router = APIRouter()


@router.post("/run", response_model=AnalysisResult)
async def run_analysis_endpoint(
    request: AnalysisRequest, cache: CacheService = Depends(get_cache)
):
    try:
        # Compute cache key
        cache_key = cache.key(request.content, f"sync:{request.delimiter or ''}")

        # Check cache first
        cached_record = await cache.get(cache_key)
        if cached_record is not None:
            return AnalysisResult(
                cache_key=cache_key, cached=True, summary=cached_record.summary
            )

        result = await asyncio.to_thread(
            pipeline.process_text, request.content, request.delimiter
        )
        summary = result.summary
        if request.with_dashboard:
            summary.dashboard = dashboard.build_dashboard(result.cleaned, summary)

        # Cache the result
        await cache.set(cache_key, summary)

        return AnalysisResult(cache_key=cache_key, summary=summary)

    except IngestionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"An unexpected error occurred: {e}"
        )


@router.get("/cache/{cache_key}", response_model=AnalysisResult)
async def get_cached_analysis(cache_key: str, cache: CacheService = Depends(get_cache)):
    """Fetch a cached pipeline result by its key."""
    cached_record = await cache.get(cache_key)
    if cached_record is None:
        raise HTTPException(status_code=404, detail="Cached result not found")
    return AnalysisResult(cache_key=cache_key, cached=True, summary=cached_record.summary)
