import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware

from .api import analysis, jobs, plots
from .core.cache import CacheService, insight_cache
from .core.config import settings
from .core.logging import configure_logging
from .services import health
from .services.enrichment import EnrichmentService, QuotaEntitlements
from .services.jobs import JobService
from .services.queue import QueueService
from .services.storage import LocalFileStorage, Storage
from .services.worker import WorkerService

logger = logging.getLogger(__name__)


def build_job_service(
    storage: Storage,
    cache: CacheService,
    enrichment: Optional[EnrichmentService] = None,
    **queue_options,
) -> JobService:
    """Wire storage, cache and enrichment into a worker, queue and job registry."""
    entitlements = QuotaEntitlements()
    worker = WorkerService(storage, cache, enrichment, entitlements)
    queue = QueueService(worker, **queue_options)
    return JobService(queue, storage, cache, enrichment, entitlements)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # On startup
    configure_logging()
    Path(settings.STORAGE_ROOT).mkdir(parents=True, exist_ok=True)
    app.state.cache = insight_cache
    app.state.job_service = build_job_service(LocalFileStorage(), insight_cache)
    logger.info("Services ready, pipeline version %s", settings.PIPELINE_VERSION)

    yield
    # On shutdown
    await app.state.job_service.queue.drain()
    logger.info("Application shutting down.")


app = FastAPI(
    title="Dataset Insight API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allows all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allows all methods
    allow_headers=["*"],  # Allows all headers
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(analysis.router, prefix="/analysis", tags=["Analysis"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])
api_router.include_router(plots.router, prefix="/plots", tags=["Plots"])


@app.get("/healthz", tags=["Health"])
def healthz():
    """Provides a simple health check of the API server."""
    return {"status": "ok", "message": "API is running"}


@app.get("/readyz", tags=["Health"])
async def readyz(response: Response):
    """Checks if the service is ready to accept traffic (dependencies are available)."""
    storage_ok, storage_msg = health.check_storage_root()

    checks = {
        "storage_check": {
            "status": "ok" if storage_ok else "error",
            "detail": storage_msg,
        },
    }

    if storage_ok:
        return {"status": "ok", "checks": checks}
    else:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ok", "checks": checks}


app.include_router(api_router)
