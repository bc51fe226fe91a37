import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..core.cache import CacheService
from ..models.domain import Dataset, DataSummary, EnrichmentResult, utc_now
from ..models.jobs import JobStatus, JobUpdate, SnapshotStack
from . import dashboard, pipeline
from .enrichment import EnrichmentService, EntitlementChecker
from .storage import Storage

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[JobUpdate], Awaitable[None]]


class WorkerService:
    """Runs one full pipeline pass for a queued job."""

    def __init__(
        self,
        storage: Storage,
        cache: CacheService,
        enrichment: Optional[EnrichmentService] = None,
        entitlements: Optional[EntitlementChecker] = None,
    ):
        self.storage = storage
        self.cache = cache
        self.enrichment = enrichment
        self.entitlements = entitlements

    async def _entitled(self, user_id: str) -> bool:
        if self.enrichment is None or self.entitlements is None:
            return False
        return await self.entitlements.can_enrich(user_id)

    async def enrich(
        self, dataset: Dataset, summary: DataSummary, user_id: str
    ) -> Optional[EnrichmentResult]:
        """Fan out insight and blueprint generation, then attach a dashboard.

        Each half is handled on its own: a failed blueprint falls back to the
        rule-based dashboard, a failed insight call leaves enrichment empty.
        A call is charged only when at least one half succeeded.
        """
        insights, blueprint = await asyncio.gather(
            self.enrichment.generate_insights(summary),
            self.enrichment.design_dashboard(summary),
            return_exceptions=True,
        )

        if isinstance(blueprint, BaseException):
            logger.warning(
                "Dashboard design failed for user %s, using rule-based dashboard",
                user_id,
                exc_info=blueprint,
            )
            summary.dashboard = dashboard.build_dashboard(dataset, summary)
        else:
            summary.dashboard = dashboard.build_dashboard_from_blueprint(
                dataset, summary, blueprint
            )

        if isinstance(insights, BaseException):
            logger.warning(
                "Insight generation failed for user %s", user_id, exc_info=insights
            )
            insights = None

        if insights is not None or not isinstance(blueprint, BaseException):
            tokens = insights.token_usage if insights is not None else None
            await self.entitlements.consume_enrichment_call(user_id, tokens or 0)
        return insights

    async def process_task(
        self,
        job_id: str,
        source: str,
        cache_key: str,
        on_update: UpdateCallback,
        user_id: str = "anonymous",
    ) -> None:
        await on_update(JobUpdate(status=JobStatus.PROCESSING))

        raw_content = await self.storage.download(source)
        result = await asyncio.to_thread(pipeline.process_text, raw_content)
        summary = result.summary

        await self.storage.upload(
            f"processed/{job_id}_summary.json", summary.model_dump_json()
        )

        enrichment: Optional[EnrichmentResult] = None
        if await self._entitled(user_id):
            await on_update(JobUpdate(status=JobStatus.AI_REASONING))
            enrichment = await self.enrich(result.cleaned, summary, user_id)
        else:
            summary.dashboard = dashboard.build_dashboard(result.cleaned, summary)

        try:
            await self.cache.set(cache_key, summary, enrichment)
        except Exception:
            logger.warning("Could not cache result for job %s", job_id, exc_info=True)

        await on_update(
            JobUpdate(
                status=JobStatus.COMPLETED,
                completed_at=utc_now(),
                summary=summary,
                enrichment=enrichment,
                data_stack=SnapshotStack(result.cleaned),
                processing_time_ms=result.processing_time_ms,
            )
        )
