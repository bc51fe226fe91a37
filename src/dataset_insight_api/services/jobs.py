import asyncio
import logging
from collections import defaultdict
from functools import partial
from typing import Dict, List, Optional, Tuple, Union

from ..core.cache import CacheService
from ..core.exceptions import (
    InvalidJobStateError,
    JobNotFoundError,
    UnsupportedActionError,
)
from ..models.domain import ColumnMetadata, Dashboard, OperationLog, utc_now
from ..models.jobs import Job, JobAction, JobStatus, JobUpdate, SnapshotStack
from . import cleaning, dashboard, pipeline
from .enrichment import EnrichmentService, EntitlementChecker
from .queue import QueueService
from .storage import Storage

logger = logging.getLogger(__name__)

JobEvent = Tuple[str, JobUpdate]


class JobService:
    """Owns the job registry and broadcasts every merged update.

    Subscribers receive ``(job_id, JobUpdate)`` pairs on their own
    ``asyncio.Queue``, always after the update has been merged.
    """

    def __init__(
        self,
        queue: QueueService,
        storage: Storage,
        cache: CacheService,
        enrichment: Optional[EnrichmentService] = None,
        entitlements: Optional[EntitlementChecker] = None,
    ):
        self.queue = queue
        self.storage = storage
        self.cache = cache
        self.enrichment = enrichment
        self.entitlements = entitlements
        self._jobs: Dict[str, Job] = {}
        # one lock per registered job; like the registry itself it is never pruned
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._subscribers: List[asyncio.Queue] = []

    # -- registry -----------------------------------------------------------

    def get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self) -> List[Job]:
        return list(reversed(self._jobs.values()))

    def subscribe(self) -> asyncio.Queue:
        channel: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(channel)
        return channel

    def unsubscribe(self, channel: asyncio.Queue) -> None:
        if channel in self._subscribers:
            self._subscribers.remove(channel)

    def _notify(self, job_id: str, update: JobUpdate) -> None:
        for channel in list(self._subscribers):
            channel.put_nowait((job_id, update))

    def _merge(self, job_id: str, update: JobUpdate) -> Job:
        job = self.get(job_id)
        changes = update.changes()
        if job.is_terminal and changes.get("status", job.status) != job.status:
            logger.warning(
                "Job %s is %s, ignoring transition to %s",
                job_id,
                job.status.value,
                changes["status"].value,
            )
            changes.pop("status")
        merged = job.model_copy(update=changes)
        self._jobs[job_id] = merged
        return merged

    async def apply_update(self, job_id: str, update: JobUpdate) -> Job:
        """Replace the job record with the update overlaid, then notify."""
        async with self._locks[job_id]:
            merged = self._merge(job_id, update)
        self._notify(job_id, update)
        return merged

    # -- submission ---------------------------------------------------------

    async def create_job(
        self,
        content: str,
        file_name: str,
        user_id: str = "anonymous",
        mode: str = "default",
    ) -> Job:
        cache_key = self.cache.key(content, mode)
        job = Job(user_id=user_id, file_name=file_name, cache_key=cache_key)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.info("Cache hit for %s, completing job %s", file_name, job.id)
            snapshot = await asyncio.to_thread(pipeline.prepare_snapshot, content)
            job = job.model_copy(
                update={
                    "status": JobStatus.COMPLETED,
                    "completed_at": utc_now(),
                    "summary": cached.summary.model_copy(deep=True),
                    "enrichment": cached.enrichment,
                    "is_cached": True,
                    "data_stack": SnapshotStack(snapshot),
                }
            )
            self._jobs[job.id] = job
            self._notify(job.id, JobUpdate(status=JobStatus.COMPLETED, is_cached=True))
            return job

        job.file_path = f"raw/{user_id}/{job.id}_{file_name}"
        await self.storage.upload(job.file_path, content)

        self._jobs[job.id] = job
        self._notify(job.id, JobUpdate(status=JobStatus.PENDING))

        self.queue.push(
            job.id,
            job.file_path,
            cache_key,
            partial(self.apply_update, job.id),
            user_id=user_id,
        )
        return job

    async def resubmit(self, job_id: str) -> bool:
        """Queue an unfinished job again. No-op while it is still running."""
        job = self.get(job_id)
        if job.is_terminal:
            raise InvalidJobStateError(f"Job {job_id} is already {job.status.value}")
        if job.file_path is None:
            raise InvalidJobStateError(f"Job {job_id} has no stored source")
        return self.queue.push(
            job.id,
            job.file_path,
            job.cache_key,
            partial(self.apply_update, job.id),
            user_id=job.user_id,
        )

    # -- interactive actions ------------------------------------------------

    async def _design_dashboard(self, job: Job) -> Dashboard:
        current = job.data_stack.top
        entitled = (
            self.enrichment is not None
            and self.entitlements is not None
            and await self.entitlements.can_enrich(job.user_id)
        )
        if entitled:
            try:
                blueprint = await self.enrichment.design_dashboard(job.summary)
            except Exception:
                logger.warning(
                    "Dashboard design failed for job %s, using rule-based layout",
                    job.id,
                    exc_info=True,
                )
            else:
                await self.entitlements.consume_enrichment_call(job.user_id)
                return dashboard.build_dashboard_from_blueprint(
                    current, job.summary, blueprint
                )
        return dashboard.build_dashboard(current, job.summary)

    async def apply_action(self, job_id: str, action: Union[str, JobAction]) -> Job:
        try:
            action = JobAction(action)
        except ValueError:
            raise UnsupportedActionError(f"Unsupported action: {action}") from None

        self.get(job_id)  # unknown ids raise before a lock is allocated
        async with self._locks[job_id]:
            job = self.get(job_id)
            if job.summary is None or len(job.data_stack) == 0:
                raise InvalidJobStateError(f"Job {job_id} has no processed data yet")

            update = await self._run_action(job, action)
            if update is None:
                return job
            merged = self._merge(job_id, update)

        self._notify(job_id, update)
        return merged

    async def _run_action(self, job: Job, action: JobAction) -> Optional[JobUpdate]:
        stack = job.data_stack
        current = stack.top
        history = list(job.summary.operation_history)
        columns = [
            ColumnMetadata(
                name=c.name,
                type=c.type,
                null_count=c.null_count,
                unique_count=c.unique_count,
            )
            for c in job.summary.columns.values()
        ]

        if action == JobAction.UNDO:
            if len(stack) <= 1:
                return None
            previous = stack.get(stack.versions[-2])
            result = await asyncio.to_thread(pipeline.analyze, previous, history)
            stack.pop()
            return JobUpdate(summary=result.summary, data_stack=stack)

        if action == JobAction.BUILD_DASHBOARD:
            history.append(
                OperationLog(
                    action="Dashboard Design",
                    reason="User Request",
                    details="Arranged KPIs and charts for the current dataset.",
                )
            )
            board = await self._design_dashboard(job)
            summary = job.summary.model_copy(
                update={"dashboard": board, "operation_history": history}
            )
            return JobUpdate(summary=summary)

        if action == JobAction.CLEAN_DATA:
            new_data = cleaning.clean(current, columns)
            history.append(
                OperationLog(
                    action="Data Cleaning",
                    reason="User Request",
                    details="Resolved null values and normalized formats.",
                )
            )
        else:
            new_data, removed = cleaning.deduplicate(current)
            history.append(
                OperationLog(
                    action="Deduplication",
                    reason="User Request",
                    details=f"Pruned {removed} duplicate rows.",
                )
            )

        # the stack only changes once analysis of the new snapshot succeeded
        result = await asyncio.to_thread(pipeline.analyze, new_data, history)
        stack.push(new_data)
        if job.summary.dashboard is not None:
            result.summary.dashboard = job.summary.dashboard
        return JobUpdate(summary=result.summary, data_stack=stack)
