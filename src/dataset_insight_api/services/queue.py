import asyncio
import logging
from typing import Dict, Optional

from ..core.config import settings
from ..core.exceptions import IngestionError
from ..models.jobs import JobStatus, JobUpdate
from .worker import UpdateCallback, WorkerService

logger = logging.getLogger(__name__)


class QueueService:
    """
    In-process task queue with bounded retries and linear backoff.
    One asyncio task per job; a job id already in flight is not scheduled twice.
    """

    def __init__(
        self,
        worker: WorkerService,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        warmup: Optional[float] = None,
    ):
        self.worker = worker
        self.max_attempts = max_attempts if max_attempts is not None else settings.MAX_ATTEMPTS
        self.base_delay = (
            base_delay if base_delay is not None else settings.RETRY_BASE_DELAY_SECONDS
        )
        self.warmup = warmup if warmup is not None else settings.QUEUE_WARMUP_SECONDS
        self._in_flight: Dict[str, asyncio.Task] = {}

    def in_flight(self, job_id: str) -> bool:
        return job_id in self._in_flight

    def push(
        self,
        job_id: str,
        source: str,
        cache_key: str,
        on_update: UpdateCallback,
        user_id: str = "anonymous",
    ) -> bool:
        """Schedule a job and return immediately.

        Returns False without scheduling anything if the job is already running.
        """
        if job_id in self._in_flight:
            logger.info("Job %s already in flight, ignoring resubmission", job_id)
            return False

        task = asyncio.create_task(
            self._execute(job_id, source, cache_key, on_update, user_id),
            name=f"job-{job_id}",
        )
        self._in_flight[job_id] = task
        task.add_done_callback(lambda _: self._in_flight.pop(job_id, None))
        return True

    async def _execute(
        self,
        job_id: str,
        source: str,
        cache_key: str,
        on_update: UpdateCallback,
        user_id: str,
    ) -> None:
        for attempt in range(1, self.max_attempts + 1):
            if self.warmup:
                await asyncio.sleep(self.warmup)
            try:
                await self.worker.process_task(
                    job_id, source, cache_key, on_update, user_id=user_id
                )
            except IngestionError as e:
                logger.error("Job %s has unreadable input: %s", job_id, e)
                await on_update(
                    JobUpdate(
                        status=JobStatus.FAILED,
                        error=f"Ingestion failed: {e}",
                        retry_count=attempt - 1,
                    )
                )
                return
            except Exception as e:
                if attempt < self.max_attempts:
                    logger.warning(
                        "Retrying job %s. Attempt %d/%d after error: %s",
                        job_id,
                        attempt + 1,
                        self.max_attempts,
                        e,
                    )
                    await on_update(JobUpdate(retry_count=attempt))
                    await asyncio.sleep(self.base_delay * attempt)
                    continue

                logger.error(
                    "Job %s failed after %d attempts", job_id, self.max_attempts
                )
                await on_update(
                    JobUpdate(
                        status=JobStatus.FAILED,
                        error=f"Pipeline failure after {self.max_attempts} attempts: {e}",
                        retry_count=attempt - 1,
                    )
                )
                return

            logger.info("Job %s completed on attempt %d", job_id, attempt)
            return

    async def drain(self) -> None:
        """Wait for every in-flight job to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)
