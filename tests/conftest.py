import asyncio

import pytest

from dataset_insight_api.core.cache import CacheService
from dataset_insight_api.core.exceptions import EnrichmentError, StorageError
from dataset_insight_api.models.domain import (
    DashboardBlueprint,
    Dataset,
    DataSummary,
    EnrichmentResult,
)
from dataset_insight_api.services.enrichment import QuotaEntitlements
from dataset_insight_api.services.jobs import JobService
from dataset_insight_api.services.queue import QueueService
from dataset_insight_api.services.storage import InMemoryStorage
from dataset_insight_api.services.worker import WorkerService

SALES_CSV = """date,region,product,units,revenue,promo
2024-01-01,North,Widget,10,100.5,yes
2024-01-02,South,Gadget,5,,no
2024-01-03,North,Gadget,7,70,yes
2024-01-03,North,Gadget,7,70,yes
2024-01-04,East,Widget,,40,no
2024-01-05,South,Widget,12,120,yes
2024-01-06,East,Gadget,3,33,no
2024-01-07,North,Widget,15,150,yes
2024-01-08,South,Gadget,9,95,no
2024-01-09,East,Widget,11,115,
2024-01-10,North,Gadget,14,140,yes
2024-01-11,South,Widget,20,210,no
"""


class FakeEnrichment:
    """Returns canned insights and a fixed blueprint."""

    def __init__(self):
        self.calls = 0

    async def generate_insights(self, summary: DataSummary) -> EnrichmentResult:
        self.calls += 1
        await asyncio.sleep(0)
        return EnrichmentResult(
            summary=f"{summary.row_count} rows analysed",
            key_insights=["Units grow over time"],
            suggested_kpis=["units"],
            token_usage=42,
        )

    async def design_dashboard(self, summary: DataSummary) -> DashboardBlueprint:
        await asyncio.sleep(0)
        return DashboardBlueprint.model_validate(
            {
                "kpis": [{"label": "Average Units", "column": "units"}],
                "charts": [
                    {
                        "type": "pie",
                        "title": "Revenue by Product",
                        "xKey": "product",
                        "yKey": "revenue",
                    }
                ],
            }
        )


class FailingEnrichment:
    async def generate_insights(self, summary: DataSummary) -> EnrichmentResult:
        raise EnrichmentError("model unavailable")

    async def design_dashboard(self, summary: DataSummary) -> DashboardBlueprint:
        raise EnrichmentError("model unavailable")


class BrokenStorage(InMemoryStorage):
    """Accepts uploads but every download fails."""

    def __init__(self):
        super().__init__()
        self.download_calls = 0

    async def download(self, path: str) -> str:
        self.download_calls += 1
        raise StorageError(f"connection reset while reading {path}")


def make_job_service(storage=None, enrichment=None, calls_per_user=10) -> JobService:
    storage = storage if storage is not None else InMemoryStorage()
    cache = CacheService(version="test")
    entitlements = QuotaEntitlements(calls_per_user=calls_per_user)
    worker = WorkerService(storage, cache, enrichment, entitlements)
    queue = QueueService(worker, max_attempts=3, base_delay=0, warmup=0)
    return JobService(queue, storage, cache, enrichment, entitlements)


def drain_channel(channel: asyncio.Queue) -> list:
    events = []
    while not channel.empty():
        events.append(channel.get_nowait())
    return events


@pytest.fixture
def sales_csv():
    return SALES_CSV


@pytest.fixture
def scenario_a():
    return Dataset(
        headers=["a", "b"],
        rows=[{"a": 1, "b": "x"}, {"a": 1, "b": "x"}, {"a": 2, "b": "y"}],
    )


@pytest.fixture
def job_service():
    return make_job_service()
