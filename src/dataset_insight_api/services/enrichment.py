import asyncio
from typing import Dict, Optional, Protocol

from ..core.config import settings
from ..models.domain import DashboardBlueprint, DataSummary, EnrichmentResult


class EnrichmentService(Protocol):
    """Narrative/AI collaborator. Treated as a black box."""

    async def generate_insights(self, summary: DataSummary) -> EnrichmentResult: ...

    async def design_dashboard(self, summary: DataSummary) -> DashboardBlueprint: ...


class EntitlementChecker(Protocol):
    async def can_enrich(self, user_id: str) -> bool: ...

    async def consume_enrichment_call(self, user_id: str, tokens: int = 0) -> None: ...


class QuotaEntitlements:
    """Per-user enrichment call allowance kept in memory."""

    def __init__(self, calls_per_user: Optional[int] = None):
        self.calls_per_user = (
            calls_per_user
            if calls_per_user is not None
            else settings.ENRICHMENT_CALLS_PER_USER
        )
        self._remaining: Dict[str, int] = {}
        self._tokens: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    def remaining(self, user_id: str) -> int:
        return self._remaining.get(user_id, self.calls_per_user)

    def tokens_used(self, user_id: str) -> int:
        return self._tokens.get(user_id, 0)

    async def can_enrich(self, user_id: str) -> bool:
        return self.remaining(user_id) > 0

    async def consume_enrichment_call(self, user_id: str, tokens: int = 0) -> None:
        async with self._lock:
            self._remaining[user_id] = max(0, self.remaining(user_id) - 1)
            self._tokens[user_id] = self.tokens_used(user_id) + tokens
