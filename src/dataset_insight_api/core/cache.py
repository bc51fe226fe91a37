import asyncio
import hashlib
from typing import Dict, Optional

from ..core.config import settings
from ..models.domain import CacheRecord, DataSummary, EnrichmentResult


def compute_key(content: str, mode: str = "default", version: Optional[str] = None) -> str:
    """SHA-256 over (content, mode, pipeline version).

    Bumping the pipeline version changes every key, which is the only way old
    entries stop being served.
    """
    version = version if version is not None else settings.PIPELINE_VERSION
    digest = hashlib.sha256()
    for part in (content, mode, version):
        digest.update(part.encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


class CacheService:
    """
    A content-addressed in-memory store of pipeline results, guarded by an
    asyncio.Lock. Entries never expire.
    """

    def __init__(self, version: Optional[str] = None):
        self._store: Dict[str, CacheRecord] = {}
        self._lock = asyncio.Lock()
        self.version = version if version is not None else settings.PIPELINE_VERSION

    def key(self, content: str, mode: str = "default") -> str:
        return compute_key(content, mode, self.version)

    async def get(self, key: str) -> Optional[CacheRecord]:
        """Retrieve a record, or None on a miss."""
        async with self._lock:
            return self._store.get(key)

    async def set(
        self,
        key: str,
        summary: DataSummary,
        enrichment: Optional[EnrichmentResult] = None,
    ) -> CacheRecord:
        """Store a result. Concurrent writers of one key store equal values."""
        record = CacheRecord(
            key=key, summary=summary.model_copy(deep=True), enrichment=enrichment
        )
        async with self._lock:
            self._store[key] = record
        return record

    async def has(self, key: str) -> bool:
        async with self._lock:
            return key in self._store

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()


# Global cache instance for pipeline results
insight_cache = CacheService()
