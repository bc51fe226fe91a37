from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.json_schema import SkipJsonSchema

from .domain import Dataset, DataSummary, EnrichmentResult, utc_now


class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    AI_REASONING = "AI_REASONING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class JobAction(str, Enum):
    CLEAN_DATA = "clean_data"
    REMOVE_DUPLICATES = "remove_duplicates"
    BUILD_DASHBOARD = "build_dashboard"
    UNDO = "undo"


class SnapshotStack:
    """Immutable dataset snapshots, newest on top, each with a version number.

    Snapshots share unchanged row objects with their predecessors, so a push
    costs one list of row references rather than a deep copy.
    """

    def __init__(self, initial: Optional[Dataset] = None):
        self._snapshots: List[Dataset] = []
        self._versions: List[int] = []
        self._next_version = 0
        if initial is not None:
            self.push(initial)

    def push(self, dataset: Dataset) -> int:
        version = self._next_version
        self._snapshots.append(dataset)
        self._versions.append(version)
        self._next_version += 1
        return version

    def pop(self) -> Optional[Dataset]:
        """Discard the top snapshot unless it is the only one left."""
        if len(self._snapshots) <= 1:
            return None
        self._versions.pop()
        return self._snapshots.pop()

    @property
    def top(self) -> Optional[Dataset]:
        return self._snapshots[-1] if self._snapshots else None

    @property
    def versions(self) -> List[int]:
        return list(self._versions)

    def get(self, version: int) -> Dataset:
        return self._snapshots[self._versions.index(version)]

    def __len__(self) -> int:
        return len(self._snapshots)


class Job(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str = "anonymous"
    file_name: str
    file_path: Optional[str] = None
    cache_key: Optional[str] = None
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    summary: Optional[DataSummary] = None
    enrichment: Optional[EnrichmentResult] = None
    error: Optional[str] = None
    is_cached: bool = False
    retry_count: int = 0
    processing_time_ms: Optional[float] = None
    data_stack: SkipJsonSchema[SnapshotStack] = Field(
        default_factory=SnapshotStack, exclude=True
    )

    @computed_field
    @property
    def snapshot_count(self) -> int:
        return len(self.data_stack)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobUpdate(BaseModel):
    """Partial job fields reported on the status channel."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: Optional[JobStatus] = None
    summary: Optional[DataSummary] = None
    enrichment: Optional[EnrichmentResult] = None
    error: Optional[str] = None
    retry_count: Optional[int] = None
    completed_at: Optional[datetime] = None
    processing_time_ms: Optional[float] = None
    is_cached: Optional[bool] = None
    data_stack: SkipJsonSchema[Optional[SnapshotStack]] = Field(default=None, exclude=True)

    def changes(self) -> dict:
        """Only the fields that were explicitly set, as live objects."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class JobSubmitRequest(BaseModel):
    content: str
    file_name: str = "upload.csv"
    user_id: str = "anonymous"
    mode: str = "default"
