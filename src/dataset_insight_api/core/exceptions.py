class DatasetInsightError(Exception):
    """Base class for every error raised by the insight pipeline."""


class IngestionError(DatasetInsightError):
    """Raw input is empty or cannot be turned into a dataset."""


class StorageError(DatasetInsightError):
    """The storage backend could not read or write a path."""


class EnrichmentError(DatasetInsightError):
    """The enrichment collaborator failed to produce a result."""


class JobNotFoundError(DatasetInsightError, KeyError):
    def __init__(self, job_id: str):
        super().__init__(job_id)
        self.job_id = job_id

    def __str__(self) -> str:
        return f"Job {self.job_id} not found"


class UnsupportedActionError(DatasetInsightError, ValueError):
    pass


class InvalidJobStateError(DatasetInsightError):
    pass
