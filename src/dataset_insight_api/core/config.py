from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    STORAGE_ROOT: str = "data/storage"
    BIND_ADDR: str = "0.0.0.0"
    BIND_PORT: int = 8080
    LOG_LEVEL: str = "INFO"
    PIPELINE_VERSION: str = "v1.1"
    CSV_DELIMITER: str = ","
    MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_SECONDS: float = 2.0
    QUEUE_WARMUP_SECONDS: float = 0.0
    ROOT_CAUSE_MIN_ROWS: int = 10
    ROOT_CAUSE_MAX_CARDINALITY: int = 50
    ROOT_CAUSE_TOP_N: int = 6
    DASHBOARD_ROW_LIMIT: int = 500
    DASHBOARD_TOP_GROUPS: int = 10
    SAMPLE_ROWS: int = 5
    PLOT_BACKEND: Literal["vega", "vega-lite"] = "vega-lite"
    ENRICHMENT_CALLS_PER_USER: int = 10


settings = Settings()
