from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: str = "dev"
    log_level: str = "INFO"
    api_base_url: str = "http://localhost:8000"
    site_url: str = "http://localhost:3000"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 2
    fingerprint_state_key: str = "index-notifier:fingerprints"
    indexnow_endpoint: str = "https://api.indexnow.org/indexnow"
    indexnow_key: str | None = None
    indexnow_key_location: str | None = None
    batch_size: int = 50
    delay_between_batches_seconds: float = 180.0
    rate_limit_wait_seconds: float = 60.0
    max_rate_limit_retries: int = 3
    request_timeout_seconds: float = 10.0
    cas_max_attempts: int = 5
    otel_enabled: bool = True
    otel_service_name: str = "nursejobs-workers"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="NJ_WORKER_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
