from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "nursejobs-api"
    environment: str = "dev"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    database_command_timeout_seconds: float = 15.0
    interleave_window: int = 600
    default_page_size: int = 20
    max_page_size: int = 100
    salary_sample_limit: int = 5000
    related_jobs_limit: int = 5
    facet_limit_overrides_json: str | None = None
    otel_enabled: bool = True
    otel_service_name: str = "nursejobs-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="NJ_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
