"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    LoggingSchema      → logging.yaml
    StoreSchema        → store.yaml
    AuthSchema         → auth.yaml
    ConcurrencySchema  → concurrency.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class DisplaySchema(_StrictBase):
    body_preview_length: int = Field(gt=0)
    title_max_length: int = Field(gt=0)


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    display: DisplaySchema


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# store.yaml
# =============================================================================


class StoreRetrySchema(_StrictBase):
    max_attempts: int = Field(ge=1)
    backoff_multiplier: int
    backoff_max: int


class StoreCircuitBreakerSchema(_StrictBase):
    fail_max: int
    timeout_duration: int


class StoreSchema(_StrictBase):
    backend: Literal["firestore", "memory"]
    collection_root: str
    user_collection: str
    write_timeout: float
    retry: StoreRetrySchema
    circuit_breaker: StoreCircuitBreakerSchema


# =============================================================================
# auth.yaml
# =============================================================================


class AuthSchema(_StrictBase):
    base_url: str
    token_url: str
    timeout: float
    session_file: str
    google_provider_id: str
    request_uri: str


# =============================================================================
# concurrency.yaml
# =============================================================================


class ThreadPoolSchema(_StrictBase):
    max_workers: int


class ConcurrencySchema(_StrictBase):
    thread_pool: ThreadPoolSchema
