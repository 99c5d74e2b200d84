"""Pipeline configuration via Pydantic Settings.

All settings are configurable via environment variables or .env file.
A store whose binding is left unset is treated as unavailable for this
deployment rather than as an error.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

UUID_V4_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "AgentLog"
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    # Store bindings: None means "not bound in this deployment"
    database_url: Optional[str] = None
    redis_url: Optional[str] = None
    kv_ttl_seconds: int = 86400
    blob_bucket: Optional[str] = None
    blob_endpoint_url: Optional[str] = None
    blob_region: Optional[str] = None
    blob_prefix: str = "overflow/"
    vector_enabled: bool = True

    # Embeddings
    embedding_dimensions: int = 384
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"

    # Validation
    max_detail_length: int = 32768
    inline_detail_limit: int = 4000
    uuid_pattern: str = UUID_V4_PATTERN
    timestamp_pattern: Optional[str] = None
    log_types: list[str] = [
        "session",
        "voice-change",
        "insight",
        "breakthrough",
        "commitment",
        "api-failure",
        "session-end",
        "action-success",
        "action-error",
        "session-event",
        "user-action",
        "autonomous-action",
    ]
    store_names: list[str] = ["kv", "relational", "blob", "vector"]
    strict_aliases: bool = True
    auto_create_schema: bool = False

    # Dispatch
    store_timeout: float = 2.0
    store_breaker_enabled: bool = False
    breaker_failure_threshold: int = 5
    breaker_recovery_timeout: float = 300.0

    # Retrieval
    default_read_limit: int = 20
    max_read_limit: int = 200


settings = Settings()
