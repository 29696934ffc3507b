"""Configuration settings for the entity sync service."""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Service Configuration
    service_name: str = "entity-sync-service"
    port: int = 8000
    environment: str = "development"
    debug: bool = False

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8080"]

    # Database
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "entity_sync"
    redis_url: str = "redis://localhost:6379"

    # Storage backends: "redis" or "memory" for state, "mongo" or "memory"
    # for local entities
    state_backend: str = "redis"
    entity_backend: str = "mongo"

    # Synchronizations
    sync_config_path: Optional[str] = None
    entity_types_path: Optional[str] = None
    state_collection_prefix: str = "entity_sync.state"
    default_page_limit: int = 100
    process_queues: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Identifier that a synchronization operation's `state.manager` setting must
# carry for its state to be managed by this service.
STATE_MANAGER_ID = "entity_sync"
