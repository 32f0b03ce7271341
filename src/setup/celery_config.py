from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class CelerySettings(BaseSettings):
    """Configuration for the Celery notification backend."""
    REDIS_URL: str = "redis://redis:6379/0"
    STATUS_QUEUE: str = "task-processing"

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_celery_settings() -> CelerySettings:
    """Return a fresh Celery settings instance."""
    return CelerySettings()
