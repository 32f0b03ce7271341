from typing import Literal

import inject
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from src.lifecycle.domain.repositories import NotificationChannelRepository, TaskStorageRepository
from src.lifecycle.infrastructure.postgres.orm import PostgresOrm
from src.lifecycle.infrastructure.postgres.repositories import PostgresTaskRepository
from src.setup.db_config import get_database_settings


class AppSettings(BaseSettings):
    """Process-wide wiring options."""
    NOTIFICATION_BACKEND: Literal["streams", "celery"] = "streams"
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_app_settings() -> AppSettings:
    return AppSettings()


def build_orm() -> PostgresOrm:
    settings = get_database_settings()
    return PostgresOrm(settings.DATABASE_URL, echo=settings.DB_ECHO)


def build_notification_channel(settings: AppSettings | None = None) -> NotificationChannelRepository:
    """Create the channel selected by ``NOTIFICATION_BACKEND``."""
    if settings is None:
        settings = get_app_settings()
    if settings.NOTIFICATION_BACKEND == "celery":
        from src.lifecycle.infrastructure.celery.repositories import CeleryNotificationChannel
        from src.setup.celery_config import get_celery_settings

        return CeleryNotificationChannel(queue=get_celery_settings().STATUS_QUEUE)

    from src.setup.stream_config import build_stream_channel

    return build_stream_channel()


def configure_di(
    *,
    storage: TaskStorageRepository | None = None,
    channel: NotificationChannelRepository | None = None,
    force: bool = False,
) -> None:
    """Bind storage and notification channel implementations into the DI container."""
    if inject.is_configured() and not force:
        return

    storage = storage or PostgresTaskRepository(build_orm())
    channel = channel or build_notification_channel()

    def _config(binder: inject.Binder) -> None:
        binder.bind(TaskStorageRepository, storage)
        binder.bind(NotificationChannelRepository, channel)

    if force:
        inject.clear_and_configure(_config)
    else:
        inject.configure_once(_config)
