import asyncio

from src.lifecycle.application.handlers import StatusChangeHandler
from src.lifecycle.domain.events.status_change import STATUS_UPDATE_TOPIC, StatusChangeNotification
from src.lifecycle.infrastructure.celery.app import celery_app
from src.lifecycle.infrastructure.postgres.orm import PostgresOrm
from src.lifecycle.infrastructure.postgres.repositories import PostgresTaskRepository
from src.setup.db_config import get_database_settings


def _build_orm() -> PostgresOrm:
    settings = get_database_settings()
    # Each job runs in its own event loop, so pooled connections cannot be reused.
    return PostgresOrm(settings.DATABASE_URL, echo=settings.DB_ECHO, null_pool=True)


async def _handle(notification: StatusChangeNotification) -> None:
    orm = _build_orm()
    try:
        await StatusChangeHandler(storage=PostgresTaskRepository(orm)).handle(notification)
    finally:
        await orm.dispose()


@celery_app.task(name=STATUS_UPDATE_TOPIC)
def task_status_update(payload: dict) -> None:
    """
    Process one status change notification published by the API.
    """
    notification = StatusChangeNotification.model_validate(payload)
    asyncio.run(_handle(notification))
