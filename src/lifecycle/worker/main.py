import asyncio

from src.setup.app_config import configure_di, get_app_settings
from src.setup.logging_config import configure_logging


async def run_stream_consumer() -> None:
    from src.setup.stream_config import build_stream_consumer

    configure_di()
    consumer = build_stream_consumer()
    await consumer.start()
    try:
        await consumer.join()
    finally:
        await consumer.stop()


def run_celery_worker(log_level: str) -> None:
    from src.lifecycle.infrastructure.celery.app import celery_app
    from src.setup.celery_config import get_celery_settings

    settings = get_celery_settings()
    celery_app.worker_main(
        [
            "worker",
            "-l",
            log_level,
            "-Q",
            settings.STATUS_QUEUE,
        ]
    )


def main() -> None:
    settings = get_app_settings()
    configure_logging(settings.LOG_LEVEL)
    if settings.NOTIFICATION_BACKEND == "celery":
        run_celery_worker(settings.LOG_LEVEL)
    else:
        asyncio.run(run_stream_consumer())


if __name__ == "__main__":
    main()
