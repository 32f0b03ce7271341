from fastapi import FastAPI

from src.lifecycle.presentation.errors import register_exception_handlers
from src.setup.api_config import get_api_settings
from src.setup.app_config import configure_di, get_app_settings
from src.setup.logging_config import configure_logging

# Configure logging and DI once at process start
_settings = get_api_settings()
configure_logging(get_app_settings().LOG_LEVEL)
configure_di()

app = FastAPI(
    title=_settings.APP_NAME,
    version=_settings.APP_VERSION,
    description="Task lifecycle API with status change notifications",
)
register_exception_handlers(app)

# Routes instantiate services at import time, so they must load after configure_di().
from src.lifecycle.presentation.routes import router as api_router  # noqa: E402

app.include_router(api_router, prefix="")
