import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .catalog import WordCatalog
from .config import settings
from .errors import CatalogExhausted, StorageUnavailable, ValidationError
from .globals import build_services
from .log_handler import SQLiteHandler
from .router import router
from .storage import ProgressStorage, SQLiteStorage

logger = logging.getLogger(__name__)


# --- Logging Setup ---
def setup_logging(db_path: Optional[str] = None):
    logger = logging.getLogger("dailylect")
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    if logger.handlers:
        return

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    if db_path:
        logger.addHandler(SQLiteHandler(db_path))
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Error handlers ---
async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    logger.error(f"Storage unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        {"error": "Storage unavailable, please retry", "retryable": True},
        status_code=503,
    )


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse({"error": str(exc)}, status_code=422)


async def catalog_exhausted_handler(request: Request, exc: CatalogExhausted):
    logger.error(f"Cannot build quiz: {exc}")
    return JSONResponse({"error": str(exc)}, status_code=409)


# --- App Factory ---
def create_app(
    storage: Optional[ProgressStorage] = None, catalog: Optional[WordCatalog] = None
) -> FastAPI:
    services = build_services(storage=storage, catalog=catalog)
    db_path = None
    if settings.DB_LOGGING and isinstance(services.storage, SQLiteStorage):
        db_path = services.storage.db_path
    setup_logging(db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting {settings.PROJECT_NAME} with "
            f"{type(services.storage).__name__} and {len(services.catalog)} words"
        )
        yield
        services.sessions.clear()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )
    app.state.services = services

    app.add_exception_handler(StorageUnavailable, storage_unavailable_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(CatalogExhausted, catalog_exhausted_handler)

    app.include_router(router)

    return app
