import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from gymbuddy.api.v1.router import router as v1_router
from gymbuddy.config import settings
from gymbuddy.core.exception_handlers import (
    app_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    store_exception_handler,
    validation_exception_handler,
)
from gymbuddy.core.exceptions import AppException
from gymbuddy.database import async_session_maker, check_db_connection
from gymbuddy.store import StoreError, create_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Database tables are managed by Alembic migrations
    # Run: alembic upgrade head
    if await check_db_connection():
        logger.info("Database connection successful")
    else:
        logger.warning("Database connection failed - ensure database is running")

    app.state.store = create_store(settings.STORE_BACKEND, async_session_maker)
    logger.info(
        "Directory store ready (backend=%s, match_strategy=%s)",
        settings.STORE_BACKEND,
        settings.MATCH_STRATEGY,
    )
    yield
    await app.state.store.close()


app = FastAPI(
    title=settings.APP_NAME,
    lifespan=lifespan,
)

# Register exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StoreError, store_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Parse CORS origins from settings
cors_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
