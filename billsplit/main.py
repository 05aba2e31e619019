"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from billsplit.api.routes import calculations, health, uploads
from billsplit.core.config import settings
from billsplit.core.errors import register_exception_handlers
from billsplit.core.logging import configure_logging
from billsplit.services.storage import build_store
from billsplit.web.routes import web_router

# Static files directory
BASE_DIR = Path(__file__).resolve().parent

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    logger.info(
        "Starting %s %s (storage=%s, tenants=%s)",
        settings.PROJECT_NAME,
        settings.VERSION,
        settings.STORAGE_BACKEND,
        ", ".join(settings.TENANTS),
    )
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Split a shared electricity bill among tenants using sub-meter readings",
    lifespan=lifespan,
)

app.state.store = build_store(settings)

register_exception_handlers(app)

# Session middleware for flash messages
app.add_middleware(
    SessionMiddleware,  # type: ignore[arg-type]
    secret_key=settings.SECRET_KEY,
    session_cookie="billsplit_session",
    max_age=86400 * 7,  # 7 days
    same_site="lax",
    https_only=not settings.DEBUG,
)

# Mount static files
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

# Include API routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(calculations.router, prefix="/api")
app.include_router(uploads.router, prefix="/api")

# Include web routes (Jinja2 frontend)
app.include_router(web_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "billsplit.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
