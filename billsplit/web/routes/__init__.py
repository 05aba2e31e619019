"""Web routes package."""

from fastapi import APIRouter

from billsplit.web.routes import history, home

web_router = APIRouter()

web_router.include_router(home.router, tags=["web-home"])
web_router.include_router(history.router, prefix="/history", tags=["web-history"])
