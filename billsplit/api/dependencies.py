"""Shared API dependencies."""

from fastapi import Request

from billsplit.services.storage import CalculationStore


def get_store(request: Request) -> CalculationStore:
    """Dependency for getting the application's calculation store."""
    return request.app.state.store
