"""Saved calculation history web routes."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from billsplit.api.dependencies import get_store
from billsplit.core.config import settings
from billsplit.services.storage import CalculationStore
from billsplit.web.dependencies import add_flash_message, get_flash_messages
from billsplit.web.formatting import build_share_summary
from billsplit.web.template_config import templates

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def list_history(
    request: Request,
    store: CalculationStore = Depends(get_store),
) -> HTMLResponse:
    """List saved calculations, newest first."""
    return templates.TemplateResponse(
        request,
        "history/list.html",
        {
            "active_tab": "history",
            "records": store.list(),
            "messages": get_flash_messages(request),
        },
    )


@router.get("/{calculation_id}", response_class=HTMLResponse, response_model=None)
async def view_calculation(
    request: Request,
    calculation_id: int,
    store: CalculationStore = Depends(get_store),
) -> HTMLResponse | RedirectResponse:
    """Display a saved calculation."""
    record = store.get_by_id(calculation_id)
    if not record:
        add_flash_message(request, "Calculation not found.", "error")
        return RedirectResponse("/history/", status_code=303)

    return templates.TemplateResponse(
        request,
        "calculations/result.html",
        {
            "active_tab": "history",
            "result": record,
            "record": record,
            "payload": None,
            "summary": build_share_summary(record, settings.CURRENCY_SYMBOL),
            "messages": get_flash_messages(request),
        },
    )


@router.post("/{calculation_id}/delete", response_model=None)
async def delete_calculation(
    request: Request,
    calculation_id: int,
    store: CalculationStore = Depends(get_store),
) -> RedirectResponse:
    """Delete a saved calculation."""
    if store.delete_by_id(calculation_id):
        add_flash_message(request, "Calculation deleted.", "success")
    else:
        add_flash_message(request, "Calculation not found.", "error")
    return RedirectResponse("/history/", status_code=303)
