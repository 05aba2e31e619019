"""Calculator form web routes."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from starlette.datastructures import FormData, UploadFile

from billsplit.api.dependencies import get_store
from billsplit.core.config import settings
from billsplit.schemas.calculation import CalculationCreate, MeterImages
from billsplit.services.apportionment import ApportionmentError, compute_shares
from billsplit.services.storage import CalculationStore
from billsplit.services.uploads import StoredImage, UploadRejected, discard_image, save_image
from billsplit.web.dependencies import add_flash_message, get_flash_messages
from billsplit.web.formatting import build_share_summary, default_period
from billsplit.web.template_config import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def _validation_message(exc: ValidationError) -> str:
    """Turn a pydantic error into one line for the form."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        parts.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "; ".join(parts)


def _form_tenants(form: FormData) -> list[dict]:
    """Collect ``tenant_name_<i>`` / ``reading_<i>`` pairs in index order."""
    tenants = []
    index = 0
    while f"tenant_name_{index}" in form:
        tenants.append(
            {
                "index": index,
                "name": str(form.get(f"tenant_name_{index}", "")).strip(),
                "reading": str(form.get(f"reading_{index}", "")).strip(),
            }
        )
        index += 1
    return tenants


async def _store_upload(value: object, stored: list[StoredImage]) -> str | None:
    """Store a file field if one was chosen and return its URL."""
    if not isinstance(value, UploadFile) or not value.filename:
        return None
    image = await save_image(value)
    stored.append(image)
    return image.url


def _render_form(
    request: Request,
    values: dict,
    tenants: list[dict],
    error: str | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "home/index.html",
        {
            "active_tab": "home",
            "values": values,
            "tenants": tenants,
            "error": error,
            "messages": get_flash_messages(request),
        },
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
async def home(request: Request) -> HTMLResponse:
    """Display the bill calculator form."""
    period_start, period_end = default_period(date.today(), settings.DEFAULT_PERIOD_MONTHS)
    values = {
        "period_start": period_start.isoformat(),
        "period_end": period_end.isoformat(),
        "main_meter_reading": "",
        "bill_amount": "",
    }
    tenants = [
        {"index": i, "name": name, "reading": ""} for i, name in enumerate(settings.TENANTS)
    ]
    return _render_form(request, values, tenants)


@router.post("/calculate", response_class=HTMLResponse)
async def calculate(request: Request) -> HTMLResponse:
    """Compute the split from the form and show it without saving."""
    form = await request.form()

    values = {
        key: str(form.get(key, "")).strip()
        for key in ("period_start", "period_end", "main_meter_reading", "bill_amount")
    }
    tenants = _form_tenants(form)

    try:
        data = CalculationCreate.model_validate(
            {
                **values,
                "sub_meter_readings": [
                    {"tenant": t["name"], "reading": t["reading"]} for t in tenants
                ],
            }
        )
        result = compute_shares(data)
    except ValidationError as e:
        return _render_form(request, values, tenants, _validation_message(e), 400)
    except ApportionmentError as e:
        logger.info("Rejected calculator form: %s", e.message)
        return _render_form(request, values, tenants, e.message, 400)

    # Photos are only kept once the readings have produced a split
    stored: list[StoredImage] = []
    try:
        main_meter_image = await _store_upload(form.get("main_meter_image"), stored)
        sub_meter_images = {}
        for tenant in tenants:
            url = await _store_upload(form.get(f"meter_image_{tenant['index']}"), stored)
            if url:
                sub_meter_images[tenant["name"]] = url
        bill_image = await _store_upload(form.get("bill_image"), stored)
    except UploadRejected as e:
        for image in stored:
            discard_image(image.filename)
        logger.info("Rejected calculator photo: %s", e.message)
        return _render_form(request, values, tenants, e.message, 400)

    images = {
        "meter_images": (
            MeterImages(main_meter=main_meter_image, sub_meters=sub_meter_images)
            if main_meter_image or sub_meter_images
            else None
        ),
        "bill_image": bill_image,
    }
    data = data.model_copy(update=images)
    result = result.model_copy(update=images)

    return templates.TemplateResponse(
        request,
        "calculations/result.html",
        {
            "active_tab": "home",
            "result": result,
            "record": None,
            "payload": data.model_dump_json(),
            "summary": build_share_summary(result, settings.CURRENCY_SYMBOL),
            "messages": get_flash_messages(request),
        },
    )


@router.post("/save", response_class=HTMLResponse, response_model=None)
async def save_calculation(
    request: Request,
    payload: str = Form(...),
    store: CalculationStore = Depends(get_store),
) -> RedirectResponse:
    """Recompute a previewed split and save it to history."""
    try:
        data = CalculationCreate.model_validate_json(payload)
        result = compute_shares(data)
    except ValidationError:
        add_flash_message(request, "Could not save: the calculation data was invalid.", "error")
        return RedirectResponse("/", status_code=303)
    except ApportionmentError as e:
        add_flash_message(request, f"Could not save: {e.message}", "error")
        return RedirectResponse("/", status_code=303)

    record = store.save(result)
    add_flash_message(request, "Calculation saved to history.", "success")
    return RedirectResponse(f"/history/{record.id}", status_code=303)
