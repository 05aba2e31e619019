"""Jinja2 template configuration."""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from billsplit.core.config import settings
from billsplit.web.formatting import format_currency, format_date_range, format_percent

# Template directory is at billsplit/templates/
BASE_DIR = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

templates.env.filters["currency"] = format_currency
templates.env.filters["percent"] = format_percent
templates.env.globals["date_range"] = format_date_range
templates.env.globals["currency_symbol"] = settings.CURRENCY_SYMBOL
