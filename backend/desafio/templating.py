from __future__ import annotations
from datetime import datetime
from pathlib import Path
from fastapi.templating import Jinja2Templates
from desafio.config import settings

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

def format_date(value: datetime | None) -> str:
    if not value:
        return "-"
    return value.strftime("%d/%m/%Y %H:%M")

templates.env.filters["date_br"] = format_date
templates.env.globals["app_display_name"] = settings.app_display_name
