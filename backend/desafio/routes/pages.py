from __future__ import annotations
import math
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from desafio.auth_deps import has_admin_session
from desafio.config import settings
from desafio.db import get_session
from desafio.errors import AppError
from desafio.routes.challenges import read_screenshot
from desafio.services import completions, intake, registry
from desafio.services.completions import CompletionFilters
from desafio.services.storage import PrintStorage, get_storage
from desafio.templating import templates

router = APIRouter(include_in_schema=False)

DASHBOARD_PAGE_SIZE = 20
EMPTY_FORM = {"full_name": "", "state": "", "city": "", "whatsapp": "", "order_number": ""}


# --- public pages ---

@router.get("/", response_class=HTMLResponse)
async def home(request: Request, session: AsyncSession = Depends(get_session)):
    challenges = await registry.list_challenges(session, active_only=True)
    return templates.TemplateResponse(request, "home.html", {"challenges": challenges})


def _form_page(request: Request, challenge, values: dict, status: dict, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "conclusao.html",
        {
            "challenge": challenge,
            "values": values,
            "status": status,
            "max_mb": settings.max_screenshot_mb,
        },
        status_code=status_code,
    )


def _not_found_page(request: Request):
    return templates.TemplateResponse(request, "not_found.html", {}, status_code=404)


@router.get("/conclusao/{slug}", response_class=HTMLResponse)
async def conclusao_form(slug: str, request: Request, session: AsyncSession = Depends(get_session)):
    challenge = await registry.get_by_slug(session, slug, active_only=True)
    if not challenge:
        return _not_found_page(request)
    return _form_page(request, challenge, dict(EMPTY_FORM), {"type": "idle"})


@router.post("/conclusao/{slug}", response_class=HTMLResponse)
async def conclusao_submit(
    slug: str,
    request: Request,
    full_name: str = Form(default=""),
    state: str = Form(default=""),
    city: str = Form(default=""),
    whatsapp: str = Form(default=""),
    order_number: str = Form(default=""),
    screenshot: UploadFile | None = File(default=None),
    session: AsyncSession = Depends(get_session),
    storage: PrintStorage = Depends(get_storage),
):
    challenge = await registry.get_by_slug(session, slug, active_only=True)
    if not challenge:
        return _not_found_page(request)
    values = {"full_name": full_name, "state": state, "city": city, "whatsapp": whatsapp, "order_number": order_number}
    try:
        form = intake.parse_form(values)
        shot = await read_screenshot(screenshot)
        await intake.submit_completion(session, storage, slug, form, shot)
    except AppError as e:
        return _form_page(request, challenge, values, {"type": "error", "message": e.message}, e.status_code)
    # form is reset after a successful submission
    return _form_page(request, challenge, dict(EMPTY_FORM), {"type": "success"})


# --- admin pages (gated by the admin middleware) ---

@router.get("/admin/login", response_class=HTMLResponse)
async def admin_login_page(request: Request):
    if has_admin_session(request):
        return RedirectResponse("/admin/conclusoes", status_code=303)
    return templates.TemplateResponse(request, "admin/login.html", {})


@router.get("/admin")
async def admin_root():
    return RedirectResponse("/admin/conclusoes", status_code=303)


@router.get("/admin/conclusoes", response_class=HTMLResponse)
async def admin_conclusoes(
    request: Request,
    q: str | None = Query(default=None),
    challenge: str | None = Query(default=None),
    confirmed: str | None = Query(default=None),
    status: str | None = Query(default="active"),
    page: int = Query(default=1, ge=1),
    session: AsyncSession = Depends(get_session),
):
    confirmed_filter = {"true": True, "false": False}.get((confirmed or "").lower())
    status_filter = status if status in ("active", "archived") else None
    filters = CompletionFilters(
        q=q,
        challenge=challenge or None,
        confirmed=confirmed_filter,
        status=status_filter,
        page_size=DASHBOARD_PAGE_SIZE,
    )
    total = await completions.count_completions(session, filters)
    pages = max(1, math.ceil(total / DASHBOARD_PAGE_SIZE))
    # a page past the end shows the last one
    filters.page = min(page, pages)
    rows, total = await completions.list_completions(session, filters)
    challenges = await registry.list_challenges(session)
    return templates.TemplateResponse(
        request,
        "admin/conclusoes.html",
        {
            "rows": rows,
            "total": total,
            "page": filters.page,
            "pages": pages,
            "challenges": challenges,
            "filters": {"q": q or "", "challenge": challenge or "", "confirmed": confirmed or "", "status": status or ""},
        },
    )


@router.get("/admin/config", response_class=HTMLResponse)
async def admin_config(request: Request, session: AsyncSession = Depends(get_session)):
    challenges = await registry.list_challenges(session)
    return templates.TemplateResponse(request, "admin/config.html", {"challenges": challenges})
