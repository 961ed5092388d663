from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from desafio.auth_deps import require_admin
from desafio.config import settings
from desafio.db import get_session
from desafio.errors import NotFound
from desafio.schemas.challenge import ChallengeCreate, ChallengePublic, ChallengeUpdate
from desafio.schemas.completion import CompletionPublic
from desafio.services import intake, registry
from desafio.services.storage import PrintStorage, get_storage

router = APIRouter(prefix="/api", tags=["challenges"])
admin_router = APIRouter(prefix="/api/admin/challenges", tags=["admin-challenges"], dependencies=[Depends(require_admin)])


# --- public ---

@router.get("/challenges")
async def list_active_challenges(session: AsyncSession = Depends(get_session)):
    rows = await registry.list_challenges(session, active_only=True)
    return {"data": [ChallengePublic.model_validate(c) for c in rows]}


@router.get("/challenges/{slug}")
async def get_challenge(slug: str, session: AsyncSession = Depends(get_session)):
    ch = await registry.get_by_slug(session, slug, active_only=True)
    if not ch:
        raise NotFound("Desafio nao encontrado.")
    return {"data": ChallengePublic.model_validate(ch)}


@router.post("/challenges/{slug}/completions", status_code=status.HTTP_201_CREATED)
async def submit_completion(
    slug: str,
    full_name: str | None = Form(default=None),
    state: str | None = Form(default=None),
    city: str | None = Form(default=None),
    whatsapp: str | None = Form(default=None),
    order_number: str | None = Form(default=None),
    screenshot: UploadFile | None = File(default=None, description="print do Strava (imagem ate 5MB)"),
    session: AsyncSession = Depends(get_session),
    storage: PrintStorage = Depends(get_storage),
):
    form = intake.parse_form(
        {"full_name": full_name, "state": state, "city": city, "whatsapp": whatsapp, "order_number": order_number}
    )
    shot = await read_screenshot(screenshot)
    row = await intake.submit_completion(session, storage, slug, form, shot)
    return {"data": CompletionPublic.model_validate(row)}


async def read_screenshot(upload: UploadFile | None) -> intake.Screenshot | None:
    if upload is None or not upload.filename:
        return None
    # bounded read; check_screenshot rejects anything past the limit
    data = await upload.read(settings.max_screenshot_mb * 1024 * 1024 + 1)
    return intake.Screenshot(data=data, filename=upload.filename, content_type=upload.content_type)


# --- admin ---

@admin_router.get("")
async def admin_list_challenges(session: AsyncSession = Depends(get_session)):
    rows = await registry.list_challenges(session)
    return {"data": [ChallengePublic.model_validate(c) for c in rows]}


@admin_router.post("")
async def admin_create_challenge(payload: ChallengeCreate, session: AsyncSession = Depends(get_session)):
    ch = await registry.create_challenge(
        session,
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        badge=payload.badge,
        highlight=payload.highlight,
    )
    return {"data": ChallengePublic.model_validate(ch)}


@admin_router.patch("/{challenge_id}")
async def admin_update_challenge(
    challenge_id: uuid.UUID, payload: ChallengeUpdate, session: AsyncSession = Depends(get_session)
):
    ch = await registry.update_challenge(session, challenge_id, payload.changes())
    return {"data": ChallengePublic.model_validate(ch)}


@admin_router.delete("/{challenge_id}")
async def admin_delete_challenge(challenge_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    await registry.delete_challenge(session, challenge_id)
    return {"success": True}
