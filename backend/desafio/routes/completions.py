from __future__ import annotations
import uuid
from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from desafio.auth_deps import require_admin
from desafio.db import get_session
from desafio.errors import BadRequest
from desafio.schemas.completion import (
    CompletionIdBody,
    CompletionPage,
    CompletionPatch,
    CompletionPublic,
    CompletionStatus,
)
from desafio.services import completions
from desafio.services.completions import CompletionFilters
from desafio.services.export import to_csv

router = APIRouter(prefix="/api/admin", tags=["admin-completions"], dependencies=[Depends(require_admin)])


def csv_response(rows, filename: str) -> Response:
    return Response(
        content=to_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def wants_csv(fmt: str | None) -> bool:
    return bool(fmt) and "csv" in fmt.lower()


@router.get("/challenge-completions", response_model=CompletionPage)
async def list_challenge_completions(
    q: str | None = Query(default=None, description="search over name, city, state, whatsapp, order and challenge"),
    challenge: str | None = Query(default=None, description="challenge slug"),
    confirmed: bool | None = Query(default=None),
    status: CompletionStatus | None = Query(default=None),
    page: int | None = Query(default=None, ge=1),
    page_size: int = Query(default=20, ge=1, le=completions.MAX_PAGE_SIZE),
    fmt: str | None = Query(default=None, alias="format", description="'csv' to download the filtered rows"),
    session: AsyncSession = Depends(get_session),
):
    filters = CompletionFilters(q=q, challenge=challenge, confirmed=confirmed, status=status, page=page, page_size=page_size)
    if wants_csv(fmt):
        # export ignores pagination
        filters.page = None
        rows, _ = await completions.list_completions(session, filters)
        return csv_response(rows, "challenge-completions.csv")
    rows, total = await completions.list_completions(session, filters)
    return CompletionPage(
        data=[CompletionPublic.model_validate(r) for r in rows],
        total=total,
        page=page,
        page_size=page_size if page is not None else None,
    )


@router.patch("/challenge-completions/{completion_id}")
async def update_challenge_completion(
    completion_id: uuid.UUID,
    payload: CompletionPatch,
    session: AsyncSession = Depends(get_session),
):
    row = await completions.set_confirmed(session, completion_id, payload.is_confirmed)
    return {"data": CompletionPublic.model_validate(row)}


@router.delete("/challenge-completions/{completion_id}")
async def delete_challenge_completion(completion_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    await completions.delete(session, completion_id)
    return {"success": True}


@router.post("/challenge-completions/{completion_id}/restore")
async def restore_challenge_completion(completion_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    row = await completions.restore(session, completion_id)
    return {"data": CompletionPublic.model_validate(row)}


# "conclusoes" keeps the archive workflow: only active rows are listed/exported,
# PATCH archives and DELETE removes, both addressed by {"id": ...} in the body.

@router.get("/conclusoes")
async def list_conclusoes(fmt: str | None = Query(default=None, alias="format"), session: AsyncSession = Depends(get_session)):
    rows, _ = await completions.list_completions(session, CompletionFilters(status="active"))
    if wants_csv(fmt):
        return csv_response(rows, "conclusoes.csv")
    return {"data": [CompletionPublic.model_validate(r) for r in rows]}


def _require_id(payload: CompletionIdBody | None) -> uuid.UUID:
    if payload is None or payload.id is None:
        raise BadRequest("O campo id eh obrigatorio.")
    return payload.id


@router.patch("/conclusoes")
async def archive_conclusao(payload: CompletionIdBody | None = Body(default=None), session: AsyncSession = Depends(get_session)):
    row = await completions.archive(session, _require_id(payload))
    return {"data": CompletionPublic.model_validate(row)}


@router.delete("/conclusoes")
async def delete_conclusao(payload: CompletionIdBody | None = Body(default=None), session: AsyncSession = Depends(get_session)):
    await completions.delete(session, _require_id(payload))
    return {"success": True}
