from __future__ import annotations
import uuid
from dataclasses import dataclass
from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from desafio.errors import NotFound, UpstreamError
from desafio.models.completion import ChallengeCompletion

log = structlog.get_logger()

MAX_PAGE_SIZE = 200

_SEARCH_COLUMNS = (
    ChallengeCompletion.full_name,
    ChallengeCompletion.city,
    ChallengeCompletion.state,
    ChallengeCompletion.whatsapp,
    ChallengeCompletion.order_number,
    ChallengeCompletion.challenge_name,
    ChallengeCompletion.challenge_slug,
)


def escape_like(text: str) -> str:
    """Make %, _ and \\ match literally in a LIKE pattern (escape char is a backslash)."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class CompletionFilters:
    q: str | None = None
    challenge: str | None = None
    confirmed: bool | None = None
    status: str | None = None
    page: int | None = None
    page_size: int = 20

    def apply(self, stmt):
        if self.q and self.q.strip():
            pattern = f"%{escape_like(self.q.strip())}%"
            stmt = stmt.where(or_(*(col.ilike(pattern, escape="\\") for col in _SEARCH_COLUMNS)))
        if self.challenge:
            stmt = stmt.where(ChallengeCompletion.challenge_slug == self.challenge)
        if self.confirmed is True:
            stmt = stmt.where(ChallengeCompletion.is_confirmed.is_(True))
        elif self.confirmed is False:
            # never-reviewed rows (NULL) count as not confirmed
            stmt = stmt.where(or_(ChallengeCompletion.is_confirmed.is_(False), ChallengeCompletion.is_confirmed.is_(None)))
        if self.status:
            stmt = stmt.where(ChallengeCompletion.status == self.status)
        return stmt


async def list_completions(
    session: AsyncSession, filters: CompletionFilters | None = None
) -> tuple[list[ChallengeCompletion], int]:
    """Newest first. Without a page the full filtered set is returned."""
    filters = filters or CompletionFilters()
    base = filters.apply(select(ChallengeCompletion))
    total = await count_completions(session, filters)
    q = base.order_by(ChallengeCompletion.created_at.desc(), ChallengeCompletion.id)
    if filters.page is not None:
        size = max(1, min(filters.page_size, MAX_PAGE_SIZE))
        q = q.limit(size).offset((max(filters.page, 1) - 1) * size)
    rows = (await session.execute(q)).scalars().all()
    return list(rows), total


async def count_completions(session: AsyncSession, filters: CompletionFilters) -> int:
    base = filters.apply(select(ChallengeCompletion))
    return int(await session.scalar(select(func.count()).select_from(base.subquery())) or 0)


async def _get_or_404(session: AsyncSession, completion_id: uuid.UUID) -> ChallengeCompletion:
    row = await session.get(ChallengeCompletion, completion_id)
    if not row:
        raise NotFound("Registro nao encontrado.")
    return row


async def _commit(session: AsyncSession, failure_message: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        log.error("completion_write_failed", error=str(e))
        raise UpstreamError(failure_message)


async def set_confirmed(session: AsyncSession, completion_id: uuid.UUID, value: bool) -> ChallengeCompletion:
    row = await _get_or_404(session, completion_id)
    row.is_confirmed = value
    await _commit(session, "Nao foi possivel atualizar o registro.")
    await session.refresh(row)
    log.info("completion_confirmed", completion_id=str(row.id), is_confirmed=value)
    return row


async def set_status(session: AsyncSession, completion_id: uuid.UUID, status: str) -> ChallengeCompletion:
    row = await _get_or_404(session, completion_id)
    row.status = status
    failure = "Nao foi possivel arquivar a conclusao." if status == "archived" else "Nao foi possivel atualizar o registro."
    await _commit(session, failure)
    await session.refresh(row)
    log.info("completion_status_changed", completion_id=str(row.id), status=status)
    return row


async def archive(session: AsyncSession, completion_id: uuid.UUID) -> ChallengeCompletion:
    return await set_status(session, completion_id, "archived")


async def restore(session: AsyncSession, completion_id: uuid.UUID) -> ChallengeCompletion:
    return await set_status(session, completion_id, "active")


async def delete(session: AsyncSession, completion_id: uuid.UUID) -> None:
    row = await _get_or_404(session, completion_id)
    await session.delete(row)
    await _commit(session, "Nao foi possivel excluir o registro.")
    log.info("completion_deleted", completion_id=str(completion_id))
