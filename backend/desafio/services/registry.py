from __future__ import annotations
import uuid
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from desafio.errors import BadRequest, Conflict, NotFound, UpstreamError
from desafio.models.challenge import Challenge

log = structlog.get_logger()


async def list_challenges(session: AsyncSession, active_only: bool = False) -> list[Challenge]:
    q = select(Challenge).order_by(Challenge.created_at.desc())
    if active_only:
        q = q.where(Challenge.is_active.is_(True))
    return list((await session.execute(q)).scalars().all())


async def get_by_slug(session: AsyncSession, slug: str, active_only: bool = True) -> Challenge | None:
    q = select(Challenge).where(Challenge.slug == slug)
    if active_only:
        q = q.where(Challenge.is_active.is_(True))
    return await session.scalar(q)


async def _get_or_404(session: AsyncSession, challenge_id: uuid.UUID) -> Challenge:
    ch = await session.get(Challenge, challenge_id)
    if not ch:
        raise NotFound("Desafio nao encontrado.")
    return ch


async def _ensure_slug_free(session: AsyncSession, slug: str, exclude_id: uuid.UUID | None = None) -> None:
    q = select(Challenge.id).where(Challenge.slug == slug)
    if exclude_id is not None:
        q = q.where(Challenge.id != exclude_id)
    if await session.scalar(q):
        raise Conflict(f"Ja existe um desafio com o slug '{slug}'.")


async def _commit(session: AsyncSession, failure_message: str) -> None:
    try:
        await session.commit()
    except IntegrityError:
        # unique slug raced with another request
        await session.rollback()
        raise Conflict("Ja existe um desafio com esse slug.")
    except SQLAlchemyError as e:
        await session.rollback()
        log.error("challenge_write_failed", error=str(e))
        raise UpstreamError(failure_message)


async def create_challenge(
    session: AsyncSession,
    name: str | None,
    slug: str | None,
    description: str | None = None,
    badge: str | None = None,
    highlight: str | None = None,
) -> Challenge:
    name = (name or "").strip()
    slug = (slug or "").strip()
    if not name or not slug:
        raise BadRequest("Nome e slug sao obrigatorios.")
    await _ensure_slug_free(session, slug)
    ch = Challenge(
        name=name,
        slug=slug,
        description=description,
        badge=badge,
        highlight=highlight,
        is_active=True,
    )
    session.add(ch)
    await _commit(session, "Nao foi possivel criar o desafio.")
    await session.refresh(ch)
    log.info("challenge_created", challenge_id=str(ch.id), slug=ch.slug)
    return ch


async def update_challenge(session: AsyncSession, challenge_id: uuid.UUID, changes: dict) -> Challenge:
    if not changes:
        raise BadRequest("Nenhum campo valido informado para atualizacao.")
    if ("name" in changes and not changes["name"]) or ("slug" in changes and not changes["slug"]):
        raise BadRequest("Nome e slug sao obrigatorios.")
    ch = await _get_or_404(session, challenge_id)
    if "slug" in changes and changes["slug"] != ch.slug:
        await _ensure_slug_free(session, changes["slug"], exclude_id=ch.id)
    for field, value in changes.items():
        setattr(ch, field, value)
    await _commit(session, "Nao foi possivel atualizar o desafio.")
    await session.refresh(ch)
    log.info("challenge_updated", challenge_id=str(ch.id), fields=sorted(changes))
    return ch


async def delete_challenge(session: AsyncSession, challenge_id: uuid.UUID) -> None:
    ch = await _get_or_404(session, challenge_id)
    await session.delete(ch)
    await _commit(session, "Nao foi possivel excluir o desafio.")
    log.info("challenge_deleted", challenge_id=str(challenge_id))

