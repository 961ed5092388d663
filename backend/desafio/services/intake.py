from __future__ import annotations
import uuid
from dataclasses import dataclass
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from desafio.config import settings
from desafio.errors import NotFound, UpstreamError, ValidationError, first_error_message
from desafio.models.challenge import Challenge
from desafio.models.completion import ChallengeCompletion
from desafio.schemas.completion import CompletionForm
from desafio.services import registry
from desafio.services.formatting import slugify
from desafio.services.media import check_screenshot, ext_for_upload
from desafio.services.storage import PrintStorage, StorageError

log = structlog.get_logger()


@dataclass
class Screenshot:
    data: bytes
    filename: str | None
    content_type: str | None


def parse_form(values: dict) -> CompletionForm:
    try:
        return CompletionForm.model_validate({k: (v or "") for k, v in values.items()})
    except PydanticValidationError as e:
        raise ValidationError(first_error_message(e))


def storage_key_for(challenge: Challenge, screenshot: Screenshot) -> str:
    folder = slugify(challenge.name)
    ext = ext_for_upload(screenshot.filename, screenshot.content_type)
    return f"{folder}/{uuid.uuid4().hex}.{ext}"


async def resolve_challenge(session: AsyncSession, slug: str) -> Challenge:
    challenge = await registry.get_by_slug(session, slug, active_only=True)
    if not challenge:
        raise NotFound("Desafio nao encontrado.")
    return challenge


async def submit_completion(
    session: AsyncSession,
    storage: PrintStorage,
    slug: str,
    form: CompletionForm,
    screenshot: Screenshot | None,
) -> ChallengeCompletion:
    """
    Register a completion for an active challenge.

    The print is uploaded first; the row is inserted only after the upload
    succeeded. If the insert fails the uploaded object is removed again so no
    orphaned file is left in the bucket.
    """
    challenge = await resolve_challenge(session, slug)
    if screenshot is None:
        raise ValidationError("Envie o print do Strava.")
    content_type = check_screenshot(
        screenshot.data, screenshot.content_type, settings.max_screenshot_mb * 1024 * 1024
    )

    key = storage_key_for(challenge, screenshot)
    try:
        storage.put_bytes(key, screenshot.data, content_type)
    except StorageError as e:
        log.warning("print_upload_failed", slug=slug, key=key, error=str(e))
        raise UpstreamError(f"Nao foi possivel enviar sua imagem. ({e})")

    row = ChallengeCompletion(
        challenge_slug=challenge.slug,
        challenge_name=challenge.name,
        full_name=form.full_name,
        state=form.state,
        city=form.city,
        whatsapp=form.whatsapp,
        order_number=form.order_number,
        strava_screenshot_url=storage.public_url(key),
        status="active",
        is_confirmed=False,
    )
    session.add(row)
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        log.warning("completion_insert_failed", slug=slug, key=key, error=str(e))
        _discard_upload(storage, key)
        raise UpstreamError(f"Nao foi possivel salvar suas informacoes. ({_db_reason(e)})")

    await session.refresh(row)
    log.info("completion_submitted", completion_id=str(row.id), slug=challenge.slug, key=key)
    return row


def _discard_upload(storage: PrintStorage, key: str) -> None:
    try:
        storage.remove(key)
        log.info("print_upload_discarded", key=key)
    except StorageError as e:
        # object stays orphaned in the bucket
        log.error("print_cleanup_failed", key=key, error=str(e))


def _db_reason(exc: SQLAlchemyError) -> str:
    # driver message without SQLAlchemy's statement/params dump
    text = str(getattr(exc, "orig", None) or exc).strip()
    return text.splitlines()[0] if text else exc.__class__.__name__
