import io
import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from conftest import image_bytes
from desafio.config import settings
from desafio.errors import UpstreamError, ValidationError
from desafio.routes.challenges import read_screenshot
from desafio.models.completion import ChallengeCompletion
from desafio.services import intake, registry
from desafio.services.media import check_screenshot

FORM = {
    "full_name": "Ana Silva",
    "state": "sp",
    "city": "São Paulo",
    "whatsapp": "11912345678",
    "order_number": "12345",
}


def jpeg_upload(data=None, name="print.jpg", content_type="image/jpeg"):
    return {"screenshot": (name, data if data is not None else image_bytes("JPEG"), content_type)}


async def completion_rows(sessionmaker):
    async with sessionmaker() as s:
        return (await s.execute(select(ChallengeCompletion))).scalars().all()


@pytest.mark.asyncio
async def test_submit_stores_print_and_row(client, challenge, storage, sessionmaker):
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=FORM, files=jpeg_upload())
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["state"] == "SP"
    assert data["whatsapp"] == "(11) 91234-5678"
    assert data["is_confirmed"] is False
    assert data["status"] == "active"

    rows = await completion_rows(sessionmaker)
    assert len(rows) == 1
    row = rows[0]
    assert row.challenge_slug == "thor-novembro-25"
    assert row.challenge_name == "Desafio Thor Novembro 25"
    assert row.full_name == "Ana Silva" and row.city == "São Paulo" and row.order_number == "12345"
    assert row.strava_screenshot_url.startswith(
        "https://storage.example.com/challenge-prints/desafio-thor-novembro-25/"
    )
    assert row.strava_screenshot_url.endswith(".jpg")

    [(key, (blob, content_type))] = storage.objects.items()
    assert row.strava_screenshot_url.endswith(key)
    assert content_type == "image/jpeg"
    assert blob == image_bytes("JPEG")


@pytest.mark.asyncio
async def test_png_print_keeps_its_extension(client, challenge, storage):
    files = jpeg_upload(image_bytes("PNG"), name="Screenshot.PNG", content_type="image/png")
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=FORM, files=files)
    assert r.status_code == 201
    assert r.json()["data"]["strava_screenshot_url"].endswith(".png")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field,value,message",
    [
        ("full_name", "Al", "Digite pelo menos 3 caracteres."),
        ("full_name", "   ", "Informe seu nome completo."),
        ("state", "S", "Use a sigla com 2 letras."),
        ("city", "", "Informe a cidade."),
        ("whatsapp", "123", "Use o formato (99) 99999-9999."),
        ("order_number", " ", "Informe o numero do pedido."),
    ],
)
async def test_invalid_fields_are_rejected(client, challenge, storage, sessionmaker, field, value, message):
    form = dict(FORM, **{field: value})
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=form, files=jpeg_upload())
    assert r.status_code == 400
    assert r.json() == {"error": message}
    assert storage.objects == {}
    assert await completion_rows(sessionmaker) == []


@pytest.mark.asyncio
async def test_missing_field_is_rejected(client, challenge):
    form = {k: v for k, v in FORM.items() if k != "city"}
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=form, files=jpeg_upload())
    assert r.status_code == 400
    assert r.json() == {"error": "Informe a cidade."}


@pytest.mark.asyncio
async def test_missing_print_is_rejected(client, challenge, storage):
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=FORM)
    assert r.status_code == 400
    assert r.json() == {"error": "Envie o print do Strava."}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "files,message",
    [
        ({"screenshot": ("notes.txt", b"hello", "text/plain")}, "Envie um arquivo de imagem."),
        ({"screenshot": ("fake.png", b"not really a png", "image/png")}, "Arquivo de imagem invalido."),
    ],
)
async def test_non_image_is_rejected(client, challenge, storage, files, message):
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=FORM, files=files)
    assert r.status_code == 400
    assert r.json() == {"error": message}
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_oversized_print_is_rejected(client, challenge, storage, monkeypatch):
    monkeypatch.setattr(settings, "max_screenshot_mb", 1)
    big = b"\xff" * (1024 * 1024 + 1)
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=FORM, files=jpeg_upload(big))
    assert r.status_code == 400
    assert r.json() == {"error": "A imagem deve ter no maximo 1MB."}
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_unknown_challenge_is_not_found(client, challenge, storage):
    r = await client.post("/api/challenges/nao-existe/completions", data=FORM, files=jpeg_upload())
    assert r.status_code == 404
    assert r.json() == {"error": "Desafio nao encontrado."}
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_inactive_challenge_is_not_found(client, challenge, session, storage, sessionmaker):
    await registry.update_challenge(session, challenge.id, {"is_active": False})
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=FORM, files=jpeg_upload())
    assert r.status_code == 404
    assert await completion_rows(sessionmaker) == []


@pytest.mark.asyncio
async def test_upload_failure_leaves_no_row(client, challenge, storage, sessionmaker):
    storage.fail_put = True
    r = await client.post("/api/challenges/thor-novembro-25/completions", data=FORM, files=jpeg_upload())
    assert r.status_code == 502
    assert r.json()["error"].startswith("Nao foi possivel enviar sua imagem.")
    assert await completion_rows(sessionmaker) == []


@pytest.mark.asyncio
async def test_insert_failure_removes_uploaded_print(session, challenge, storage, monkeypatch, sessionmaker):
    async def broken_commit():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", broken_commit)
    form = intake.parse_form(FORM)
    shot = intake.Screenshot(data=image_bytes("JPEG"), filename="print.jpg", content_type="image/jpeg")
    with pytest.raises(UpstreamError) as exc:
        await intake.submit_completion(session, storage, "thor-novembro-25", form, shot)
    assert exc.value.message == "Nao foi possivel salvar suas informacoes. (database is locked)"
    assert storage.objects == {}

    async with sessionmaker() as s:
        assert await s.scalar(select(func.count()).select_from(ChallengeCompletion)) == 0


@pytest.mark.asyncio
async def test_failed_cleanup_still_reports_the_insert_error(session, challenge, storage, monkeypatch):
    async def broken_commit():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", broken_commit)
    storage.fail_remove = True
    shot = intake.Screenshot(data=image_bytes("JPEG"), filename="print.jpg", content_type="image/jpeg")
    with pytest.raises(UpstreamError):
        await intake.submit_completion(session, storage, "thor-novembro-25", intake.parse_form(FORM), shot)
    assert len(storage.objects) == 1


def test_storage_key_uses_slugified_challenge_name():
    class Named:
        name = "Desafio Março 2026!"

    shot = intake.Screenshot(data=b"", filename=None, content_type="image/webp")
    folder, filename = intake.storage_key_for(Named(), shot).split("/")
    assert folder == "desafio-marco-2026"
    assert filename.endswith(".webp") and len(filename) == 32 + len(".webp")


@pytest.mark.asyncio
async def test_upload_read_is_bounded_by_the_size_limit(monkeypatch):
    monkeypatch.setattr(settings, "max_screenshot_mb", 1)
    limit = 1024 * 1024
    upload = UploadFile(
        file=io.BytesIO(b"\xff" * (3 * limit)),
        filename="huge.jpg",
        headers=Headers({"content-type": "image/jpeg"}),
    )
    shot = await read_screenshot(upload)
    assert len(shot.data) == limit + 1
    with pytest.raises(ValidationError, match="no maximo 1MB"):
        check_screenshot(shot.data, shot.content_type, limit)


@pytest.mark.asyncio
async def test_empty_upload_field_counts_as_missing():
    assert await read_screenshot(None) is None
    assert await read_screenshot(UploadFile(file=io.BytesIO(b""), filename="")) is None
