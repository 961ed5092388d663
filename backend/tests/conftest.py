import os

# Settings are read at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["ADMIN_PANEL_PASSWORD"] = "senha-do-painel"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["S3_PUBLIC_URL"] = "https://storage.example.com"
os.environ["S3_BUCKET_PRINTS"] = "challenge-prints"

import io
from datetime import datetime, timedelta, timezone
import httpx
import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from desafio.db import Base, get_session
from desafio.main import app
from desafio.services import registry
from desafio.services.storage import StorageError, get_storage
import desafio.models.challenge  # noqa: F401
from desafio.models.completion import ChallengeCompletion

ADMIN_PASSWORD = "senha-do-painel"


class MemoryStorage:
    """Stands in for the MinIO bucket; keeps objects in a dict."""

    def __init__(self, public_base_url="https://storage.example.com", bucket="challenge-prints"):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.bucket = bucket
        self.public_base_url = public_base_url
        self.fail_put = False
        self.fail_remove = False

    def put_bytes(self, key, data, content_type):
        if self.fail_put:
            raise StorageError("bucket offline")
        self.objects[key] = (data, content_type)

    def remove(self, key):
        if self.fail_remove:
            raise StorageError("bucket offline")
        self.objects.pop(key, None)

    def public_url(self, key):
        return f"{self.public_base_url}/{self.bucket}/{key}"


def image_bytes(fmt="JPEG", size=(32, 32)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


BASE_TIME = datetime(2025, 11, 20, 12, 0, tzinfo=timezone.utc)


async def add_completion(session, minutes=0, **overrides) -> ChallengeCompletion:
    values = dict(
        challenge_slug="thor-novembro-25",
        challenge_name="Desafio Thor Novembro 25",
        full_name="Ana Silva",
        state="SP",
        city="São Paulo",
        whatsapp="(11) 91234-5678",
        order_number="12345",
        strava_screenshot_url="https://storage.example.com/challenge-prints/x/a.jpg",
        status="active",
        is_confirmed=False,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )
    values.update(overrides)
    row = ChallengeCompletion(**values)
    session.add(row)
    await session.commit()
    return row


@pytest_asyncio.fixture
async def sessionmaker():
    engine = create_async_engine(
        "sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(sessionmaker):
    async with sessionmaker() as s:
        yield s


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest_asyncio.fixture
async def client(sessionmaker, storage):
    async def _session():
        async with sessionmaker() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_storage] = lambda: storage
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_client(client):
    r = await client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return client


@pytest_asyncio.fixture
async def challenge(session):
    return await registry.create_challenge(session, name="Desafio Thor Novembro 25", slug="thor-novembro-25")
