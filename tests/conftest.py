"""Pytest fixtures for Earmark tests."""

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from pathlib import Path

# Settings are read at import time; configure them before importing the app
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret-key-0123456789abcdefghij")
os.environ.setdefault("APP_ENV", "production")
os.environ.setdefault("DB_PATH", "/tmp/earmark-test/unused.db")
os.environ.setdefault("AUDIO_PATH", "/tmp/earmark-test/audio")
os.environ.setdefault("SCAN_ON_STARTUP", "false")

import fakeredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from earmark.api.deps import get_library
from earmark.core import redis as earmark_redis
from earmark.core.config import settings
from earmark.core.security import get_password_hash
from earmark.db.session import Database, get_db
from earmark.main import app
from earmark.models import AudioFile, TimeMark
from earmark.services.library import AudioLibrary
from tests.helpers import TEST_PASSWORD, write_audio


@pytest.fixture(autouse=True)
def fake_redis():
    """Give every test its own in-memory Redis for the rate limiters."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    earmark_redis.redis_client = client
    yield client
    earmark_redis.redis_client = None


@pytest.fixture
def audio_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "audio"
    directory.mkdir()
    return directory


@pytest.fixture
def library(audio_dir: Path) -> AudioLibrary:
    return AudioLibrary(audio_dir)


@pytest_asyncio.fixture(scope="function")
async def test_database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create a fresh SQLite database file for each test."""
    database = Database.for_path(str(tmp_path / "data" / "earmark-test.db"))
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_database.session_maker() as session:
        yield session


@pytest.fixture
def password_hash(monkeypatch) -> str:
    """Configure PASSWORD_HASH with a cheap hash of TEST_PASSWORD."""
    hashed = get_password_hash(TEST_PASSWORD, rounds=4)
    monkeypatch.setattr(settings, "PASSWORD_HASH", hashed)
    return hashed


@pytest_asyncio.fixture(scope="function")
async def client(
    test_session: AsyncSession, library: AudioLibrary
) -> AsyncGenerator[AsyncClient, None]:
    """Create an unauthenticated test client."""

    async def override():
        yield test_session

    app.dependency_overrides[get_db] = override
    app.dependency_overrides[get_library] = lambda: library

    # Session cookies are Secure outside development, so talk HTTPS
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="https://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def authenticated_client(client: AsyncClient, password_hash: str) -> AsyncClient:
    """A client holding a trusted session cookie."""
    response = await client.post("/api/auth/login", json={"password": TEST_PASSWORD})
    assert response.status_code == 200
    return client


@pytest_asyncio.fixture(scope="function")
async def audio_file(test_session: AsyncSession, audio_dir: Path) -> AudioFile:
    """A live library entry backed by a real file."""
    write_audio(audio_dir, "episode.mp3")
    entry = AudioFile(
        filename="episode.mp3",
        file_path="episode.mp3",
        duration_seconds=42,
        file_size_bytes=(audio_dir / "episode.mp3").stat().st_size,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        modified_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    test_session.add(entry)
    await test_session.commit()
    await test_session.refresh(entry)
    return entry


@pytest_asyncio.fixture(scope="function")
async def time_mark(test_session: AsyncSession, audio_file: AudioFile) -> TimeMark:
    mark = TimeMark(audio_file_id=audio_file.id, time_seconds=12.5, note="intro ends")
    test_session.add(mark)
    await test_session.commit()
    await test_session.refresh(mark)
    return mark
