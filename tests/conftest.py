"""Shared fixtures: an isolated SQLite database per test and an authenticated HTTP client."""
import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="batchupload-tests-"))

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'app.db'}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_ALG"] = "HS256"
os.environ["STORAGE_PATH"] = str(_TMP / "storage")
os.environ["CREATE_TABLES"] = "false"
os.environ["MAX_FILE_SIZE"] = "1 MiB"
os.environ["MAX_CHUNK_SIZE"] = "64 KiB"
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from batchupload.config import config
from batchupload.db import Base
from batchupload.db.session import get_db, make_engine
from main import app

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


def make_token(owner_id: str) -> str:
    return jwt.encode({"sub": owner_id}, os.environ["JWT_SECRET"], algorithm="HS256")


def bearer(owner_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(owner_id)}"}


@pytest.fixture
async def engine(tmp_path):
    """A fresh file-backed database; NullPool gives every session its own connection."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage_path(tmp_path, monkeypatch):
    path = tmp_path / "storage"
    monkeypatch.setattr(config, "STORAGE_PATH", path)
    return path


@pytest.fixture
async def async_client(session_factory, storage_path):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return bearer(OWNER)


@pytest.fixture
def other_auth_headers():
    return bearer(OTHER_OWNER)
