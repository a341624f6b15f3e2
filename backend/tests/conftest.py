import os
from datetime import datetime, timezone

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENCRYPTION_KEY"] = "test-encryption-secret"
os.environ["GEMINI_API_KEY"] = ""
os.environ["AUTH_PROVIDER"] = "local"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cvtailor.config import get_settings
from cvtailor.database import Base, get_db
from cvtailor.main import app
from cvtailor.models import User
from cvtailor.services.auth import create_access_token
from cvtailor.services.encryption import encrypt


@pytest.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def uploads_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "uploads_dir", str(tmp_path))
    return tmp_path


@pytest.fixture
async def client(session_maker, uploads_dir):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_maker):
    async def _make_user(uid="user-1", free=5, purchased=0, api_key=None,
                         provider="openai", model="gpt-4o-mini"):
        async with session_maker() as session:
            user = User(
                id=uid,
                email=f"{uid}@example.com",
                credits_free=free,
                credits_purchased=purchased,
                last_free_reset=datetime.now(timezone.utc),
            )
            if api_key:
                user.api_key_encrypted = encrypt(api_key)
                user.api_key_provider = provider
                user.api_key_model = model
            session.add(user)
            await session.commit()
        return uid
    return _make_user


def auth_headers(uid: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': uid})}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def profile_data():
    return {
        "fullName": "Jan de Vries",
        "headline": "Software Engineer",
        "location": "Utrecht, Nederland",
        "email": "jan@example.com",
        "phone": "0612345678",
        "experience": [
            {"title": "Lead Engineer", "company": "Acme", "startDate": "2021", "isCurrentRole": True},
            {"title": "Engineer", "company": "Globex", "startDate": "2019", "endDate": "2021"},
            {"title": "Junior Developer", "company": "Initech", "startDate": "2015", "endDate": "2019"},
        ],
        "education": [],
        "skills": [{"name": "Python"}, {"name": "SQL"}],
        "languages": [{"language": "Nederlands", "proficiency": "Moedertaal"}],
        "certifications": [],
    }
