# tests/conftest.py
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Callable, List, Optional

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# ---------- Paths & .env ----------
ROOT = Path(__file__).resolve().parents[1]  # repo root
env_path = ROOT / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

# The suite runs against HS256 development credentials and an in-memory
# default DB; every test that touches the DB overrides get_db anyway.
os.environ["AUTH_MODE"] = "HS256"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

# With src/ layout and `pip install -e .`, we can import the app package directly:
from hiremind_backend.app.main import app  # noqa: E402
from hiremind_backend.app.auth.internal import issue_dev_credential  # noqa: E402
from hiremind_backend.app.db.models import User  # noqa: E402
from hiremind_backend.app.db.session import get_db, init_models, make_engine  # noqa: E402

# Opt-in switch for tests against a live Firebase project
ENABLE_FIREBASE_TESTS = (os.getenv("ENABLE_FIREBASE_TESTS", "")).lower() in ("1", "true", "yes", "on")


# ---------- Pytest controls ----------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--enable-firebase-tests",
        action="store_true",
        default=False,
        help="Run tests marked with @pytest.mark.firebase (otherwise auto-skip).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "firebase: tests that require a live Firebase project")


def pytest_collection_modifyitems(config: pytest.Config, items: List[pytest.Item]) -> None:
    """Gate @firebase tests unless explicitly enabled."""
    if config.getoption("--enable-firebase-tests") or ENABLE_FIREBASE_TESTS:
        return

    skip_firebase = pytest.mark.skip(
        reason=("Skipping @firebase tests. Enable with --enable-firebase-tests or set "
                "ENABLE_FIREBASE_TESTS=true. Requires FIREBASE_API_KEY.")
    )
    for item in items:
        if "firebase" in item.keywords:
            item.add_marker(skip_firebase)


# ---------- Fixtures ----------
@pytest.fixture(autouse=True)
def _hs256_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_MODE", "HS256")


@pytest.fixture
def db_engine(tmp_path: Path):
    """File-backed SQLite per test; NullPool so the TestClient loop opens its own connections."""
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'hiremind-test.db'}")
    asyncio.run(init_models(bind=eng))
    yield eng
    asyncio.run(eng.dispose())


@pytest.fixture
def base_client(db_engine) -> TestClient:
    factory = async_sessionmaker(db_engine, expire_on_commit=False, class_=AsyncSession)

    async def _get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def stored_users(db_engine) -> Callable[[], List[User]]:
    """Read back every User Record straight from the DB."""
    factory = async_sessionmaker(db_engine, expire_on_commit=False, class_=AsyncSession)

    async def _all() -> List[User]:
        async with factory() as session:
            result = await session.execute(select(User).order_by(User.created_at))
            return list(result.scalars().all())

    return lambda: asyncio.run(_all())


@pytest.fixture
def credential() -> Callable[..., str]:
    """
    Mint a development credential, e.g.
      credential("uid-1", "a@example.com", provider="google.com", name="A")
    """
    def _make(
        sub: str = "uid-alice",
        email: Optional[str] = "alice@example.com",
        *,
        provider: str = "password",
        name: str = "",
        picture: str = "",
        email_verified: bool = False,
        ttl: Optional[int] = None,
    ) -> str:
        return issue_dev_credential(
            sub,
            email,
            name=name,
            picture=picture,
            email_verified=email_verified,
            sign_in_provider=provider,
            ttl=ttl,
        )

    return _make
