import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hiremind_backend.app.db.models import User
from hiremind_backend.app.db.session import init_models
from hiremind_backend.app.schemas.identity import ProviderKind, VerifiedIdentity
from hiremind_backend.app.services.identity import get_user_by_subject, sync_user


# In-memory SQLite shares one connection through StaticPool
@pytest_asyncio.fixture
async def db():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(bind=eng)
    factory = async_sessionmaker(eng, expire_on_commit=False, class_=AsyncSession)
    async with factory() as session:
        yield session
    await eng.dispose()


def _identity(provider=ProviderKind.PASSWORD, **overrides) -> VerifiedIdentity:
    data = dict(
        subject_id="uid-alice",
        email="alice@example.com",
        display_name="",
        avatar_url="",
        email_verified=False,
        provider=provider,
    )
    data.update(overrides)
    return VerifiedIdentity(**data)


async def _count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


@pytest.mark.asyncio
async def test_sync_inserts_on_first_sight(db):
    user = await sync_user(db, _identity(display_name="Alice"))
    assert user.subject_id == "uid-alice"
    assert user.providers == ["password"]
    assert user.display_name == "Alice"
    assert await _count(db) == 1


@pytest.mark.asyncio
async def test_sync_appends_provider_once(db):
    await sync_user(db, _identity())
    await sync_user(db, _identity(ProviderKind.GOOGLE))
    user = await sync_user(db, _identity(ProviderKind.GOOGLE))
    assert user.providers == ["password", "google"]
    assert await _count(db) == 1


@pytest.mark.asyncio
async def test_sync_refreshes_profile_fields(db):
    first = await sync_user(db, _identity(display_name="Alice", avatar_url="https://img/1"))
    created_at = first.created_at

    user = await sync_user(
        db,
        _identity(
            ProviderKind.GOOGLE,
            email="ALICE@example.com ",
            display_name="Alice Liddell",
            avatar_url="https://img/2",
            email_verified=True,
        ),
    )
    assert user.email == "alice@example.com"
    assert user.display_name == "Alice Liddell"
    assert user.avatar_url == "https://img/2"
    assert user.email_verified is True
    assert user.created_at == created_at
    assert user.updated_at >= user.created_at


@pytest.mark.asyncio
async def test_sync_keeps_email_when_credential_has_none(db):
    await sync_user(db, _identity())
    user = await sync_user(db, _identity(email=None))
    assert user.email == "alice@example.com"


@pytest.mark.asyncio
async def test_get_user_by_subject_missing(db):
    assert await get_user_by_subject(db, "nobody") is None


@pytest.mark.asyncio
async def test_insert_race_is_resolved_as_update(db, monkeypatch):
    # Another request already inserted the row; this session has not seen it yet.
    db.add(User(subject_id="uid-alice", email="alice@example.com", providers=["password"]))
    await db.commit()

    calls = {"n": 0}
    real_lookup = get_user_by_subject

    async def _stale_first_lookup(session, sub):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_lookup(session, sub)

    import hiremind_backend.app.services.identity as svc

    monkeypatch.setattr(svc, "get_user_by_subject", _stale_first_lookup)
    user = await sync_user(db, _identity(ProviderKind.GOOGLE))

    assert user.providers == ["password", "google"]
    assert await _count(db) == 1
