# Maps a verified credential -> the local User Record. JIT-provisions on first sync.
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hiremind_backend.app.core.trace import auth_trace
from hiremind_backend.app.db.models import User
from hiremind_backend.app.schemas.identity import VerifiedIdentity


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    return email.strip().lower() or None


async def get_user_by_subject(db: AsyncSession, subject_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.subject_id == subject_id).limit(1))
    return result.scalar_one_or_none()


def _apply_identity(user: User, identity: VerifiedIdentity) -> bool:
    """
    Refresh an existing record from the latest credential.
    Returns True when the provider list grew.
    """
    provider = identity.provider.value
    current = list(user.providers or [])
    appended = provider not in current
    if appended:
        # reassign, JSON columns do not track in-place mutation
        user.providers = current + [provider]

    email = _normalize_email(identity.email)
    if email is not None:
        user.email = email
    if identity.display_name:
        user.display_name = identity.display_name
    if identity.avatar_url:
        user.avatar_url = identity.avatar_url
    user.email_verified = identity.email_verified
    user.updated_at = datetime.now(timezone.utc)
    return appended


async def sync_user(db: AsyncSession, identity: VerifiedIdentity) -> User:
    """
    Create-or-update the User Record for `identity.subject_id`.

    Rules:
      1. Not found -> insert with providers=[identity.provider].
      2. Found     -> append the provider if absent; refresh email / name / avatar /
                      email_verified from the credential.
      3. A concurrent insert for the same subject (unique violation) is retried
         as an update of the row that won, so the provider append stays a no-op
         when the provider is already present.
    """
    user = await get_user_by_subject(db, identity.subject_id)

    if user is not None:
        appended = _apply_identity(user, identity)
        await db.commit()
        auth_trace("sync.upsert.updated", sub=identity.subject_id,
                   provider=identity.provider.value, appended=appended)
        return user

    now = datetime.now(timezone.utc)
    user = User(
        subject_id=identity.subject_id,
        email=_normalize_email(identity.email),
        display_name=identity.display_name or "",
        avatar_url=identity.avatar_url or "",
        providers=[identity.provider.value],
        email_verified=identity.email_verified,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        auth_trace("sync.upsert.insert_race", sub=identity.subject_id)
        user = await get_user_by_subject(db, identity.subject_id)
        if user is None:
            raise
        _apply_identity(user, identity)
        await db.commit()
        return user

    auth_trace("sync.upsert.created", sub=identity.subject_id, provider=identity.provider.value)
    return user
