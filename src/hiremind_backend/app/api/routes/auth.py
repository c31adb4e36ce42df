# src/hiremind_backend/app/api/routes/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hiremind_backend.app.db.session import get_db
from hiremind_backend.app.schemas.identity import VerifiedIdentity
from hiremind_backend.app.schemas.user import ErrorResponse, MeResponse, SyncResponse, UserRecordView
from hiremind_backend.app.security.base import credential_required
from hiremind_backend.app.services.identity import get_user_by_subject, sync_user

_log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


@router.post("/login", response_model=SyncResponse)
async def login(
    identity: VerifiedIdentity = Depends(credential_required),
    db: AsyncSession = Depends(get_db),
) -> SyncResponse:
    """
    Login / sync: mirror the credential holder into the local User Record.

    - first sync for a subject -> record created with providers=[provider]
    - later syncs              -> provider appended if new, profile fields refreshed

    The credential is verified before the session is touched, so a rejected
    credential never writes anything.
    """
    try:
        user = await sync_user(db, identity)
    except SQLAlchemyError:
        _log.exception("Login sync failed for sub=%s", identity.subject_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error during login",
        )

    _log.info("User synced: %s (provider: %s)", user.email, identity.provider.value)
    return SyncResponse(user=UserRecordView.from_record(user))


@router.get("/me", response_model=MeResponse, responses={404: {"model": ErrorResponse}})
async def me(
    identity: VerifiedIdentity = Depends(credential_required),
    db: AsyncSession = Depends(get_db),
) -> MeResponse:
    """Return the stored User Record for the credential holder. Read only."""
    try:
        user = await get_user_by_subject(db, identity.subject_id)
    except SQLAlchemyError:
        _log.exception("User lookup failed for sub=%s", identity.subject_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return MeResponse(user=UserRecordView.from_record(user))
