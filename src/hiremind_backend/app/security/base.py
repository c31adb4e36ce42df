# src/hiremind_backend/app/security/base.py
from __future__ import annotations

import os
from typing import Any, Dict

from fastapi import Depends, HTTPException, status

from hiremind_backend.app.auth.deps import bearer_token
from hiremind_backend.app.auth.firebase import verify_firebase_id_token
from hiremind_backend.app.auth.internal import INVALID_MESSAGE, verify_dev_credential
from hiremind_backend.app.core.trace import auth_trace
from hiremind_backend.app.schemas.identity import ProviderKind, VerifiedIdentity


def auth_mode() -> str:
    """
    AUTH_MODE:
      - HS256    : accept HS256 development credentials (local provider, tests)
      - FIREBASE : accept Firebase ID tokens verified against Google's secure-token JWKS
    """
    return (os.getenv("AUTH_MODE", "HS256") or "").strip().upper()


def identity_from_claims(claims: Dict[str, Any]) -> VerifiedIdentity:
    """
    Normalize verified token claims into a VerifiedIdentity.
    The provider comes from claims["firebase"]["sign_in_provider"]; untracked
    providers make the credential unusable for sync.
    """
    sub = str(claims.get("sub") or claims.get("user_id") or "").strip()
    raw_provider = (claims.get("firebase") or {}).get("sign_in_provider")
    provider = ProviderKind.from_sign_in_provider(raw_provider)
    if not sub or provider is None:
        auth_trace("claims.rejected", sub=sub or "<none>", provider=raw_provider)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)

    return VerifiedIdentity(
        subject_id=sub,
        email=(claims.get("email") or None),
        display_name=claims.get("name") or claims.get("displayName") or "",
        avatar_url=claims.get("picture") or "",
        email_verified=bool(claims.get("email_verified", False)),
        provider=provider,
    )


def verify_credential(token: str) -> VerifiedIdentity:
    """Verify `token` with the verifier selected by AUTH_MODE."""
    mode = auth_mode()
    auth_trace("security.selector", mode=mode)

    if mode == "HS256":
        claims = verify_dev_credential(token)
    elif mode == "FIREBASE":
        claims = verify_firebase_id_token(token)
    else:
        raise HTTPException(status_code=500, detail=f"Unsupported AUTH_MODE: {mode}")

    return identity_from_claims(claims)


async def credential_required(token: str = Depends(bearer_token)) -> VerifiedIdentity:
    """
    Route-level dependency.

    Example usage:
      @router.post("/login")
      async def login(identity: VerifiedIdentity = Depends(credential_required)):
          ...
    """
    return verify_credential(token)
