from __future__ import annotations

import os
import time
import jwt
from typing import Optional, Dict, Any
from fastapi import HTTPException, status

from hiremind_backend.app.core.trace import auth_trace, mask_token

# =========================
# Development credential config (HS256)
# =========================
# These stand in for Firebase ID tokens when AUTH_MODE=HS256. The claim layout
# mirrors a Firebase ID token so the rest of the pipeline cannot tell them apart.
JWT_SECRET = os.getenv("JWT_SECRET", "dev_secret_do_not_use_in_prod")
JWT_ISS    = os.getenv("JWT_ISS", "hiremind-dev")
JWT_AUD    = os.getenv("JWT_AUD", "hiremind-api")
ALGO       = "HS256"

CREDENTIAL_TTL = int(os.getenv("DEV_CREDENTIAL_TTL_SEC", "3600"))  # 1h, same as Firebase

EXPIRED_MESSAGE = "Token expired. Please login again."
INVALID_MESSAGE = "Invalid token"


def _now() -> int:
    return int(time.time())


# -------------------------
# Issuer
# -------------------------
def issue_dev_credential(
    sub: str,
    email: Optional[str] = None,
    *,
    name: str = "",
    picture: str = "",
    email_verified: bool = False,
    sign_in_provider: str = "password",
    ttl: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Mint a short-lived development credential for `sub`.
    `sign_in_provider` uses Identity Provider ids ("password", "google.com").
    """
    now = _now()
    payload: Dict[str, Any] = {
        "iss": JWT_ISS,
        "aud": JWT_AUD,
        "sub": sub,
        "user_id": sub,
        "iat": now,
        "auth_time": now,
        "exp": now + (CREDENTIAL_TTL if ttl is None else ttl),
        "email_verified": bool(email_verified),
        "firebase": {"sign_in_provider": sign_in_provider},
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    if picture:
        payload["picture"] = picture
    if extra:
        payload.update(extra)

    tok = jwt.encode(payload, JWT_SECRET, algorithm=ALGO)
    auth_trace(
        "dev.issue",
        sub=sub,
        provider=sign_in_provider,
        exp=payload["exp"],
        exp_human=time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(payload["exp"])),
    )
    return tok


# -------------------------
# Verifier
# -------------------------
def verify_dev_credential(token: str) -> Dict[str, Any]:
    """
    Verify an HS256 development credential (signature, iss, aud, exp).
    Raises HTTPException(401) with a user-readable message on failure.
    """
    try:
        claims = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[ALGO],
            audience=JWT_AUD,
            issuer=JWT_ISS,
            options={"require": ["exp", "iss", "aud", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        auth_trace("dev.verify.expired", token=mask_token(token))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=EXPIRED_MESSAGE)
    except jwt.PyJWTError as ex:
        auth_trace("dev.verify.jwt_error", token=mask_token(token), err=str(ex))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)

    auth_trace("dev.verify.ok", sub=claims.get("sub"), exp=claims.get("exp"))
    return claims
