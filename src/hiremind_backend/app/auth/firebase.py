# src/hiremind_backend/app/auth/firebase.py
from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWKClient
from fastapi import HTTPException, status

from hiremind_backend.app.core.trace import auth_trace, mask_token
from hiremind_backend.app.auth.internal import EXPIRED_MESSAGE, INVALID_MESSAGE

# ------------------------
# Environment & constants
# ------------------------
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "").strip()
FIREBASE_JWKS_URI   = os.getenv(
    "FIREBASE_JWKS_URI",
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com",
)
FIREBASE_LEEWAY     = int(os.getenv("FIREBASE_LEEWAY_SEC", "60"))


def firebase_issuer(project_id: str) -> str:
    return f"https://securetoken.google.com/{project_id}"


# Cache JWKS client for verification (PyJWKClient caches fetched keys itself)
@lru_cache(maxsize=1)
def _jwks_client() -> PyJWKClient:
    return PyJWKClient(FIREBASE_JWKS_URI)


# ------------------------
# Firebase ID token verification (RS256)
# ------------------------
def verify_firebase_id_token(id_token: str, *, project_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Verify a Firebase ID token using the secure-token JWKS.
    Validates signature, aud (= project id), iss, exp/iat and a non-empty sub.
    """
    project = (project_id or FIREBASE_PROJECT_ID or "").strip()
    if not project:
        raise HTTPException(status_code=500, detail="server misconfigured: FIREBASE_PROJECT_ID missing")

    auth_trace("firebase.verify.begin", project=project, token=mask_token(id_token))
    try:
        hdr = jwt.get_unverified_header(id_token)
        if hdr.get("alg") != "RS256":
            auth_trace("firebase.verify.bad_alg", alg=hdr.get("alg"))
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)
        key = _jwks_client().get_signing_key_from_jwt(id_token).key
        claims = jwt.decode(
            id_token,
            key=key,
            algorithms=["RS256"],
            audience=project,
            issuer=firebase_issuer(project),
            options={"require": ["exp", "iat", "aud", "iss", "sub"]},
            leeway=FIREBASE_LEEWAY,
        )
    except jwt.ExpiredSignatureError:
        auth_trace("firebase.verify.expired")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=EXPIRED_MESSAGE)
    except jwt.InvalidAudienceError:
        auth_trace("firebase.verify.aud_mismatch", want_aud=project)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)
    except jwt.InvalidIssuerError:
        auth_trace("firebase.verify.iss_mismatch", want_iss=firebase_issuer(project))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)
    except jwt.PyJWKClientError as ex:
        auth_trace("firebase.verify.jwks_error", err=str(ex))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)
    except jwt.PyJWTError as ex:
        auth_trace("firebase.verify.jwt_error", err=str(ex))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)

    if not str(claims.get("sub") or "").strip():
        auth_trace("firebase.verify.empty_sub")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_MESSAGE)

    auth_trace("firebase.verify.ok", sub=claims.get("sub"), exp=claims.get("exp"))
    return claims
