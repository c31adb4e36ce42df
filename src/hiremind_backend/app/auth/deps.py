# src/hiremind_backend/app/auth/deps.py
from __future__ import annotations
from typing import Optional
from fastapi import Header, HTTPException, status

from hiremind_backend.app.core.trace import auth_trace

MISSING_MESSAGE = "No token provided. Authorization header must be: Bearer <token>"
MALFORMED_MESSAGE = "Invalid token format"


def bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency: pull the raw credential out of `Authorization: Bearer <token>`.
    Anything that is not exactly "<scheme> <token>" with scheme Bearer is rejected
    before verification (and therefore before any persistence work).
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        auth_trace("bearer.missing", has_header=bool(authorization))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=MISSING_MESSAGE)

    token = authorization.split(" ", 1)[1].strip()
    if not token or len(token.split()) != 1:
        auth_trace("bearer.malformed")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=MALFORMED_MESSAGE)
    return token
