# src/hiremind_backend/app/core/trace.py
from __future__ import annotations
import logging
import os
import time
from typing import Any, Mapping, Optional

_log = logging.getLogger("hiremind.auth")


def _enabled() -> bool:
    return (os.getenv("AUTH_TRACE", "")).lower() in ("1", "true", "yes", "on")


def _fmt_kv(d: Mapping[str, Any]) -> str:
    return " ".join(f"{k}={d[k]}" for k in d)


def mask_token(tok: Optional[str], keep: int = 12) -> str:
    """Never log a bearer credential in full."""
    if not tok:
        return "<none>"
    return tok[:keep] + "...(masked)..."


def auth_trace(event: str, **kv: Any) -> None:
    """
    Emit a single-line structured log ONLY when AUTH_TRACE=true.
    Example:
      [auth] sync.upsert.created ts=... sub=abc123 provider=password
    """
    if not _enabled():
        return
    kv2 = {"ts": int(time.time()), **kv}
    _log.info("[auth] %s %s", event, _fmt_kv(kv2))
