# src/hiremind_client/sync.py
"""
Best-effort mirror of the signed-in user into the backend.

`sync()` never raises: transport errors, non-2xx answers and unparseable
bodies all come back as a failed SyncOutcome and a WARNING log line.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from hiremind_backend.app.schemas.user import UserRecordView

from .errors import SyncError

_log = logging.getLogger(__name__)

HIREMIND_API_URL = os.getenv("HIREMIND_API_URL", "http://localhost:5001")

SYNCED = "synced"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass(frozen=True)
class SyncOutcome:
    status: str
    user: Optional[UserRecordView] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SYNCED


class BackendSyncClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = (base_url or HIREMIND_API_URL).rstrip("/")
        self._http = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def _get_user(self, method: str, path: str, token: str) -> UserRecordView:
        try:
            r = self._http.request(
                method,
                f"{self._base_url}{path}",
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as ex:
            raise SyncError(f"backend unreachable: {ex}") from ex

        try:
            body = r.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            # proxies answer with bare strings or lists
            body = {}
        if not r.is_success:
            raise SyncError(body.get("message") or f"HTTP {r.status_code}", r.status_code)

        try:
            return UserRecordView.model_validate(body.get("user") or {})
        except PydanticValidationError as ex:
            raise SyncError(f"unexpected response body: {ex}", r.status_code) from ex

    def sync(self, token: Optional[str]) -> SyncOutcome:
        if not token:
            return SyncOutcome(SKIPPED, error="no credential")
        try:
            user = self._get_user("POST", "/api/auth/login", token)
        except SyncError as ex:
            _log.warning("Backend sync failed (status=%s): %s", ex.status_code, ex.message)
            return SyncOutcome(FAILED, error=ex.message)
        return SyncOutcome(SYNCED, user=user)

    def fetch_me(self, token: str) -> UserRecordView:
        """The stored User Record; raises SyncError (404 when never synced)."""
        return self._get_user("GET", "/api/auth/me", token)
