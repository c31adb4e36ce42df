# src/hiremind_client/providers/firebase.py
"""
Firebase Authentication over the Identity Toolkit REST API.

There is no browser popup in a Python process: federated sign-in asks the
caller-supplied `google_id_token_source` for a Google ID token (for example
from an installed-app OAuth flow) and exchanges it with `accounts:signInWithIdp`.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx

from .base import (
    GOOGLE_PROVIDER_ID,
    PASSWORD_PROVIDER_ID,
    AccountExistsWithDifferentCredential,
    FederatedCredential,
    IdentityProvider,
    ProviderCode,
    ProviderError,
    ProviderUser,
)

_log = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = os.getenv("FIREBASE_IDENTITY_TOOLKIT_URL", "https://identitytoolkit.googleapis.com/v1")
SECURE_TOKEN_URL     = os.getenv("FIREBASE_SECURE_TOKEN_URL", "https://securetoken.googleapis.com/v1/token")

# Refresh the ID token when it has less than this many seconds left
REFRESH_MARGIN_SEC = 300

# REST error message -> normalized code
_ERROR_CODES: Dict[str, str] = {
    "EMAIL_EXISTS": ProviderCode.EMAIL_ALREADY_IN_USE,
    "WEAK_PASSWORD": ProviderCode.WEAK_PASSWORD,
    "INVALID_EMAIL": ProviderCode.INVALID_EMAIL,
    "MISSING_EMAIL": ProviderCode.INVALID_EMAIL,
    "EMAIL_NOT_FOUND": ProviderCode.USER_NOT_FOUND,
    "USER_NOT_FOUND": ProviderCode.USER_NOT_FOUND,
    "INVALID_PASSWORD": ProviderCode.WRONG_PASSWORD,
    "MISSING_PASSWORD": ProviderCode.WRONG_PASSWORD,
    "INVALID_LOGIN_CREDENTIALS": ProviderCode.INVALID_CREDENTIAL,
    "INVALID_IDP_RESPONSE": ProviderCode.INVALID_CREDENTIAL,
    "INVALID_ID_TOKEN": ProviderCode.REQUIRES_RECENT_LOGIN,
    "TOKEN_EXPIRED": ProviderCode.REQUIRES_RECENT_LOGIN,
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": ProviderCode.REQUIRES_RECENT_LOGIN,
    "USER_DISABLED": ProviderCode.USER_DISABLED,
    "TOO_MANY_ATTEMPTS_TRY_LATER": ProviderCode.TOO_MANY_REQUESTS,
    "FEDERATED_USER_ID_ALREADY_LINKED": ProviderCode.CREDENTIAL_ALREADY_IN_USE,
    "PROVIDER_ALREADY_LINKED": ProviderCode.PROVIDER_ALREADY_LINKED,
}


def provider_error_from_message(message: str) -> ProviderError:
    """'WEAK_PASSWORD : Password should be at least 6 characters' -> ProviderError(weak-password)."""
    key = (message or "").split(":", 1)[0].strip().upper()
    return ProviderError(_ERROR_CODES.get(key, ProviderCode.INTERNAL), message or "unknown error")


class FirebaseRestProvider(IdentityProvider):
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        google_id_token_source: Optional[Callable[[], Optional[str]]] = None,
        request_uri: str = "http://localhost",
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._api_key = (api_key or os.getenv("FIREBASE_API_KEY", "")).strip()
        if not self._api_key:
            raise RuntimeError("FIREBASE_API_KEY not set")
        self._google_source = google_id_token_source
        self._request_uri = request_uri
        self._http = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None
        self._clock = clock

        self._user: Optional[ProviderUser] = None
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at: float = 0.0

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    # ------------------------
    # Transport
    # ------------------------
    def _post(self, url: str, *, json: Optional[Dict[str, Any]] = None, data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        try:
            r = self._http.post(url, params={"key": self._api_key}, json=json, data=data)
        except httpx.HTTPError as ex:
            _log.warning("Identity Toolkit request failed: %s", ex)
            raise ProviderError(ProviderCode.NETWORK, "A network error has occurred.") from ex

        try:
            body = r.json() if r.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if r.status_code != 200:
            error = body.get("error")
            message = (error.get("message") if isinstance(error, dict) else None) or f"HTTP {r.status_code}"
            raise provider_error_from_message(message)
        return body

    def _accounts(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._post(f"{IDENTITY_TOOLKIT_URL}/accounts:{method}", json=body)

    # ------------------------
    # Session bookkeeping
    # ------------------------
    def _store_tokens(self, id_token: str, refresh_token: Optional[str], expires_in: Any) -> None:
        self._id_token = id_token
        if refresh_token:
            self._refresh_token = refresh_token
        self._expires_at = self._clock() + int(expires_in or 3600)

    def _lookup(self) -> ProviderUser:
        body = self._accounts("lookup", {"idToken": self._id_token})
        users = body.get("users") or []
        if not users:
            raise ProviderError(ProviderCode.USER_NOT_FOUND, "There is no user record corresponding to this identifier.")
        u = users[0]
        provider_ids = tuple(p.get("providerId") for p in (u.get("providerUserInfo") or []) if p.get("providerId"))
        return ProviderUser(
            uid=u["localId"],
            email=u.get("email"),
            display_name=u.get("displayName") or "",
            photo_url=u.get("photoUrl") or "",
            email_verified=bool(u.get("emailVerified", False)),
            provider_ids=provider_ids,
        )

    def _establish(self, body: Dict[str, Any]) -> ProviderUser:
        """Adopt the tokens of a successful auth response and reload the user."""
        id_token = body.get("idToken")
        if not id_token:
            raise ProviderError(ProviderCode.INTERNAL, "auth response missing idToken")
        self._store_tokens(id_token, body.get("refreshToken"), body.get("expiresIn"))
        self._user = self._lookup()
        self._notify()
        return self._user

    def _require_session(self) -> str:
        token = self.issue_short_lived_credential()
        if token is None:
            raise ProviderError(ProviderCode.NO_CURRENT_USER, "No user is currently signed in.")
        return token

    def _idp_body(self, google_id_token: str, current_id_token: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "postBody": urlencode({"id_token": google_id_token, "providerId": GOOGLE_PROVIDER_ID}),
            "requestUri": self._request_uri,
            "returnIdpCredential": True,
            "returnSecureToken": True,
        }
        if current_id_token:
            body["idToken"] = current_id_token
        return body

    # ------------------------
    # Capability
    # ------------------------
    @property
    def current_user(self) -> Optional[ProviderUser]:
        return self._user

    def create_account(self, email: str, password: str) -> ProviderUser:
        body = self._accounts("signUp", {"email": email, "password": password, "returnSecureToken": True})
        return self._establish(body)

    def sign_in_with_password(self, email: str, password: str) -> ProviderUser:
        body = self._accounts("signInWithPassword", {"email": email, "password": password, "returnSecureToken": True})
        return self._establish(body)

    def sign_in_with_federated(self) -> ProviderUser:
        if self._google_source is None:
            raise ProviderError(ProviderCode.INTERNAL, "No Google sign-in source configured.")
        google_token = self._google_source()
        if not google_token:
            raise ProviderError(ProviderCode.POPUP_CLOSED, "The popup has been closed by the user.")

        body = self._accounts("signInWithIdp", self._idp_body(google_token))
        if body.get("errorMessage"):
            raise provider_error_from_message(body["errorMessage"])
        if body.get("needConfirmation"):
            email = body.get("email")
            pending = FederatedCredential(GOOGLE_PROVIDER_ID, body.get("oauthIdToken") or google_token, email)
            raise AccountExistsWithDifferentCredential(email, pending)
        return self._establish(body)

    def attach_credential(self, credential: FederatedCredential) -> ProviderUser:
        current = self._require_session()
        if credential.provider_id != GOOGLE_PROVIDER_ID:
            raise ProviderError(ProviderCode.INVALID_CREDENTIAL, f"unsupported provider: {credential.provider_id}")
        body = self._accounts("signInWithIdp", self._idp_body(credential.id_token, current))
        if body.get("errorMessage"):
            raise provider_error_from_message(body["errorMessage"])
        return self._establish(body)

    def issue_short_lived_credential(self) -> Optional[str]:
        if self._user is None or self._id_token is None:
            return None
        if self._expires_at - self._clock() > REFRESH_MARGIN_SEC:
            return self._id_token
        if not self._refresh_token:
            return None

        body = self._post(SECURE_TOKEN_URL, data={"grant_type": "refresh_token", "refresh_token": self._refresh_token})
        id_token = body.get("id_token")
        if not id_token:
            raise ProviderError(ProviderCode.INTERNAL, "refresh response missing id_token")
        self._store_tokens(id_token, body.get("refresh_token"), body.get("expires_in"))
        return self._id_token

    def sign_out(self) -> None:
        self._user = None
        self._id_token = None
        self._refresh_token = None
        self._expires_at = 0.0
        self._notify()

    def reauthenticate(self, password: str) -> ProviderUser:
        if self._user is None or not self._user.email:
            raise ProviderError(ProviderCode.NO_CURRENT_USER, "No user is currently signed in.")
        return self.sign_in_with_password(self._user.email, password)

    def update_password(self, new_password: str) -> None:
        current = self._require_session()
        body = self._accounts("update", {"idToken": current, "password": new_password, "returnSecureToken": True})
        self._establish(body)

    def update_profile(self, display_name: str) -> ProviderUser:
        current = self._require_session()
        body = self._accounts("update", {"idToken": current, "displayName": display_name, "returnSecureToken": True})
        if body.get("idToken"):
            return self._establish(body)
        self._user = self._lookup()
        self._notify()
        return self._user

    def link_password(self, password: str) -> ProviderUser:
        current = self._require_session()
        if self._user is None or not self._user.email:
            raise ProviderError(ProviderCode.NO_CURRENT_USER, "No user is currently signed in.")
        if PASSWORD_PROVIDER_ID in self._user.provider_ids:
            raise ProviderError(ProviderCode.PROVIDER_ALREADY_LINKED, "User can only be linked to one identity for the given provider.")
        body = self._accounts(
            "update",
            {"idToken": current, "email": self._user.email, "password": password, "returnSecureToken": True},
        )
        return self._establish(body)

    def send_password_reset(self, email: str) -> None:
        self._accounts("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
