# src/hiremind_client/providers/local.py
"""
In-process Identity Provider for local development and tests.

Accounts live in memory. Credentials are HS256 development tokens, so a
backend running with AUTH_MODE=HS256 (same JWT_SECRET) accepts them exactly
like Firebase ID tokens. The Google "popup" is simulated: pick an account with
`choose_google_account()` before calling `sign_in_with_federated()`.
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from passlib.context import CryptContext

from hiremind_backend.app.auth.internal import issue_dev_credential

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

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


@dataclass(frozen=True)
class GoogleAccount:
    """An account offered by the simulated Google account picker."""

    email: str
    display_name: str = ""
    photo_url: str = ""
    sub: str = field(default_factory=lambda: secrets.token_hex(10))


@dataclass
class _Account:
    uid: str
    email: str
    display_name: str = ""
    photo_url: str = ""
    email_verified: bool = False
    password_hash: Optional[str] = None
    google_sub: Optional[str] = None
    provider_ids: List[str] = field(default_factory=list)

    def snapshot(self) -> ProviderUser:
        return ProviderUser(
            uid=self.uid,
            email=self.email,
            display_name=self.display_name,
            photo_url=self.photo_url,
            email_verified=self.email_verified,
            provider_ids=tuple(self.provider_ids),
        )


class LocalIdentityProvider(IdentityProvider):
    def __init__(self) -> None:
        super().__init__()
        self._accounts: Dict[str, _Account] = {}
        self._google_tokens: Dict[str, GoogleAccount] = {}
        self._chosen: Optional[GoogleAccount] = None
        self._current_uid: Optional[str] = None
        self._sign_in_provider: str = PASSWORD_PROVIDER_ID
        self.password_reset_outbox: List[str] = []

    # ------------------------
    # Helpers
    # ------------------------
    def _set_password(self, account: _Account, password: str) -> None:
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ProviderError(ProviderCode.WEAK_PASSWORD, "Password should be at least 6 characters")
        account.password_hash = pwd_context.hash(password)

    def _password_matches(self, account: _Account, password: str) -> bool:
        if account.password_hash is None:
            return False
        return pwd_context.verify(password or "", account.password_hash)

    def _by_email(self, email: str) -> Optional[_Account]:
        key = (email or "").strip().lower()
        for acct in self._accounts.values():
            if acct.email == key:
                return acct
        return None

    def _by_google_sub(self, sub: str) -> Optional[_Account]:
        for acct in self._accounts.values():
            if acct.google_sub == sub:
                return acct
        return None

    def _require_current(self) -> _Account:
        if self._current_uid is None:
            raise ProviderError(ProviderCode.NO_CURRENT_USER, "No user is currently signed in.")
        return self._accounts[self._current_uid]

    def _sign_in(self, account: _Account, provider_id: str) -> ProviderUser:
        self._current_uid = account.uid
        self._sign_in_provider = provider_id
        self._notify()
        return account.snapshot()

    def _google_from_credential(self, credential: FederatedCredential) -> GoogleAccount:
        google = self._google_tokens.get(credential.id_token)
        if credential.provider_id != GOOGLE_PROVIDER_ID or google is None:
            raise ProviderError(ProviderCode.INVALID_CREDENTIAL, "The supplied credential is malformed or has expired.")
        return google

    # ------------------------
    # Simulated account picker
    # ------------------------
    def choose_google_account(self, account: Optional[GoogleAccount]) -> None:
        """Account returned by the next federated sign-in; None simulates closing the popup."""
        self._chosen = account

    # ------------------------
    # Capability
    # ------------------------
    @property
    def current_user(self) -> Optional[ProviderUser]:
        if self._current_uid is None:
            return None
        return self._accounts[self._current_uid].snapshot()

    def create_account(self, email: str, password: str) -> ProviderUser:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise ProviderError(ProviderCode.INVALID_EMAIL, "The email address is badly formatted.")
        if self._by_email(email) is not None:
            raise ProviderError(ProviderCode.EMAIL_ALREADY_IN_USE, "The email address is already in use by another account.")

        account = _Account(uid=uuid.uuid4().hex[:28], email=email)
        self._set_password(account, password)
        account.provider_ids.append(PASSWORD_PROVIDER_ID)
        self._accounts[account.uid] = account
        return self._sign_in(account, PASSWORD_PROVIDER_ID)

    def sign_in_with_password(self, email: str, password: str) -> ProviderUser:
        account = self._by_email(email)
        if account is None:
            raise ProviderError(ProviderCode.USER_NOT_FOUND, "There is no user record corresponding to this identifier.")
        if not self._password_matches(account, password):
            raise ProviderError(ProviderCode.WRONG_PASSWORD, "The password is invalid.")
        return self._sign_in(account, PASSWORD_PROVIDER_ID)

    def sign_in_with_federated(self) -> ProviderUser:
        google, self._chosen = self._chosen, None
        if google is None:
            raise ProviderError(ProviderCode.POPUP_CLOSED, "The popup has been closed by the user.")

        linked = self._by_google_sub(google.sub)
        if linked is not None:
            return self._sign_in(linked, GOOGLE_PROVIDER_ID)

        existing = self._by_email(google.email)
        if existing is not None:
            # only a pending credential needs to be redeemable later
            token = "google-local." + secrets.token_urlsafe(24)
            self._google_tokens[token] = google
            credential = FederatedCredential(GOOGLE_PROVIDER_ID, token, google.email.lower())
            raise AccountExistsWithDifferentCredential(existing.email, credential)

        account = _Account(
            uid=uuid.uuid4().hex[:28],
            email=google.email.lower(),
            display_name=google.display_name,
            photo_url=google.photo_url,
            email_verified=True,
            google_sub=google.sub,
            provider_ids=[GOOGLE_PROVIDER_ID],
        )
        self._accounts[account.uid] = account
        return self._sign_in(account, GOOGLE_PROVIDER_ID)

    def attach_credential(self, credential: FederatedCredential) -> ProviderUser:
        account = self._require_current()
        google = self._google_from_credential(credential)

        owner = self._by_google_sub(google.sub)
        if owner is not None and owner.uid != account.uid:
            raise ProviderError(ProviderCode.CREDENTIAL_ALREADY_IN_USE, "This credential is already associated with a different user account.")
        if account.google_sub is not None:
            raise ProviderError(ProviderCode.PROVIDER_ALREADY_LINKED, "User can only be linked to one identity for the given provider.")

        self._google_tokens.pop(credential.id_token, None)
        account.google_sub = google.sub
        account.provider_ids.append(GOOGLE_PROVIDER_ID)
        account.display_name = account.display_name or google.display_name
        account.photo_url = account.photo_url or google.photo_url
        if google.email.lower() == account.email:
            account.email_verified = True
        # the credential returned by a link carries the linked provider
        return self._sign_in(account, GOOGLE_PROVIDER_ID)

    def issue_short_lived_credential(self) -> Optional[str]:
        if self._current_uid is None:
            return None
        account = self._accounts[self._current_uid]
        return issue_dev_credential(
            account.uid,
            account.email,
            name=account.display_name,
            picture=account.photo_url,
            email_verified=account.email_verified,
            sign_in_provider=self._sign_in_provider,
        )

    def sign_out(self) -> None:
        self._current_uid = None
        self._google_tokens.clear()
        self._notify()

    def reauthenticate(self, password: str) -> ProviderUser:
        account = self._require_current()
        if not self._password_matches(account, password):
            raise ProviderError(ProviderCode.WRONG_PASSWORD, "The password is invalid.")
        return self._sign_in(account, PASSWORD_PROVIDER_ID)

    def update_password(self, new_password: str) -> None:
        account = self._require_current()
        if PASSWORD_PROVIDER_ID not in account.provider_ids:
            raise ProviderError(ProviderCode.INVALID_CREDENTIAL, "This account has no password to update.")
        self._set_password(account, new_password)
        self._notify()

    def update_profile(self, display_name: str) -> ProviderUser:
        account = self._require_current()
        account.display_name = display_name
        self._notify()
        return account.snapshot()

    def link_password(self, password: str) -> ProviderUser:
        account = self._require_current()
        if PASSWORD_PROVIDER_ID in account.provider_ids:
            raise ProviderError(ProviderCode.PROVIDER_ALREADY_LINKED, "User can only be linked to one identity for the given provider.")
        self._set_password(account, password)
        account.provider_ids.append(PASSWORD_PROVIDER_ID)
        return self._sign_in(account, PASSWORD_PROVIDER_ID)

    def send_password_reset(self, email: str) -> None:
        account = self._by_email(email)
        if account is None:
            raise ProviderError(ProviderCode.USER_NOT_FOUND, "There is no user record corresponding to this identifier.")
        self.password_reset_outbox.append(account.email)
