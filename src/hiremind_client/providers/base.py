# src/hiremind_client/providers/base.py
"""
Identity Provider capability consumed by the orchestrator.

The provider is the single authority on credential state: who is signed in,
with which methods, and which short-lived credential proves it. Concrete
providers raise ProviderError with one of the normalized codes below; raw
backend error strings stay inside the provider.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

_log = logging.getLogger(__name__)

GOOGLE_PROVIDER_ID = "google.com"
PASSWORD_PROVIDER_ID = "password"


class ProviderCode:
    EMAIL_ALREADY_IN_USE = "email-already-in-use"
    WEAK_PASSWORD = "weak-password"
    INVALID_EMAIL = "invalid-email"
    USER_NOT_FOUND = "user-not-found"
    WRONG_PASSWORD = "wrong-password"
    INVALID_CREDENTIAL = "invalid-credential"
    USER_DISABLED = "user-disabled"
    ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL = "account-exists-with-different-credential"
    CREDENTIAL_ALREADY_IN_USE = "credential-already-in-use"
    PROVIDER_ALREADY_LINKED = "provider-already-linked"
    REQUIRES_RECENT_LOGIN = "requires-recent-login"
    NO_CURRENT_USER = "no-current-user"
    POPUP_CLOSED = "popup-closed-by-user"
    TOO_MANY_REQUESTS = "too-many-requests"
    NETWORK = "network-request-failed"
    INTERNAL = "internal-error"


class ProviderError(Exception):
    """A failed Identity Provider call, tagged with a normalized code."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code
        self.message = message or code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


@dataclass(frozen=True)
class FederatedCredential:
    """
    A reusable federated credential. Captured from a conflicting sign-in so it
    can be attached to another (already authenticated) account later.
    """

    provider_id: str
    id_token: str = field(repr=False)
    email: Optional[str] = None


class AccountExistsWithDifferentCredential(ProviderError):
    """
    Federated sign-in hit an email that is already bound to another provider.
    Carries the conflicting email and the credential to attach once the user
    has proven ownership of the existing account.
    """

    def __init__(self, email: Optional[str], pending_credential: FederatedCredential):
        super().__init__(
            ProviderCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL,
            "An account already exists with the same email address but different sign-in credentials.",
        )
        self.email = email
        self.pending_credential = pending_credential


@dataclass(frozen=True)
class ProviderUser:
    """Snapshot of the provider's signed-in user."""

    uid: str
    email: Optional[str] = None
    display_name: str = ""
    photo_url: str = ""
    email_verified: bool = False
    provider_ids: Tuple[str, ...] = ()


CredentialListener = Callable[[Optional[ProviderUser]], None]


class IdentityProvider(ABC):
    """
    Abstract Identity Provider.

    Subclasses call `_notify()` after every change to credential state
    (sign-in, sign-out, link, profile update); listeners receive the new
    `current_user` snapshot, or None when signed out.
    """

    def __init__(self) -> None:
        self._listeners: List[CredentialListener] = []

    # ------------------------
    # Credential-state notifications
    # ------------------------
    def on_credential_state_change(self, callback: CredentialListener) -> Callable[[], None]:
        """
        Register `callback`; it is called once right away with the current
        state, then once per change. Returns an unsubscribe function.
        """
        self._listeners.append(callback)
        callback(self.current_user)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        user = self.current_user
        for cb in list(self._listeners):
            try:
                cb(user)
            except Exception:
                _log.exception("credential-state listener failed")

    # ------------------------
    # Capability
    # ------------------------
    @property
    @abstractmethod
    def current_user(self) -> Optional[ProviderUser]:
        ...

    @abstractmethod
    def create_account(self, email: str, password: str) -> ProviderUser:
        ...

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> ProviderUser:
        ...

    @abstractmethod
    def sign_in_with_federated(self) -> ProviderUser:
        """Raises AccountExistsWithDifferentCredential on an email conflict."""

    @abstractmethod
    def attach_credential(self, credential: FederatedCredential) -> ProviderUser:
        """Link `credential` to the signed-in user. Requires a current user."""

    @abstractmethod
    def issue_short_lived_credential(self) -> Optional[str]:
        """Fresh bearer credential for the current user, or None when signed out."""

    @abstractmethod
    def sign_out(self) -> None:
        ...

    @abstractmethod
    def reauthenticate(self, password: str) -> ProviderUser:
        ...

    @abstractmethod
    def update_password(self, new_password: str) -> None:
        ...

    @abstractmethod
    def update_profile(self, display_name: str) -> ProviderUser:
        ...

    @abstractmethod
    def link_password(self, password: str) -> ProviderUser:
        ...

    @abstractmethod
    def send_password_reset(self, email: str) -> None:
        ...
