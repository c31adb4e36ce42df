# src/hiremind_client/orchestrator.py
"""
Client Identity Orchestrator.

Drives registration, password and Google sign-in, and the linking flow used
when a Google sign-in lands on an email that already has a password account:

    UNAUTHENTICATED --google--> CONFLICT_DETECTED --password ok--> LINKING --attach--> LINKED
                                      ^    |
                                      +----+ wrong password (retry)

Every successful authentication is followed by a best-effort backend sync.
The Identity Provider decides whether the user is signed in; sync failures
only show up in `AuthOutcome.sync` and the logs.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Type, Union

from . import errors
from .errors import (
    AuthError,
    EmailAlreadyInUse,
    InvalidCredential,
    InvalidEmail,
    LinkingError,
    UserNotFound,
    WeakPassword,
    WrongPassword,
    check_password,
    normalize_email,
)
from .providers.base import (
    AccountExistsWithDifferentCredential,
    FederatedCredential,
    IdentityProvider,
    ProviderCode,
)
from .providers.base import ProviderError as RawProviderError
from .providers.base import ProviderUser
from .session import SessionIdentity, SessionStore
from .sync import FAILED, BackendSyncClient, SyncOutcome

_log = logging.getLogger(__name__)

LINK_PROMPT = (
    "An account already exists with this email. "
    "Please login with your password to link your Google account."
)


class LinkState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CONFLICT_DETECTED = "conflict_detected"
    LINKING = "linking"
    LINKED = "linked"


@dataclass(frozen=True)
class PendingLink:
    credential: FederatedCredential = field(repr=False)
    email: Optional[str]


@dataclass(frozen=True)
class AuthOutcome:
    identity: Optional[SessionIdentity]
    sync: SyncOutcome


@dataclass(frozen=True)
class ConflictDetected:
    """Google sign-in hit an existing password account; ask for its password."""

    email: Optional[str]
    pending_credential: FederatedCredential = field(repr=False)
    message: str = LINK_PROMPT


# --- Provider code -> orchestrator error ---
_ERRORS: Dict[str, Type[AuthError]] = {
    ProviderCode.EMAIL_ALREADY_IN_USE: EmailAlreadyInUse,
    ProviderCode.WEAK_PASSWORD: WeakPassword,
    ProviderCode.INVALID_EMAIL: InvalidEmail,
    ProviderCode.USER_NOT_FOUND: UserNotFound,
    ProviderCode.WRONG_PASSWORD: WrongPassword,
    ProviderCode.INVALID_CREDENTIAL: InvalidCredential,
    ProviderCode.CREDENTIAL_ALREADY_IN_USE: LinkingError,
    ProviderCode.PROVIDER_ALREADY_LINKED: LinkingError,
}

_MESSAGES: Dict[str, str] = {
    ProviderCode.CREDENTIAL_ALREADY_IN_USE: "This Google account is already linked to another user.",
    ProviderCode.PROVIDER_ALREADY_LINKED: "This sign-in method is already linked to your account.",
    ProviderCode.REQUIRES_RECENT_LOGIN: "Please login again to continue.",
    ProviderCode.USER_DISABLED: "This account has been disabled.",
    ProviderCode.TOO_MANY_REQUESTS: "Too many attempts. Please try again later.",
    ProviderCode.POPUP_CLOSED: "Sign-in popup was closed before completing.",
    ProviderCode.NETWORK: "Network error. Please check your connection.",
    ProviderCode.NO_CURRENT_USER: "Please login first.",
}


def translate(ex: RawProviderError) -> AuthError:
    cls = _ERRORS.get(ex.code, errors.ProviderError)
    return cls(_MESSAGES.get(ex.code), code=ex.code)


class IdentityOrchestrator:
    def __init__(
        self,
        provider: IdentityProvider,
        sync_client: Optional[BackendSyncClient] = None,
    ) -> None:
        self._provider = provider
        self._sync_client = sync_client or BackendSyncClient()
        self._owns_sync_client = sync_client is None
        self._state = LinkState.UNAUTHENTICATED
        self._pending: Optional[PendingLink] = None
        self.last_sync: SyncOutcome = SyncOutcome("skipped", error="not synced yet")

        self.session = SessionStore()
        self._unsubscribe = provider.on_credential_state_change(self._on_credential_change)

    def close(self) -> None:
        self._unsubscribe()
        self.session.close()
        if self._owns_sync_client:
            self._sync_client.close()

    # ------------------------
    # State
    # ------------------------
    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def pending_link(self) -> Optional[PendingLink]:
        return self._pending

    @property
    def identity(self) -> Optional[SessionIdentity]:
        return self.session.current

    def _on_credential_change(self, user: Optional[ProviderUser]) -> None:
        self.session.replace(SessionIdentity.from_provider_user(user) if user else None)
        if user is None and self._state in (LinkState.AUTHENTICATED, LinkState.LINKING, LinkState.LINKED):
            self._state = LinkState.UNAUTHENTICATED
        elif user is not None and self._state is LinkState.UNAUTHENTICATED:
            self._state = LinkState.AUTHENTICATED

    def _complete(self) -> AuthOutcome:
        identity = self.refresh()
        try:
            token = self.get_token()
        except AuthError as ex:
            _log.warning("Could not obtain a credential for sync: %s", ex.message)
            self.last_sync = SyncOutcome(FAILED, error=ex.message)
        else:
            self.last_sync = self._sync_client.sync(token)
        return AuthOutcome(identity, self.last_sync)

    # ------------------------
    # Authentication
    # ------------------------
    def register_with_password(self, email: str, password: str) -> AuthOutcome:
        email = normalize_email(email)
        check_password(password)
        try:
            self._provider.create_account(email, password)
        except RawProviderError as ex:
            raise translate(ex) from ex
        self._pending = None
        self._state = LinkState.AUTHENTICATED
        return self._complete()

    def login_with_password(self, email: str, password: str) -> AuthOutcome:
        try:
            self._provider.sign_in_with_password((email or "").strip().lower(), password)
        except RawProviderError as ex:
            raise translate(ex) from ex
        self._pending = None
        self._state = LinkState.AUTHENTICATED
        return self._complete()

    def login_with_federated(self) -> Union[AuthOutcome, ConflictDetected]:
        try:
            self._provider.sign_in_with_federated()
        except AccountExistsWithDifferentCredential as ex:
            self._pending = PendingLink(ex.pending_credential, ex.email)
            self._state = LinkState.CONFLICT_DETECTED
            _log.info("Google sign-in conflicts with an existing account for %s", ex.email)
            return ConflictDetected(ex.email, ex.pending_credential)
        except RawProviderError as ex:
            raise translate(ex) from ex
        self._pending = None
        self._state = LinkState.AUTHENTICATED
        return self._complete()

    def login_and_link(
        self,
        email: str,
        password: str,
        pending_credential: Optional[FederatedCredential] = None,
    ) -> AuthOutcome:
        """
        Sign in with the existing account's password, then attach the pending
        Google credential to that session. A wrong password leaves the flow
        where it was so the user can retry.
        """
        if pending_credential is None and self._pending is not None:
            pending_credential = self._pending.credential
            expected = self._pending.email
        elif pending_credential is not None:
            expected = pending_credential.email
        else:
            raise LinkingError("No Google sign-in is waiting to be linked.")

        email = (email or "").strip().lower()
        if expected and email != expected.strip().lower():
            raise LinkingError(f"Please login with {expected} to link your Google account.")

        try:
            self._provider.sign_in_with_password(email, password)
        except RawProviderError as ex:
            raise translate(ex) from ex

        return self._attach(pending_credential, expected)

    def link_federated(self, pending_credential: Optional[FederatedCredential] = None) -> AuthOutcome:
        """Attach a Google credential to the signed-in account."""
        if pending_credential is None and self._pending is not None:
            pending_credential = self._pending.credential
        if pending_credential is None:
            raise LinkingError("No Google sign-in is waiting to be linked.")
        if self._provider.current_user is None:
            raise LinkingError(_MESSAGES[ProviderCode.NO_CURRENT_USER], code=ProviderCode.NO_CURRENT_USER)
        return self._attach(pending_credential, pending_credential.email)

    def _attach(self, credential: FederatedCredential, email: Optional[str]) -> AuthOutcome:
        self._state = LinkState.LINKING
        try:
            self._provider.attach_credential(credential)
        except RawProviderError as ex:
            # signed in, link still outstanding; link_federated() can retry it
            self._state = LinkState.AUTHENTICATED
            self._pending = PendingLink(credential, email)
            err = translate(ex)
            raise LinkingError(err.message, code=ex.code) from ex
        self._pending = None
        self._state = LinkState.LINKED
        _log.info("Linked %s to %s", credential.provider_id, email)
        return self._complete()

    def abandon_link(self) -> None:
        self._pending = None
        if self._state in (LinkState.CONFLICT_DETECTED, LinkState.LINKING):
            self._state = LinkState.UNAUTHENTICATED

    def logout(self) -> None:
        try:
            self._provider.sign_out()
        except RawProviderError as ex:
            _log.warning("Provider sign-out failed, clearing local session anyway: %s", ex)
        self._pending = None
        self._state = LinkState.UNAUTHENTICATED
        self.session.replace(None)

    def refresh(self) -> Optional[SessionIdentity]:
        user = self._provider.current_user
        identity = SessionIdentity.from_provider_user(user) if user else None
        self.session.replace(identity)
        return identity

    def get_token(self) -> Optional[str]:
        try:
            return self._provider.issue_short_lived_credential()
        except RawProviderError as ex:
            raise translate(ex) from ex

    # ------------------------
    # Account management
    # ------------------------
    def link_password(self, password: str) -> AuthOutcome:
        """Add email+password sign-in to a Google-only account."""
        check_password(password)
        try:
            self._provider.link_password(password)
        except RawProviderError as ex:
            raise translate(ex) from ex
        return self._complete()

    def change_password(self, current_password: str, new_password: str) -> None:
        check_password(new_password)
        try:
            self._provider.reauthenticate(current_password)
            self._provider.update_password(new_password)
        except RawProviderError as ex:
            raise translate(ex) from ex
        self.refresh()

    def update_display_name(self, display_name: str) -> AuthOutcome:
        try:
            self._provider.update_profile((display_name or "").strip())
        except RawProviderError as ex:
            raise translate(ex) from ex
        return self._complete()

    def send_password_reset(self, email: str) -> None:
        email = normalize_email(email)
        try:
            self._provider.send_password_reset(email)
        except RawProviderError as ex:
            raise translate(ex) from ex
