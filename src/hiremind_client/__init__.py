# src/hiremind_client/__init__.py
"""Client side of HireMind sign-in: orchestrator, Identity Providers and backend sync."""
from .errors import (
    AuthError,
    CredentialError,
    EmailAlreadyInUse,
    InvalidCredential,
    InvalidEmail,
    LinkingError,
    ProviderError,
    UserNotFound,
    ValidationError,
    WeakPassword,
    WrongPassword,
)
from .orchestrator import AuthOutcome, ConflictDetected, IdentityOrchestrator, LinkState, PendingLink
from .session import SessionIdentity, SessionStore
from .sync import BackendSyncClient, SyncOutcome

__all__ = [
    "AuthError",
    "AuthOutcome",
    "BackendSyncClient",
    "ConflictDetected",
    "CredentialError",
    "EmailAlreadyInUse",
    "IdentityOrchestrator",
    "InvalidCredential",
    "InvalidEmail",
    "LinkState",
    "LinkingError",
    "PendingLink",
    "ProviderError",
    "SessionIdentity",
    "SessionStore",
    "SyncOutcome",
    "UserNotFound",
    "ValidationError",
    "WeakPassword",
    "WrongPassword",
]
