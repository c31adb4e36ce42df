# src/hiremind_client/errors.py
"""
Errors surfaced by the orchestrator. Every one carries a user-facing `message`;
raw Identity Provider codes are kept on `code` for logging only.
"""
from __future__ import annotations

from typing import Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

MIN_PASSWORD_LENGTH = 6

_email_adapter = TypeAdapter(EmailStr)


class AuthError(Exception):
    default_message = "Authentication failed."

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        self.message = message or self.default_message
        self.code = code
        super().__init__(self.message)


# --- Credential errors ---
class CredentialError(AuthError):
    default_message = "Invalid email or password."


class UserNotFound(CredentialError):
    default_message = "No account found with this email."


class WrongPassword(CredentialError):
    default_message = "Incorrect password."


class InvalidCredential(CredentialError):
    default_message = "Invalid email or password."


class EmailAlreadyInUse(AuthError):
    default_message = "Account already exists. Please login instead."


# --- Local validation ---
class ValidationError(AuthError):
    default_message = "Invalid input."


class WeakPassword(ValidationError):
    default_message = "Password must be at least 6 characters"


class InvalidEmail(ValidationError):
    default_message = "Please enter a valid email address."


class LinkingError(AuthError):
    default_message = "Could not link your Google account. Please try again."


class ProviderError(AuthError):
    default_message = "Authentication service error. Please try again."


class SyncError(Exception):
    """Backend sync failed; never escapes the sync client."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise WeakPassword()


def normalize_email(email: str) -> str:
    """Lowercased, validated email; raises InvalidEmail."""
    candidate = (email or "").strip()
    try:
        return str(_email_adapter.validate_python(candidate)).lower()
    except PydanticValidationError as ex:
        raise InvalidEmail() from ex
