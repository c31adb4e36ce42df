# src/hiremind_backend/app/schemas/identity.py
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ProviderKind(str, Enum):
    """Authentication method tracked per account."""

    PASSWORD = "password"
    GOOGLE = "google"

    @classmethod
    def from_sign_in_provider(cls, provider_id: Optional[str]) -> Optional["ProviderKind"]:
        """
        Map an Identity Provider sign-in provider id onto a ProviderKind.
        Returns None for anything we do not track (anonymous, custom, phone...).
        """
        return _SIGN_IN_PROVIDERS.get((provider_id or "").strip().lower())

    @property
    def provider_id(self) -> str:
        """The Identity Provider's own id for this kind ("google.com" for GOOGLE)."""
        return "google.com" if self is ProviderKind.GOOGLE else "password"


_SIGN_IN_PROVIDERS = {
    "password": ProviderKind.PASSWORD,
    "google.com": ProviderKind.GOOGLE,
    "google": ProviderKind.GOOGLE,
}


class VerifiedIdentity(BaseModel):
    """
    What a successfully verified bearer credential says about its holder.

    `provider` is the kind used for *this* credential, not every kind the
    account has ever used.
    """

    subject_id: str
    email: Optional[str] = None
    display_name: str = ""
    avatar_url: str = ""
    email_verified: bool = False
    provider: ProviderKind
