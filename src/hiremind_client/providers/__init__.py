from .base import (
    AccountExistsWithDifferentCredential,
    FederatedCredential,
    IdentityProvider,
    ProviderCode,
    ProviderError,
    ProviderUser,
)
from .firebase import FirebaseRestProvider
from .local import GoogleAccount, LocalIdentityProvider

__all__ = [
    "AccountExistsWithDifferentCredential",
    "FederatedCredential",
    "FirebaseRestProvider",
    "GoogleAccount",
    "IdentityProvider",
    "LocalIdentityProvider",
    "ProviderCode",
    "ProviderError",
    "ProviderUser",
]
