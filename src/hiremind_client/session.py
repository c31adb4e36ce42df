# src/hiremind_client/session.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional

from hiremind_backend.app.schemas.identity import ProviderKind

from .providers.base import ProviderUser

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionIdentity:
    """Who is signed in, as the Identity Provider currently sees it."""

    subject_id: str
    email: Optional[str]
    display_name: str
    avatar_url: str
    email_verified: bool
    providers: FrozenSet[ProviderKind]

    @property
    def has_password(self) -> bool:
        return ProviderKind.PASSWORD in self.providers

    @property
    def has_federated(self) -> bool:
        return ProviderKind.GOOGLE in self.providers

    @property
    def is_federated_only(self) -> bool:
        return self.has_federated and not self.has_password

    @classmethod
    def from_provider_user(cls, user: ProviderUser) -> "SessionIdentity":
        kinds = (ProviderKind.from_sign_in_provider(pid) for pid in user.provider_ids)
        return cls(
            subject_id=user.uid,
            email=user.email,
            display_name=user.display_name or "",
            avatar_url=user.photo_url or "",
            email_verified=user.email_verified,
            providers=frozenset(k for k in kinds if k is not None),
        )


SessionListener = Callable[[Optional[SessionIdentity]], None]


class SessionStore:
    """
    Holds the current SessionIdentity. Values are replaced wholesale, never
    mutated, and every replacement notifies each subscriber once.
    """

    def __init__(self) -> None:
        self._current: Optional[SessionIdentity] = None
        self._listeners: List[SessionListener] = []
        self._closed = False

    @property
    def current(self) -> Optional[SessionIdentity]:
        return self._current

    def subscribe(self, callback: SessionListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def replace(self, identity: Optional[SessionIdentity]) -> None:
        if self._closed:
            return
        self._current = identity
        for cb in list(self._listeners):
            try:
                cb(identity)
            except Exception:
                _log.exception("session listener failed")

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()
