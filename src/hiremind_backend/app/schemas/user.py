# src/hiremind_backend/app/schemas/user.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identity import ProviderKind


class UserRecordView(BaseModel):
    """
    Wire shape of a User Record, shared by the sync endpoint and the client.

    Serialized with camelCase aliases:
      {id, subjectId, email, name, photoURL, providers, emailVerified, createdAt}
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    subject_id: str = Field(alias="subjectId")
    email: Optional[str] = None
    name: str = ""
    photo_url: str = Field("", alias="photoURL")
    providers: List[ProviderKind] = Field(default_factory=list)
    email_verified: bool = Field(False, alias="emailVerified")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @classmethod
    def from_record(cls, user) -> "UserRecordView":
        return cls(
            id=user.id,
            subject_id=user.subject_id,
            email=user.email,
            name=user.display_name or "",
            photo_url=user.avatar_url or "",
            providers=[ProviderKind(p) for p in (user.providers or [])],
            email_verified=bool(user.email_verified),
            created_at=user.created_at,
        )

    @property
    def has_password(self) -> bool:
        return ProviderKind.PASSWORD in self.providers

    @property
    def has_federated(self) -> bool:
        return ProviderKind.GOOGLE in self.providers


class SyncResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    user: UserRecordView


class MeResponse(BaseModel):
    success: bool = True
    user: UserRecordView


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
