# src/hiremind_backend/app/db/models.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Boolean,
    JSON,
    DateTime,
)

from .session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Local mirror of one Identity Provider account.

    Rules:
      - subject_id: the provider's stable uid; unique, never reassigned.
      - providers: ordered, append-only list of ProviderKind values
        ("password", "google"), first-seen order, no duplicates.
      - No password material is ever stored here; the Identity Provider owns it.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject_id = Column(String(128), unique=True, index=True, nullable=False)

    email = Column(String(320), nullable=True)
    display_name = Column(String(255), nullable=False, default="")
    avatar_url = Column(String(1024), nullable=False, default="")
    providers = Column(JSON, nullable=False, default=list)
    email_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} sub={self.subject_id} providers={self.providers}>"
