"""
SQLAlchemy models for the credential store. One row per (service, account); value is Fernet ciphertext.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class CredentialEntry(Base):
    __tablename__ = "credentials"
    __table_args__ = (UniqueConstraint("service", "account", name="uq_credentials_service_account"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Installation scope, e.g. com.edulens.student
    service: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # Key within the scope, e.g. edulens.access_token
    account: Mapped[str] = mapped_column(String(255), nullable=False)
    # Encrypted value (Fernet token, urlsafe base64 text)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)
