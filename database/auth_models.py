"""Database models for users and storage quotas"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from ulid import ULID

from config.settings import get_settings
from database.models import Base


class UserModel(Base):
    """User model with storage quota counters"""

    __tablename__ = "users"

    # --- PK & identity ---
    id = Column(String(26), primary_key=True, default=lambda: str(ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # --- Storage ledger (bytes) ---
    storage_quota = Column(
        BigInteger, default=lambda: get_settings().quota.default_storage_quota_bytes, nullable=False
    )
    storage_used = Column(BigInteger, default=0, nullable=False)
    storage_reserved = Column(BigInteger, default=0, nullable=False)

    # --- Timestamps ---
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC), nullable=False
    )
    files = relationship("FileModel", back_populates="owner", cascade="all, delete-orphan")
    quota_extensions = relationship("QuotaExtensionModel", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return (
            f"<User(id={self.id}, email='{self.email}', used={self.storage_used}, "
            f"reserved={self.storage_reserved}, quota={self.storage_quota})>"
        )


class QuotaExtensionModel(Base):
    """Temporary extra storage granted to a user."""

    __tablename__ = "quota_extensions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    additional_space = Column(BigInteger, nullable=False)
    reason = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    user = relationship("UserModel", back_populates="quota_extensions")

    def __repr__(self):
        return f"<QuotaExtension(id={self.id}, user_id={self.user_id}, bytes={self.additional_space})>"
