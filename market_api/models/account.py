"""Account model with role-based access control and verification status"""
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from market_api.db.base import Base


class AccountRole(str, Enum):
    """Account role enumeration"""
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"
    SHOP = "SHOP"


class AccountStatus(str, Enum):
    """Verification status — only ACTIVE accounts may log in"""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"


class Account(Base):
    """
    A registered user or shop.

    Lifecycle
    ---------
    1. Registration  → row inserted with status=PENDING and an OTP digest.
    2. OTP verified  → status=ACTIVE, OTP columns cleared.
    Deletion is an admin operation on the store, never part of the auth flow.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    image = Column(String(500), nullable=True)
    year = Column(Integer, nullable=True)

    role = Column(SQLEnum(AccountRole), nullable=False, default=AccountRole.USER)
    status = Column(SQLEnum(AccountStatus), nullable=False, default=AccountStatus.PENDING)

    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)
    region = relationship("Region", back_populates="accounts")

    # HMAC digest of the outstanding one-time code, never the code itself
    otp_hash = Column(String(64), nullable=True)
    otp_expires_at = Column(DateTime(timezone=False), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Account(id={self.id}, email='{self.email}', role='{self.role}', status='{self.status}')>"

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    @property
    def is_pending(self) -> bool:
        return self.status == AccountStatus.PENDING

    @property
    def region_name(self) -> Optional[str]:
        return self.region.name if self.region is not None else None
