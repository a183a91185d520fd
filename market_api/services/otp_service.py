"""One-time code challenges for pending accounts.

Codes are random, and only an HMAC digest keyed with ``OTP_SECRET`` is stored
on the account row together with its expiry. Issuing a new code replaces the
previous one, so an account has at most one outstanding challenge.
"""
import hashlib
import hmac
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from market_api.core.config import Settings
from market_api.models.account import Account


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the OTP expiry column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_otp(length: int = 6) -> str:
    """Return a cryptographically random numeric code."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def hash_otp(code: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), code.encode("utf-8"), hashlib.sha256).hexdigest()


def set_otp(account: Account, settings: Settings, now: Optional[datetime] = None) -> str:
    """Attach a fresh challenge to *account* without committing; returns the code."""
    now = now or utcnow()
    code = generate_otp(settings.OTP_LENGTH)
    account.otp_hash = hash_otp(code, settings.OTP_SECRET)
    account.otp_expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
    return code


def issue_otp(db: Session, account: Account, settings: Settings) -> str:
    """Replace any outstanding challenge with a new one and persist it."""
    code = set_otp(account, settings)
    db.commit()
    return code


def is_otp_expired(account: Account, now: Optional[datetime] = None) -> bool:
    if account.otp_expires_at is None:
        return True
    expires_at = account.otp_expires_at
    if expires_at.tzinfo is not None:
        expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)
    return (now or utcnow()) > expires_at


def check_otp(
    account: Account,
    code: str,
    settings: Settings,
    now: Optional[datetime] = None,
) -> bool:
    """
    Constant-time comparison of *code* with the outstanding challenge.

    False when no challenge is outstanding or it has expired.
    """
    if not account.otp_hash or not code:
        return False
    if is_otp_expired(account, now):
        return False
    return hmac.compare_digest(account.otp_hash, hash_otp(code.strip(), settings.OTP_SECRET))


def clear_otp(account: Account) -> None:
    account.otp_hash = None
    account.otp_expires_at = None
