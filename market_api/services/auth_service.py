"""Registration, OTP verification and login"""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from market_api.core.config import Settings
from market_api.errors.exceptions import (
    ConflictException,
    InvalidCredentialsException,
    InvalidOTPException,
    NotFoundException,
    NotVerifiedException,
    UnauthorizedException,
)
from market_api.models.account import Account, AccountStatus
from market_api.models.region import Region
from market_api.schemas.auth_schemas import RegisterRequest, TokenPair
from market_api.services import otp_service
from market_api.services.security import (
    REFRESH,
    InvalidTokenError,
    TokenExpiredError,
    create_access_token,
    create_refresh_token,
    decode_token,
    dummy_password_hash,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    return db.query(Account).filter(Account.email == email.lower()).first()


def get_account_by_phone(db: Session, phone: str) -> Optional[Account]:
    return db.query(Account).filter(Account.phone == phone).first()


def get_account_by_id(db: Session, account_id: int) -> Optional[Account]:
    return db.query(Account).filter(Account.id == account_id).first()


def get_region_by_id(db: Session, region_id: int) -> Optional[Region]:
    return db.query(Region).filter(Region.id == region_id).first()


def register_account(db: Session, data: RegisterRequest, settings: Settings) -> Tuple[Account, str]:
    """
    Create a PENDING account and its first OTP challenge in one commit.

    Returns the account and the plain-text code for dispatch. A uniqueness
    violation at commit time (a concurrent registration won the race) is
    reported exactly like the pre-check.
    """
    if get_region_by_id(db, data.region_id) is None:
        raise NotFoundException(detail="Region not found")

    if get_account_by_email(db, data.email):
        raise ConflictException(detail="Email already registered")

    if get_account_by_phone(db, data.phone):
        raise ConflictException(detail="Phone already registered")

    account = Account(
        full_name=data.full_name,
        email=data.email,
        phone=data.phone,
        password_hash=get_password_hash(data.password, settings.BCRYPT_ROUNDS),
        role=data.role,
        status=AccountStatus.PENDING,
        region_id=data.region_id,
        image=data.image,
        year=data.year,
    )
    code = otp_service.set_otp(account, settings)
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"[Register] Uniqueness violation at commit for {data.email}")
        raise ConflictException(detail="Email or phone already registered")
    db.refresh(account)

    logger.info(f"[Register] Pending account {account.id} created")
    return account, code


def _get_pending_account(db: Session, account_id: int) -> Account:
    account = get_account_by_id(db, account_id)
    if account is None or not account.is_pending:
        raise NotFoundException(detail="No pending account found")
    return account


def verify_account_otp(db: Session, account_id: int, code: str, settings: Settings) -> Account:
    """
    Activate a PENDING account when *code* matches its outstanding challenge.

    A mismatch leaves the account PENDING and the code valid until expiry.
    """
    account = _get_pending_account(db, account_id)

    if not otp_service.check_otp(account, code, settings):
        if otp_service.is_otp_expired(account):
            raise InvalidOTPException(detail="OTP has expired. Please request a new one.")
        raise InvalidOTPException(detail="Invalid OTP code.")

    # Conditional update: only the request that still sees this exact
    # challenge on a PENDING row performs the transition.
    updated = (
        db.query(Account)
        .filter(
            Account.id == account.id,
            Account.status == AccountStatus.PENDING,
            Account.otp_hash == account.otp_hash,
        )
        .update(
            {
                Account.status: AccountStatus.ACTIVE,
                Account.otp_hash: None,
                Account.otp_expires_at: None,
            },
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        raise NotFoundException(detail="No pending account found")
    db.commit()
    db.refresh(account)

    logger.info(f"[VerifyOTP] Account {account.id} activated")
    return account


def resend_otp(db: Session, account_id: int, settings: Settings) -> Tuple[Account, str]:
    """Replace the outstanding challenge of a PENDING account with a new one."""
    account = _get_pending_account(db, account_id)
    code = otp_service.issue_otp(db, account, settings)
    return account, code


def authenticate_account(db: Session, email: str, password: str, settings: Settings) -> Account:
    """
    Check credentials and verification status.

    Unknown email and wrong password raise the same error; a PENDING account
    with correct credentials raises NotVerifiedException.
    """
    account = get_account_by_email(db, email)
    if account is None:
        verify_password(password, dummy_password_hash(settings.BCRYPT_ROUNDS))
        raise InvalidCredentialsException()

    if not verify_password(password, account.password_hash):
        raise InvalidCredentialsException()

    if account.status != AccountStatus.ACTIVE:
        raise NotVerifiedException(
            detail="Account is not verified. Enter the code sent to you to activate it."
        )

    account.last_login = datetime.now(timezone.utc)
    db.commit()
    return account


def login(db: Session, email: str, password: str, settings: Settings) -> TokenPair:
    account = authenticate_account(db, email, password, settings)
    return TokenPair(
        access_token=create_access_token(account, settings),
        refresh_token=create_refresh_token(account, settings),
    )


def refresh_access_token(db: Session, refresh_token: str, settings: Settings) -> str:
    """Mint a new access token carrying the account's current role."""
    try:
        claims = decode_token(refresh_token, REFRESH, settings)
    except TokenExpiredError:
        raise UnauthorizedException(detail="Refresh token expired")
    except InvalidTokenError:
        raise UnauthorizedException(detail="Invalid refresh token")

    account = get_account_by_id(db, claims.id)
    if account is None or not account.is_active:
        raise UnauthorizedException(detail="Account is not available")

    return create_access_token(account, settings)
