"""Password hashing and JWT issuance/verification"""
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from market_api.core.config import Settings
from market_api.models.account import Account
from market_api.schemas.auth_schemas import TokenClaims

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10

ACCESS = "access"
REFRESH = "refresh"


class InvalidTokenError(Exception):
    """Token signature, structure or type is not acceptable"""


class TokenExpiredError(InvalidTokenError):
    """Token was valid but its expiry has passed"""


@lru_cache(maxsize=8)
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=rounds
    )


def get_password_hash(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a password using salted bcrypt"""
    return _crypt_context(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a hashed password; never raises"""
    if not hashed_password or plain_password is None:
        return False
    try:
        return _crypt_context(DEFAULT_BCRYPT_ROUNDS).verify(plain_password, hashed_password)
    except (ValueError, TypeError) as exc:
        logger.warning(f"Password verification against malformed hash: {exc}")
        return False


@lru_cache(maxsize=8)
def dummy_password_hash(rounds: int) -> str:
    """Hash compared against when an email is unknown, to even out login timing"""
    return get_password_hash("market-api-timing-equalizer", rounds)


def _encode(claims: dict, secret: str, algorithm: str, expires_delta: timedelta) -> str:
    to_encode = claims.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def create_access_token(
    account: Account,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a short-lived access token carrying the account id and role
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    role = account.role.value if hasattr(account.role, "value") else str(account.role)
    return _encode(
        {"id": account.id, "role": role, "type": ACCESS},
        settings.ACCESS_TOKEN_SECRET,
        settings.ALGORITHM,
        expires_delta,
    )


def create_refresh_token(
    account: Account,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a long-lived refresh token carrying only the account id
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(
        {"id": account.id, "type": REFRESH},
        settings.REFRESH_TOKEN_SECRET,
        settings.ALGORITHM,
        expires_delta,
    )


def decode_token(token: str, kind: str, settings: Settings) -> TokenClaims:
    """
    Verify a token of the given kind and return its claims.

    Raises TokenExpiredError once the expiry has passed and InvalidTokenError
    for anything else that does not check out.
    """
    if kind == ACCESS:
        secret = settings.ACCESS_TOKEN_SECRET
    elif kind == REFRESH:
        secret = settings.REFRESH_TOKEN_SECRET
    else:
        raise ValueError(f"Unknown token kind: {kind}")

    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired") from exc
    except JWTError as exc:
        raise InvalidTokenError("Invalid token") from exc

    if payload.get("type") != kind:
        raise InvalidTokenError("Invalid token type")
    if kind == ACCESS and not payload.get("role"):
        raise InvalidTokenError("Token carries no role")

    try:
        return TokenClaims(id=payload.get("id"), role=payload.get("role"), type=kind)
    except ValidationError as exc:
        raise InvalidTokenError("Invalid token claims") from exc
