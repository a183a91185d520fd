"""Authentication and authorization dependencies

Every protected route chains ``authenticate`` then ``authorize``; nothing is
remembered between requests.
"""
import logging
from typing import Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from market_api.core.config import Settings
from market_api.core.dependencies import get_settings
from market_api.errors.exceptions import ForbiddenException, UnauthorizedException
from market_api.models.account import AccountRole
from market_api.schemas.auth_schemas import TokenClaims
from market_api.services.security import (
    ACCESS,
    InvalidTokenError,
    TokenExpiredError,
    decode_token,
)
from market_api.utils.logger import log_auth_event

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

USER_ADMINS = frozenset({AccountRole.ADMIN, AccountRole.SUPER_ADMIN})
USER_DELETERS = frozenset({AccountRole.ADMIN})
PRODUCT_EDITORS = frozenset({AccountRole.SHOP, AccountRole.ADMIN})


async def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenClaims:
    """Verify the bearer token and expose its claims on ``request.state.claims``"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException(detail="No token provided")

    try:
        claims = decode_token(credentials.credentials, ACCESS, settings)
    except TokenExpiredError:
        raise UnauthorizedException(detail="Token expired")
    except InvalidTokenError:
        raise UnauthorizedException(detail="Invalid token")

    request.state.claims = claims
    return claims


def authorize(*allowed_roles: AccountRole):
    """Dependency factory: pass only when the token's role is in *allowed_roles*"""
    allowed = frozenset(allowed_roles)

    async def role_checker(claims: TokenClaims = Depends(authenticate)) -> TokenClaims:
        if claims.role not in allowed:
            log_auth_event(
                f"Role {claims.role.value if claims.role else '-'} denied",
                user_id=claims.id,
            )
            raise ForbiddenException(
                detail="Insufficient permissions. Required role: "
                + " or ".join(sorted(role.value for role in allowed))
            )
        return claims

    return role_checker


def has_role(claims: TokenClaims, roles: Iterable[AccountRole]) -> bool:
    return claims.role in set(roles)


def ensure_product_owner(claims: TokenClaims, author_id: int) -> None:
    """
    Ownership rule for product mutation: ADMIN may edit any product, a SHOP
    only the products it authored.
    """
    if not has_role(claims, PRODUCT_EDITORS):
        raise ForbiddenException()
    if claims.role == AccountRole.SHOP and claims.id != author_id:
        raise ForbiddenException(detail="You can only modify your own products")


require_user_admin = authorize(*USER_ADMINS)
require_user_deleter = authorize(*USER_DELETERS)
require_product_editor = authorize(*PRODUCT_EDITORS)
