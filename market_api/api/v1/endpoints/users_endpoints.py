"""Account administration endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from market_api.core.dependencies import get_db
from market_api.middleware.auth import authenticate, require_user_admin, require_user_deleter
from market_api.models.account import AccountRole
from market_api.schemas.auth_schemas import (
    AccountListResponse,
    AccountResponse,
    AccountUpdate,
    AccountUpdateResponse,
    MessageResponse,
    TokenClaims,
)
from market_api.services import account_service
from market_api.utils.logger import log_auth_event

router = APIRouter()


@router.get("", response_model=AccountListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = "createdAt",
    order: str = "DESC",
    role: Optional[AccountRole] = None,
    search: Optional[str] = Query(None, max_length=100),
    claims: TokenClaims = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    """
    **Role:** ADMIN or SUPER_ADMIN.

    | Param  | Default   | Description |
    |--------|-----------|-------------|
    | page   | 1         | Page number |
    | limit  | 10        | Page size (max 100) |
    | sort   | createdAt | id, createdAt, fullName, email, year |
    | order  | DESC      | ASC or DESC |
    | role   | –         | Only accounts with this role |
    | search | –         | Substring of full name, email or phone |
    """
    total, accounts = account_service.list_accounts(
        db, page=page, limit=limit, sort=sort, order=order, role=role, search=search
    )
    return AccountListResponse(
        total=total,
        page=page,
        total_pages=account_service.total_pages(total, limit),
        data=[AccountResponse.model_validate(a) for a in accounts],
    )


@router.get("/{user_id}", response_model=AccountResponse)
async def get_user(
    user_id: int,
    claims: TokenClaims = Depends(authenticate),
    db: Session = Depends(get_db),
):
    """**Role:** Any authenticated account."""
    return account_service.get_account_or_404(db, user_id)


@router.patch("/{user_id}", response_model=AccountUpdateResponse)
async def update_user(
    user_id: int,
    changes: AccountUpdate,
    claims: TokenClaims = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    """
    **Role:** ADMIN or SUPER_ADMIN. Only a SUPER_ADMIN may grant SUPER_ADMIN
    or edit an account that already holds it.

    Email and password are not editable here.
    """
    account = account_service.update_account(db, user_id, changes, actor_role=claims.role)
    log_auth_event(f"Updated account {account.id}", user_id=claims.id)
    return AccountUpdateResponse(
        message="User updated",
        user=AccountResponse.model_validate(account),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    claims: TokenClaims = Depends(require_user_deleter),
    db: Session = Depends(get_db),
):
    """**Role:** ADMIN only."""
    account_service.delete_account(db, user_id)
    log_auth_event(f"Deleted account {user_id}", user_id=claims.id)
    return MessageResponse(message="User deleted")
