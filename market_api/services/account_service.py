"""Account listing and administrative edits"""
import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from market_api.errors.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from market_api.models.account import Account, AccountRole
from market_api.schemas.auth_schemas import AccountUpdate
from market_api.services.auth_service import get_account_by_id, get_region_by_id

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "id": Account.id,
    "createdAt": Account.created_at,
    "fullName": Account.full_name,
    "email": Account.email,
    "year": Account.year,
}

LIKE_ESCAPE = "\\"


def _escape_like(term: str) -> str:
    """Treat ``%`` and ``_`` in a search term as literal characters"""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def list_accounts(
    db: Session,
    page: int = 1,
    limit: int = 10,
    sort: str = "createdAt",
    order: str = "DESC",
    role: Optional[AccountRole] = None,
    search: Optional[str] = None,
) -> Tuple[int, List[Account]]:
    """
    Filtered, sorted page of accounts.

    ``search`` matches full name, email or phone as a substring.
    """
    column = SORTABLE_FIELDS.get(sort)
    if column is None:
        raise ValidationException(
            detail=f"sort must be one of: {', '.join(sorted(SORTABLE_FIELDS))}"
        )
    if order.upper() not in ("ASC", "DESC"):
        raise ValidationException(detail="order must be ASC or DESC")

    query = db.query(Account)
    if role is not None:
        query = query.filter(Account.role == role)
    if search:
        pattern = f"%{_escape_like(search)}%"
        query = query.filter(
            or_(
                Account.full_name.ilike(pattern, escape=LIKE_ESCAPE),
                Account.email.ilike(pattern, escape=LIKE_ESCAPE),
                Account.phone.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    total = query.count()
    ordering = column.asc() if order.upper() == "ASC" else column.desc()
    accounts = (
        query.order_by(ordering, Account.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return total, accounts


def get_account_or_404(db: Session, account_id: int) -> Account:
    account = get_account_by_id(db, account_id)
    if account is None:
        raise NotFoundException(detail="User not found")
    return account


NON_NULLABLE_UPDATES = ("full_name", "phone", "role")


def update_account(
    db: Session,
    account_id: int,
    changes: AccountUpdate,
    actor_role: AccountRole,
) -> Account:
    """Apply the fields present in *changes*; credentials are never edited here."""
    account = get_account_or_404(db, account_id)
    values = changes.model_dump(exclude_unset=True)

    for field in NON_NULLABLE_UPDATES:
        if field in values and values[field] is None:
            raise ValidationException(detail=f"{field} cannot be null")

    if actor_role != AccountRole.SUPER_ADMIN:
        if account.role == AccountRole.SUPER_ADMIN:
            raise ForbiddenException(detail="Only a SUPER_ADMIN can modify a SUPER_ADMIN account")
        if values.get("role") == AccountRole.SUPER_ADMIN:
            raise ForbiddenException(detail="Only a SUPER_ADMIN can grant the SUPER_ADMIN role")

    if values.get("region_id") is not None:
        if get_region_by_id(db, values["region_id"]) is None:
            raise NotFoundException(detail="Region not found")

    for field, value in values.items():
        setattr(account, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictException(detail="Phone already registered")
    db.refresh(account)

    logger.info(f"[Accounts] Account {account.id} updated: {', '.join(sorted(values))}")
    return account


def delete_account(db: Session, account_id: int) -> None:
    account = get_account_or_404(db, account_id)
    db.delete(account)
    db.commit()
    logger.info(f"[Accounts] Account {account_id} deleted")
