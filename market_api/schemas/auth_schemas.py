"""Authentication and account schemas

Request bodies accept the camelCase names used by the public API; response
models serialize back to the same names.
"""
import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from market_api.models.account import AccountRole, AccountStatus

PHONE_PATTERN = re.compile(r"^\+?\d{9,15}$")
MIN_PASSWORD_LENGTH = 6
MIN_BIRTH_YEAR = 1900


def _normalize_phone(v: str) -> str:
    phone = re.sub(r"[\s\-()]", "", v or "")
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Phone must contain 9 to 15 digits, optionally prefixed with '+'")
    return phone


def _check_year(v: Optional[int]) -> Optional[int]:
    if v is None:
        return v
    current_year = datetime.now().year
    if not MIN_BIRTH_YEAR <= v <= current_year:
        raise ValueError(f"Year must be between {MIN_BIRTH_YEAR} and {current_year}")
    return v


SELF_ASSIGNABLE_ROLES = (AccountRole.USER, AccountRole.SHOP)


class RegisterRequest(BaseModel):
    """Schema for self-registration

    The password is taken exactly as typed; only profile fields are trimmed.
    """
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., alias="fullName", min_length=3, max_length=50)
    email: EmailStr
    phone: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=72)
    role: AccountRole = AccountRole.USER
    region_id: int = Field(..., alias="regionID")
    image: Optional[str] = Field(None, max_length=500)
    year: Optional[int] = None

    @field_validator("full_name", "email", "image", mode="before")
    @classmethod
    def strip_profile_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _normalize_phone(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: AccountRole) -> AccountRole:
        """ADMIN and SUPER_ADMIN are only ever granted by an existing administrator."""
        if v not in SELF_ASSIGNABLE_ROLES:
            raise ValueError(f"{v.value} role cannot be self-assigned")
        return v

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: Optional[int]) -> Optional[int]:
        return _check_year(v)


class RegisterResponse(BaseModel):
    message: str
    user_id: int = Field(..., serialization_alias="userId")


class MessageResponse(BaseModel):
    message: str


class OTPVerifyRequest(BaseModel):
    """Schema for submitting the one-time code"""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    user_id: int = Field(..., alias="userId")
    otp: str = Field(..., min_length=1, max_length=12)


class ResendOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")


class LoginRequest(BaseModel):
    """Schema for login request"""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class TokenPair(BaseModel):
    access_token: str = Field(..., serialization_alias="accessToken")
    refresh_token: str = Field(..., serialization_alias="refreshToken")


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


class AccessTokenResponse(BaseModel):
    access_token: str = Field(..., serialization_alias="accessToken")


class TokenClaims(BaseModel):
    """Claims carried by a verified token"""
    id: int
    role: Optional[AccountRole] = None
    type: str


class AccountResponse(BaseModel):
    """Public account profile — never carries the password hash or OTP state"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str = Field(..., serialization_alias="fullName")
    email: str
    phone: str
    role: AccountRole
    status: AccountStatus
    year: Optional[int] = None
    image: Optional[str] = None
    region_id: Optional[int] = Field(None, serialization_alias="regionID")
    region_name: Optional[str] = Field(None, serialization_alias="region")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")
    last_login: Optional[datetime] = Field(None, serialization_alias="lastLogin")


class AccountUpdate(BaseModel):
    """Partial update applied by administrators"""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="forbid")

    full_name: Optional[str] = Field(None, alias="fullName", min_length=3, max_length=50)
    phone: Optional[str] = None
    role: Optional[AccountRole] = None
    year: Optional[int] = None
    image: Optional[str] = Field(None, max_length=500)
    region_id: Optional[int] = Field(None, alias="regionID")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v) if v is not None else v

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: Optional[int]) -> Optional[int]:
        return _check_year(v)


class AccountUpdateResponse(BaseModel):
    message: str
    user: AccountResponse


class AccountListResponse(BaseModel):
    total: int
    page: int
    total_pages: int = Field(..., serialization_alias="totalPages")
    data: List[AccountResponse]
