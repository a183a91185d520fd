"""Pydantic schemas for request/response validation"""
from market_api.schemas.auth_schemas import (
    RegisterRequest,
    RegisterResponse,
    MessageResponse,
    OTPVerifyRequest,
    ResendOTPRequest,
    LoginRequest,
    TokenPair,
    RefreshRequest,
    AccessTokenResponse,
    TokenClaims,
    AccountResponse,
    AccountUpdate,
    AccountUpdateResponse,
    AccountListResponse,
)

__all__ = [
    "RegisterRequest",
    "RegisterResponse",
    "MessageResponse",
    "OTPVerifyRequest",
    "ResendOTPRequest",
    "LoginRequest",
    "TokenPair",
    "RefreshRequest",
    "AccessTokenResponse",
    "TokenClaims",
    "AccountResponse",
    "AccountUpdate",
    "AccountUpdateResponse",
    "AccountListResponse",
]
