"""Error handling module"""
from market_api.errors.exceptions import (
    BadRequestException,
    ValidationException,
    InvalidCredentialsException,
    InvalidOTPException,
    UnauthorizedException,
    ForbiddenException,
    NotVerifiedException,
    NotFoundException,
    ConflictException,
    InternalServerException,
)

__all__ = [
    "BadRequestException",
    "ValidationException",
    "InvalidCredentialsException",
    "InvalidOTPException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotVerifiedException",
    "NotFoundException",
    "ConflictException",
    "InternalServerException",
]
