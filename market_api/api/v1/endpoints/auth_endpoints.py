"""Authentication endpoints — register, verify, login, refresh"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from market_api.core.config import Settings
from market_api.core.dependencies import get_db, get_settings
from market_api.errors.exceptions import InvalidCredentialsException, NotVerifiedException
from market_api.middleware.auth import authenticate
from market_api.schemas.auth_schemas import (
    AccessTokenResponse,
    AccountResponse,
    LoginRequest,
    MessageResponse,
    OTPVerifyRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResendOTPRequest,
    TokenClaims,
    TokenPair,
)
from market_api.services import auth_service, notification_service
from market_api.services.account_service import get_account_or_404
from market_api.utils.logger import log_auth_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    ## Register a new account (Step 1 of 2)

    **Role:** Public — no authentication required.

    Creates the account in `PENDING` status and sends a one-time code by
    email and SMS. Delivery happens after the response and never fails the
    request; use **POST /auth/resend-otp** if the code does not arrive.

    ### Responses
    - 201 → `{ "message": "...", "userId": <id> }`
    - 400 → first invalid field
    - 404 → region not found
    - 409 → email or phone already registered
    """
    account, code = auth_service.register_account(db, user_data, settings)

    background_tasks.add_task(
        notification_service.dispatch_otp,
        settings,
        account.email,
        account.phone,
        account.full_name,
        code,
    )
    log_auth_event("Registered, awaiting OTP", user_id=account.id, user_email=account.email, level=logging.INFO)

    return RegisterResponse(
        message="Account created. Enter the verification code we sent you to activate it.",
        user_id=account.id,
    )


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_otp(
    body: OTPVerifyRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    ## Verify the one-time code (Step 2 of 2)

    **Role:** Public — no authentication required.

    - 200 → account is now `ACTIVE`
    - 400 → wrong or expired code (a wrong code can be retried until expiry)
    - 404 → no pending account with this id
    """
    account = auth_service.verify_account_otp(db, body.user_id, body.otp, settings)
    log_auth_event("Account verified", user_id=account.id, user_email=account.email, level=logging.INFO)
    return MessageResponse(message="Account verified successfully")


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(
    body: ResendOTPRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    ## Resend the verification code

    **Role:** Public — no authentication required.

    Issues a new code and invalidates the previous one. 404 once the account
    is no longer pending.
    """
    account, code = auth_service.resend_otp(db, body.user_id, settings)
    background_tasks.add_task(
        notification_service.dispatch_otp,
        settings,
        account.email,
        account.phone,
        account.full_name,
        code,
    )
    return MessageResponse(message="A new verification code has been sent.")


@router.post("/login", response_model=TokenPair)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    ## Login with email and password

    **Role:** Public — no authentication required.

    - 200 → `{ "accessToken": "...", "refreshToken": "..." }`
    - 400 → invalid email or password (same message for both)
    - 403 → account not verified yet

    Attach the access token to protected calls as
    `Authorization: Bearer <accessToken>`.
    """
    try:
        return auth_service.login(db, credentials.email, credentials.password, settings)
    except (InvalidCredentialsException, NotVerifiedException) as exc:
        log_auth_event(f"Login rejected: {exc.detail}", user_email=credentials.email)
        raise


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    body: RefreshRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    ## Exchange a refresh token for a new access token

    **Role:** Public — the refresh token is the credential.
    """
    access_token = auth_service.refresh_access_token(db, body.refresh_token, settings)
    return AccessTokenResponse(access_token=access_token)


@router.get("/me", response_model=AccountResponse)
async def get_current_account(
    claims: TokenClaims = Depends(authenticate),
    db: Session = Depends(get_db),
):
    """
    ## Profile of the token's owner

    **Role:** Any authenticated account.
    """
    return get_account_or_404(db, claims.id)
