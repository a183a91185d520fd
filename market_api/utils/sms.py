"""SMS utility — sends messages through the Eskiz gateway."""
from __future__ import annotations

import logging

import httpx

from market_api.core.config import Settings

logger = logging.getLogger(__name__)


def _eskiz_token(client: httpx.Client, settings: Settings) -> str:
    """Exchange the account credentials for a short-lived bearer token."""
    resp = client.post(
        "/auth/login",
        data={"email": settings.ESKIZ_EMAIL, "password": settings.ESKIZ_PASSWORD},
    )
    resp.raise_for_status()
    token = (resp.json().get("data") or {}).get("token")
    if not token:
        raise ValueError("Eskiz login response carried no token")
    return token


def send_sms(settings: Settings, phone: str, message: str) -> None:
    """
    Send a single SMS.

    Raises httpx.HTTPError or ValueError on failure.
    """
    mobile_phone = phone.lstrip("+")
    with httpx.Client(
        base_url=settings.ESKIZ_API_URL.rstrip("/"),
        timeout=settings.NOTIFY_TIMEOUT_SECONDS,
    ) as client:
        token = _eskiz_token(client, settings)
        resp = client.post(
            "/message/sms/send",
            headers={"Authorization": f"Bearer {token}"},
            data={
                "mobile_phone": mobile_phone,
                "message": message,
                "from": settings.ESKIZ_SENDER,
            },
        )
        resp.raise_for_status()

    logger.info(f"[SMS] Sent message → {mobile_phone}")


def send_otp_sms(settings: Settings, phone: str, otp: str) -> None:
    send_sms(
        settings,
        phone,
        f"{settings.PROJECT_NAME}: your verification code is {otp}. "
        f"It expires in {settings.OTP_EXPIRE_MINUTES} minutes.",
    )
