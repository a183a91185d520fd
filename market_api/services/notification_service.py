"""Best-effort delivery of verification codes over email and SMS.

Dispatch runs after the HTTP response (FastAPI background task). Each channel
is retried with exponential backoff; a channel that keeps failing is logged
and given up on, never surfaced to the caller.
"""
import logging
import smtplib
import time
from typing import Callable, Dict, Optional

import httpx

from market_api.core.config import Settings
from market_api.utils import email as email_utils
from market_api.utils import sms as sms_utils

logger = logging.getLogger(__name__)

DELIVERY_ERRORS = (smtplib.SMTPException, OSError, httpx.HTTPError, ValueError)


def deliver_with_retry(
    channel: str,
    send: Callable[[], None],
    max_attempts: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Call *send* until it succeeds or *max_attempts* is used up."""
    delay = backoff_seconds
    for attempt in range(1, max_attempts + 1):
        try:
            send()
            return True
        except DELIVERY_ERRORS as exc:
            logger.warning(
                f"[Notify] {channel} attempt {attempt}/{max_attempts} failed: {exc}"
            )
            if attempt < max_attempts:
                sleep(delay)
                delay *= 2
    logger.error(f"[Notify] {channel} delivery abandoned after {max_attempts} attempts")
    return False


def dispatch_otp(
    settings: Settings,
    email: str,
    phone: Optional[str],
    full_name: str,
    code: str,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, bool]:
    """
    Send *code* to every configured channel.

    Returns a per-channel dispatch record, e.g. ``{"email": True, "sms": False}``.
    Unconfigured channels are skipped and do not appear in the record.
    """
    record: Dict[str, bool] = {}

    if settings.email_configured:
        record["email"] = deliver_with_retry(
            "email",
            lambda: email_utils.send_otp_email(settings, email, code, full_name),
            settings.NOTIFY_MAX_ATTEMPTS,
            settings.NOTIFY_BACKOFF_SECONDS,
            sleep,
        )
    else:
        logger.warning("[Notify] Email channel not configured; skipping")

    if phone and settings.sms_configured:
        record["sms"] = deliver_with_retry(
            "sms",
            lambda: sms_utils.send_otp_sms(settings, phone, code),
            settings.NOTIFY_MAX_ATTEMPTS,
            settings.NOTIFY_BACKOFF_SECONDS,
            sleep,
        )
    elif phone:
        logger.warning("[Notify] SMS channel not configured; skipping")

    if record and not any(record.values()):
        logger.error(f"[Notify] Verification code could not be delivered to {email}")
    return record
