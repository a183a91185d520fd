"""Email utility — sends transactional emails via SMTP (TLS)."""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from market_api.core.config import Settings

logger = logging.getLogger(__name__)


def _build_smtp_connection(settings: Settings) -> smtplib.SMTP:
    """Open an authenticated SMTP TLS connection."""
    conn = smtplib.SMTP(
        settings.SMTP_HOST,
        settings.SMTP_PORT,
        timeout=settings.NOTIFY_TIMEOUT_SECONDS,
    )
    conn.ehlo()
    conn.starttls()
    conn.ehlo()
    conn.login(settings.SMTP_USER, settings.SMTP_PASS)
    return conn


def send_email(
    settings: Settings,
    to: str,
    subject: str,
    html_body: str,
    plain_body: str = "",
) -> None:
    """
    Send a transactional email.

    Raises smtplib.SMTPException or OSError on failure; retrying and
    swallowing is left to the caller.
    """
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.PROJECT_NAME} <{settings.EMAIL_FROM}>"
    msg["To"] = to

    if plain_body:
        msg.attach(MIMEText(plain_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    with _build_smtp_connection(settings) as conn:
        conn.sendmail(settings.EMAIL_FROM, [to], msg.as_string())

    logger.info(f"[Email] Sent '{subject}' → {to}")


def send_otp_email(settings: Settings, to: str, otp: str, full_name: str = "") -> None:
    """Send a one-time code for account verification."""
    greeting = f"Hi {full_name}," if full_name else "Hello,"
    minutes = settings.OTP_EXPIRE_MINUTES
    subject = f"Your {settings.PROJECT_NAME} verification code"
    html_body = f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: Arial, sans-serif; background: #f4f4f4; margin: 0; padding: 0; }}
    .container {{ max-width: 500px; margin: 40px auto; background: #fff;
                  border-radius: 8px; padding: 32px; box-shadow: 0 2px 8px rgba(0,0,0,.1); }}
    .otp {{ font-size: 40px; font-weight: 800; letter-spacing: 10px; color: #047857;
            background: #ecfdf5; padding: 16px 24px; border-radius: 8px;
            display: inline-block; margin: 16px 0; }}
  </style>
</head>
<body>
  <div class="container">
    <p>{greeting}</p>
    <p>Use the code below to activate your account.
       It expires in <strong>{minutes} minutes</strong>.</p>
    <div class="otp">{otp}</div>
    <p>If you did not register, please ignore this email.</p>
  </div>
</body>
</html>
"""
    plain_body = f"{greeting}\n\nYour verification code is: {otp}\n\nExpires in {minutes} minutes."
    send_email(settings, to, subject, html_body, plain_body)
