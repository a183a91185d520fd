"""Application configuration"""
import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing or inconsistent."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


class Settings:
    """
    Process configuration, read from the environment once at startup.

    Keyword overrides win over the environment, which keeps tests free of
    global state.
    """

    def __init__(self, **overrides):
        # Database Configuration
        self.DATABASE_USER = os.getenv("DATABASE_USER", "postgres")
        self.DATABASE_PASSWORD = os.getenv("DATABASE_PASSWORD", "")
        self.DATABASE_HOST = os.getenv("DATABASE_HOST", "localhost")
        self.DATABASE_PORT = os.getenv("DATABASE_PORT", "5432")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "market")
        self._database_url: Optional[str] = os.getenv("DATABASE_URL")

        # JWT Authentication
        self.ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "")
        self.REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "")
        self.ALGORITHM = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 15)
        self.REFRESH_TOKEN_EXPIRE_DAYS = _env_int("REFRESH_TOKEN_EXPIRE_DAYS", 7)

        # Password hashing work factor
        self.BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 10)

        # OTP challenge
        self.OTP_SECRET = os.getenv("OTP_SECRET", "")
        self.OTP_LENGTH = _env_int("OTP_LENGTH", 6)
        self.OTP_EXPIRE_MINUTES = _env_int("OTP_EXPIRE_MINUTES", 10)

        # SMTP / Email configuration
        self.SMTP_HOST = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT = _env_int("SMTP_PORT", 587)
        self.SMTP_USER = os.getenv("SMTP_USER", "")
        self.SMTP_PASS = os.getenv("SMTP_PASS", "")
        self.EMAIL_FROM = os.getenv("EMAIL_FROM", "")

        # Eskiz SMS gateway
        self.ESKIZ_API_URL = os.getenv("ESKIZ_API_URL", "https://notify.eskiz.uz/api")
        self.ESKIZ_EMAIL = os.getenv("ESKIZ_EMAIL", "")
        self.ESKIZ_PASSWORD = os.getenv("ESKIZ_PASSWORD", "")
        self.ESKIZ_SENDER = os.getenv("ESKIZ_SENDER", "4546")

        # Notification delivery policy
        self.NOTIFY_TIMEOUT_SECONDS = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", 10))
        self.NOTIFY_MAX_ATTEMPTS = _env_int("NOTIFY_MAX_ATTEMPTS", 3)
        self.NOTIFY_BACKOFF_SECONDS = float(os.getenv("NOTIFY_BACKOFF_SECONDS", 1.0))

        # Super Admin bootstrap (optional)
        self.SUPER_ADMIN_EMAIL = os.getenv("SUPER_ADMIN_EMAIL", "")
        self.SUPER_ADMIN_PASSWORD = os.getenv("SUPER_ADMIN_PASSWORD", "")
        self.SUPER_ADMIN_PHONE = os.getenv("SUPER_ADMIN_PHONE", "+000000000000")
        self.SUPER_ADMIN_FULL_NAME = os.getenv("SUPER_ADMIN_FULL_NAME", "Super Administrator")
        self.SEED_REGIONS = [
            name.strip() for name in os.getenv("SEED_REGIONS", "").split(",") if name.strip()
        ]

        # Logging Configuration
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FILE = os.getenv("LOG_FILE", "logs/logs.txt")

        # Project Metadata
        self.PROJECT_NAME = "Market API"
        self.PROJECT_VERSION = "1.0.0"
        self.API_V1_STR = "/api/v1"

        for key, value in overrides.items():
            if key == "DATABASE_URL":
                self._database_url = value
                continue
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def DATABASE_URL(self) -> str:
        """Explicit DATABASE_URL, or a PostgreSQL URL built from its parts"""
        if self._database_url:
            return self._database_url
        return (
            f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @property
    def email_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS and self.EMAIL_FROM)

    @property
    def sms_configured(self) -> bool:
        return bool(self.ESKIZ_EMAIL and self.ESKIZ_PASSWORD)

    def validate(self) -> "Settings":
        """Fail fast on absent secrets instead of falling back to defaults."""
        problems = []
        for name in ("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET", "OTP_SECRET"):
            if not getattr(self, name):
                problems.append(f"{name} is required")
        if (
            self.ACCESS_TOKEN_SECRET
            and self.ACCESS_TOKEN_SECRET == self.REFRESH_TOKEN_SECRET
        ):
            problems.append("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        if not 4 <= self.BCRYPT_ROUNDS <= 31:
            problems.append("BCRYPT_ROUNDS must be between 4 and 31")
        if self.OTP_LENGTH < 4:
            problems.append("OTP_LENGTH must be at least 4")
        if self.OTP_EXPIRE_MINUTES <= 0:
            problems.append("OTP_EXPIRE_MINUTES must be positive")
        if self.NOTIFY_MAX_ATTEMPTS < 1:
            problems.append("NOTIFY_MAX_ATTEMPTS must be at least 1")
        if bool(self.SUPER_ADMIN_EMAIL) != bool(self.SUPER_ADMIN_PASSWORD):
            problems.append("SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD must be set together")
        if problems:
            raise ConfigurationError(problems)
        return self
