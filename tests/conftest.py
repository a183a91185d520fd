from datetime import timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from market_api.core.config import Settings
from market_api.db.init_db import init_db
from market_api.db.session import build_engine, build_session_factory
from market_api.main import create_app
from market_api.models.account import Account, AccountRole, AccountStatus
from market_api.models.region import Region
from market_api.services import notification_service
from market_api.services.security import create_access_token, get_password_hash

TEST_PASSWORD = "12345678"


@pytest.fixture
def settings(tmp_path):
    """Isolated settings: SQLite file, fast bcrypt, no notification channels."""
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'market.db'}",
        ACCESS_TOKEN_SECRET="test-access-secret-0123456789",
        REFRESH_TOKEN_SECRET="test-refresh-secret-9876543210",
        OTP_SECRET="test-otp-secret",
        BCRYPT_ROUNDS=4,
        LOG_FILE=str(tmp_path / "logs" / "logs.txt"),
        SMTP_HOST="",
        SMTP_USER="",
        SMTP_PASS="",
        EMAIL_FROM="",
        ESKIZ_EMAIL="",
        ESKIZ_PASSWORD="",
        SEED_REGIONS=["Toshkent", "Samarqand"],
        SUPER_ADMIN_EMAIL="",
        SUPER_ADMIN_PASSWORD="",
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def region(db):
    existing = db.query(Region).filter(Region.name == "Toshkent").first()
    if existing:
        return existing
    region = Region(name="Toshkent")
    db.add(region)
    db.commit()
    db.refresh(region)
    return region


@pytest.fixture
def sent_codes(monkeypatch):
    """Replace real delivery; every dispatched code is recorded here."""
    sent = []

    def fake_dispatch(settings, email, phone, full_name, code, sleep=None):
        sent.append({"email": email, "phone": phone, "full_name": full_name, "code": code})
        return {}

    monkeypatch.setattr(notification_service, "dispatch_otp", fake_dispatch)
    return sent


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app, sent_codes):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_db(client, app):
    """Session bound to the application's own engine."""
    session = app.state.session_factory()
    yield session
    session.close()


def make_account(
    db,
    settings: Settings,
    email: str,
    phone: str,
    role: AccountRole = AccountRole.USER,
    status: AccountStatus = AccountStatus.ACTIVE,
    full_name: str = "Test Account",
    region_id: Optional[int] = None,
) -> Account:
    account = Account(
        full_name=full_name,
        email=email,
        phone=phone,
        password_hash=get_password_hash(TEST_PASSWORD, settings.BCRYPT_ROUNDS),
        role=role,
        status=status,
        region_id=region_id,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def bearer(account: Account, settings: Settings, expires_delta: Optional[timedelta] = None) -> dict:
    token = create_access_token(account, settings, expires_delta=expires_delta)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def account_factory(settings):
    def factory(db, email, phone, **kwargs):
        return make_account(db, settings, email, phone, **kwargs)
    return factory


@pytest.fixture
def auth_header(settings):
    def header(account, expires_delta=None):
        return bearer(account, settings, expires_delta)
    return header
