"""Initialize database tables and create initial data if needed"""
import logging

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from market_api.core.config import Settings
from market_api.db.base import Base
from market_api.models.account import Account, AccountRole, AccountStatus
from market_api.models.region import Region
from market_api.services.security import get_password_hash

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create all database tables"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def create_initial_data(session_factory: sessionmaker, settings: Settings) -> None:
    """Seed regions and the super admin account from configuration"""
    db = session_factory()
    try:
        if settings.SEED_REGIONS and db.query(Region).count() == 0:
            db.add_all([Region(name=name) for name in settings.SEED_REGIONS])
            db.commit()
            logger.info(f"Seeded {len(settings.SEED_REGIONS)} regions")

        if settings.SUPER_ADMIN_EMAIL:
            email = settings.SUPER_ADMIN_EMAIL.lower()
            if db.query(Account).filter(Account.email == email).first() is None:
                db.add(
                    Account(
                        full_name=settings.SUPER_ADMIN_FULL_NAME,
                        email=email,
                        phone=settings.SUPER_ADMIN_PHONE,
                        password_hash=get_password_hash(
                            settings.SUPER_ADMIN_PASSWORD, settings.BCRYPT_ROUNDS
                        ),
                        role=AccountRole.SUPER_ADMIN,
                        status=AccountStatus.ACTIVE,
                    )
                )
                db.commit()
                logger.warning(f"Super admin created: {email}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
