"""Database bootstrapping utilities."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.packages.office.core.constants import (
    DEFAULT_ADMIN_NAME,
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
)
from app.packages.office.core.security import get_password_hash
from app.packages.office.db import session as db_session
from app.packages.office.models import Approval, ApprovalParticipant, Department, DepartmentUser, User  # noqa: F401
from app.packages.office.models.base import Base

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables if they do not exist and seed baseline data."""
    Base.metadata.create_all(bind=db_session.engine)

    session = db_session.SessionLocal()
    try:
        _seed_admin_user(session)
        session.commit()
    except Exception:  # pragma: no cover - initialization failures should surface
        session.rollback()
        logger.exception("Failed to seed default data during database initialization")
        raise
    finally:
        session.close()


def _seed_admin_user(db: Session) -> None:
    """Ensure the default administrator account exists and is active."""
    admin_user = db.query(User).filter(User.username == DEFAULT_ADMIN_USERNAME).first()
    if admin_user is None:
        admin_user = User(
            username=DEFAULT_ADMIN_USERNAME,
            name=DEFAULT_ADMIN_NAME,
            hashed_password=get_password_hash(DEFAULT_ADMIN_PASSWORD),
            is_active=True,
        )
        db.add(admin_user)
        db.flush()
        logger.info("Seeded default administrator account '%s'", DEFAULT_ADMIN_USERNAME)
        return

    if not admin_user.name:
        admin_user.name = DEFAULT_ADMIN_NAME
    admin_user.is_active = True
    db.add(admin_user)
