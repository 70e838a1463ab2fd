from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from auth import get_password_hash
from database import Base, engine, get_db
from event_settings import ensure_domain_settings, ensure_global_settings
from models import StaffRole, StaffUser, SystemConfig

logger = logging.getLogger(__name__)

MIGRATION_MARKER_KEY = "migration:backend_bootstrap:v1"
DEFAULT_ADMIN_USERNAME = os.environ.get("DEFAULT_ADMIN_USERNAME", "admin")
DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD")


def has_bootstrap_marker() -> bool:
    db = next(get_db())
    try:
        marker = db.query(SystemConfig).filter(SystemConfig.key == MIGRATION_MARKER_KEY).first()
        return marker is not None
    finally:
        db.close()


def set_bootstrap_marker() -> None:
    db = next(get_db())
    try:
        marker = db.query(SystemConfig).filter(SystemConfig.key == MIGRATION_MARKER_KEY).first()
        value = datetime.now(timezone.utc).isoformat()
        if marker:
            marker.value = value
        else:
            db.add(SystemConfig(key=MIGRATION_MARKER_KEY, value=value))
        db.commit()
    finally:
        db.close()


def clear_bootstrap_marker() -> bool:
    db = next(get_db())
    try:
        marker = db.query(SystemConfig).filter(SystemConfig.key == MIGRATION_MARKER_KEY).first()
        if not marker:
            return False
        db.delete(marker)
        db.commit()
        return True
    finally:
        db.close()


def ensure_default_admin(db: Session) -> bool:
    if not DEFAULT_ADMIN_PASSWORD:
        return False
    existing = db.query(StaffUser).filter(StaffUser.username == DEFAULT_ADMIN_USERNAME).first()
    if existing:
        return False
    db.add(StaffUser(
        username=DEFAULT_ADMIN_USERNAME,
        display_name="Administrator",
        role=StaffRole.ADMIN,
        hashed_password=get_password_hash(DEFAULT_ADMIN_PASSWORD),
        is_active=True,
    ))
    db.commit()
    logger.info("Default admin account `%s` created.", DEFAULT_ADMIN_USERNAME)
    return True


def seed_defaults(db: Session) -> None:
    created = ensure_domain_settings(db)
    if created:
        logger.info("Seeded %s domain settings.", created)
    ensure_global_settings(db)
    ensure_default_admin(db)


def run_bootstrap_migrations() -> None:
    Base.metadata.create_all(bind=engine)

    db = next(get_db())
    try:
        seed_defaults(db)
    finally:
        db.close()
