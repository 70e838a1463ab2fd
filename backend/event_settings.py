from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import DomainSetting, SystemConfig, Team, TeamStatus

LEADERBOARD_PAUSED_KEY = "leaderboard_paused"
CERTIFICATES_RELEASED_KEY = "certificates_released"

DEFAULT_FLAGS = {
    LEADERBOARD_PAUSED_KEY: False,
    CERTIFICATES_RELEASED_KEY: False,
}

DEFAULT_DOMAINS = [
    ("GenAI/AgenticAI in Agriculture", 35),
    ("GenAI/AgenticAI in Education", 35),
    ("Wildcard - Environment", 15),
    ("Wildcard - Food Production", 15),
]

OCCUPYING_STATUSES = (TeamStatus.PENDING, TeamStatus.APPROVED)


def _parse_flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def get_flag(db: Session, key: str) -> bool:
    row = db.query(SystemConfig).filter(SystemConfig.key == key).first()
    if not row:
        return DEFAULT_FLAGS.get(key, False)
    return _parse_flag(row.value)


def set_flag(db: Session, key: str, enabled: bool) -> None:
    row = db.query(SystemConfig).filter(SystemConfig.key == key).first()
    value = "true" if enabled else "false"
    if row:
        row.value = value
    else:
        db.add(SystemConfig(key=key, value=value))


def list_domain_settings(db: Session) -> List[DomainSetting]:
    return db.query(DomainSetting).order_by(DomainSetting.position.asc(), DomainSetting.id.asc()).all()


def get_domain_setting(db: Session, domain: str) -> Optional[DomainSetting]:
    return db.query(DomainSetting).filter(DomainSetting.domain == domain).first()


def occupied_slot_counts(db: Session) -> Dict[str, int]:
    rows = (
        db.query(Team.domain, func.count(Team.id))
        .filter(Team.status.in_(OCCUPYING_STATUSES))
        .group_by(Team.domain)
        .all()
    )
    return {domain: int(count) for domain, count in rows}


def occupied_slots(db: Session, domain: str) -> int:
    return (
        db.query(func.count(Team.id))
        .filter(Team.domain == domain, Team.status.in_(OCCUPYING_STATUSES))
        .scalar()
        or 0
    )


def slots_left(setting: DomainSetting, occupied: int) -> int:
    return max(0, int(setting.max_slots or 0) - occupied)


def ensure_domain_settings(db: Session) -> int:
    """Insert the default domains that are missing; existing rows are kept."""
    created = 0
    for position, (domain, max_slots) in enumerate(DEFAULT_DOMAINS):
        if get_domain_setting(db, domain):
            continue
        db.add(DomainSetting(domain=domain, max_slots=max_slots, paused_registrations=False, position=position))
        created += 1
    if created:
        db.commit()
    return created


def ensure_global_settings(db: Session) -> None:
    changed = False
    for key, default in DEFAULT_FLAGS.items():
        if db.query(SystemConfig).filter(SystemConfig.key == key).first():
            continue
        db.add(SystemConfig(key=key, value="true" if default else "false"))
        changed = True
    if changed:
        db.commit()
