import re
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Team

DOMAIN_NAME_RE = re.compile(r"in\s+([A-Za-z]+)")
QR_URL_RE = re.compile(r"/qr/([A-Za-z0-9]+)/?$", re.IGNORECASE)
BARE_CODE_RE = re.compile(r"^[A-Za-z]{4}\d{3}$")

WILDCARD_DOMAINS = {
    "Wildcard - Environment": "Environment",
    "Wildcard - Food Production": "Food Production",
}

DOMAIN_PREFIXES = {
    "Agriculture": "AG",
    "Education": "ED",
    "Environment": "WE",
    "Food Production": "WF",
}


def extract_domain_name(full_domain: str) -> str:
    value = str(full_domain or "").strip()
    match = DOMAIN_NAME_RE.search(value)
    if match:
        return match.group(1)
    return WILDCARD_DOMAINS.get(value, value)


def domain_prefix(full_domain: str) -> str:
    name = extract_domain_name(full_domain)
    if name in DOMAIN_PREFIXES:
        return DOMAIN_PREFIXES[name]
    return name[:2].upper().ljust(2, "X")


def team_prefix(team_name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9]", "", str(team_name or ""))
    return cleaned[:2].upper().ljust(2, "X")


def normalize_team_code(value: Optional[str]) -> str:
    return str(value or "").strip().upper()


def _code_taken(db: Session, code: str) -> bool:
    return db.query(Team.id).filter(func.upper(Team.team_code) == code).first() is not None


def generate_team_code(db: Session, domain: str, team_name: str) -> str:
    """Build ``<domain prefix><team prefix><NNN>`` for a newly approved team.

    ``NNN`` starts at one past the number of teams registered in the domain
    and is bumped until the code is unused.
    """
    prefix = f"{domain_prefix(domain)}{team_prefix(team_name)}"
    number = db.query(func.count(Team.id)).filter(Team.domain == domain).scalar() or 0
    number += 1
    code = f"{prefix}{number:03d}"
    while _code_taken(db, code):
        number += 1
        code = f"{prefix}{number:03d}"
    return code


def parse_qr_payload(data: Optional[str]) -> Optional[str]:
    value = str(data or "").strip()
    if not value:
        return None
    match = QR_URL_RE.search(value)
    if match:
        return match.group(1).upper()
    if BARE_CODE_RE.fullmatch(value):
        return value.upper()
    return None
