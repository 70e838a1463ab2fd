#!/usr/bin/env python3
"""Create or reset the admin, judge and volunteer staff accounts.

Passwords come from ``--password`` or the ``STAFF_SEED_PASSWORD`` environment
variable; existing accounts get their password reset and are re-activated.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from auth import get_password_hash
from database import Base, SessionLocal, engine
from models import StaffRole, StaffUser

DEFAULT_ACCOUNTS = [
    ("admin", "Administrator", StaffRole.ADMIN),
    ("judge", "Judge", StaffRole.JUDGE),
    ("volunteer", "Volunteer", StaffRole.VOLUNTEER),
]


def seed_staff(password: str) -> dict:
    counts = {"created": 0, "reset": 0}
    db = SessionLocal()
    try:
        for username, display_name, role in DEFAULT_ACCOUNTS:
            staff = db.query(StaffUser).filter(StaffUser.username == username).first()
            if staff:
                staff.hashed_password = get_password_hash(password)
                staff.role = role
                staff.is_active = True
                counts["reset"] += 1
            else:
                db.add(StaffUser(
                    username=username,
                    display_name=display_name,
                    role=role,
                    hashed_password=get_password_hash(password),
                    is_active=True,
                ))
                counts["created"] += 1
        db.commit()
    finally:
        db.close()
    return counts


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the admin, judge and volunteer staff accounts")
    parser.add_argument("--password", default=os.environ.get("STAFF_SEED_PASSWORD"), help="Password for all seeded accounts")
    args = parser.parse_args()

    if not args.password or len(args.password) < 8:
        parser.error("a password of at least 8 characters is required (--password or STAFF_SEED_PASSWORD)")

    Base.metadata.create_all(bind=engine)
    counts = seed_staff(args.password)

    print("Staff seed summary")
    for key, value in counts.items():
        print(f"- {key}: {value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
