from __future__ import annotations

import argparse
import logging
import sys

from bootstrap import (
    MIGRATION_MARKER_KEY,
    clear_bootstrap_marker,
    has_bootstrap_marker,
    run_bootstrap_migrations,
    set_bootstrap_marker,
)
from database import Base, engine

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the portal tables and seed domains, flags and the default admin.")
    parser.add_argument("--force", action="store_true", help="Seed again even if the marker already exists.")
    parser.add_argument(
        "--clear-marker",
        action="store_true",
        help=f"Remove `{MIGRATION_MARKER_KEY}` from system_config before running.",
    )
    parser.add_argument("--tables-only", action="store_true", help="Only create missing tables; skip seeding.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if args.tables_only:
        Base.metadata.create_all(bind=engine)
        logger.info("Tables ensured on %s.", engine.url.render_as_string(hide_password=True))
        return 0

    Base.metadata.create_all(bind=engine)
    if args.clear_marker and clear_bootstrap_marker():
        logger.info("Cleared bootstrap marker `%s`.", MIGRATION_MARKER_KEY)

    if has_bootstrap_marker() and not args.force:
        logger.info("Bootstrap marker `%s` present; nothing to seed. Use --force to rerun.", MIGRATION_MARKER_KEY)
        return 0

    run_bootstrap_migrations()
    set_bootstrap_marker()
    logger.info("Bootstrap finished; marker `%s` written.", MIGRATION_MARKER_KEY)
    return 0


if __name__ == "__main__":
    sys.exit(main())
