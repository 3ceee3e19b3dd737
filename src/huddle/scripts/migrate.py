"""Apply Alembic migrations up to head for the configured database."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from huddle.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def build_config(url: str | None = None) -> Config:
    """Return an Alembic config pointed at the project migrations."""
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", url or settings.effective_database_url)
    return cfg


def run_upgrade(revision: str = "head", url: str | None = None) -> None:
    logger.info("Upgrading database to %s", revision)
    command.upgrade(build_config(url), revision)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument("--url", default=None, help="Override the database URL.")
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level.upper())
    run_upgrade(args.revision, args.url)


if __name__ == "__main__":
    main()
