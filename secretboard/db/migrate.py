#  Secret Board - Migration Runner
#
#  Programmatic Alembic runner for applying schema migrations at startup.
#  Handles pre-Alembic databases by stamping them at revision 001.
#
#  Depends on: secretboard/migrations/
#  Used by:    secretboard/db/connection.py

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

logger = logging.getLogger("secretboard.migrate")

_MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


def run_migrations(db_path: str | Path) -> None:
    """Apply pending Alembic migrations to the database.

    Handles three cases:
    1. Fresh database — runs all migrations from scratch.
    2. Pre-Alembic database (has users but no alembic_version) — stamps at 001, then upgrades.
    3. Already-migrated database — runs only pending migrations.

    Only the table shape changes here. Converting legacy secret strings into
    rows is SecretService.migrate_legacy_secrets(), run after the schema is current.
    """
    db_path = Path(db_path)
    url = f"sqlite:///{db_path}"

    alembic_cfg = Config(str(_MIGRATIONS_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", url)
    alembic_cfg.set_main_option("script_location", str(_MIGRATIONS_DIR))

    engine = create_engine(url)
    try:
        with engine.connect():
            inspector = inspect(engine)
            tables = inspector.get_table_names()

            has_schema = "users" in tables
            has_alembic = "alembic_version" in tables

            if has_schema and not has_alembic:
                logger.info("Pre-Alembic database detected, stamping at revision 001")
                command.stamp(alembic_cfg, "001")
            elif not has_schema and not has_alembic:
                logger.info("Fresh database, running all migrations")

        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete (head)")
    finally:
        engine.dispose()
