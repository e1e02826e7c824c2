# app/migrations.py
"""
Runner for the Supabase setup scripts in sql/.

Order matters and is encoded in the file name prefix:
  1-create-profiles-table.sql
  2-add-functions.sql
  3-enable-rls-policies.sql

Every script is written to be re-applied safely (create ... if not exists,
drop ... if exists then create), so running the whole set on each startup
leaves the same table, triggers and policies behind.
"""
import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Serializes DDL when several workers start at once.
MIGRATION_LOCK_ID = 51_472_009


def migration_files(sql_dir: Path) -> list[Path]:
    """Return the setup scripts in application order (numeric prefix)."""
    files = [p for p in Path(sql_dir).glob("*.sql") if p.name.split("-", 1)[0].isdigit()]
    return sorted(files, key=lambda p: int(p.name.split("-", 1)[0]))


def apply_sql_migrations(engine: Engine, sql_dir: Path) -> list[str]:
    """
    Apply every setup script, each in its own transaction.

    Returns:
        Names of the applied scripts.

    Raises:
        FileNotFoundError: if the directory holds no scripts.
        sqlalchemy.exc.DBAPIError: if a script fails (that script is rolled back).
    """
    files = migration_files(sql_dir)
    if not files:
        raise FileNotFoundError(f"No SQL setup scripts found in {sql_dir}")

    applied: list[str] = []
    with engine.connect() as conn:
        conn.execute(text("SELECT pg_advisory_lock(:lock_id)"), {"lock_id": MIGRATION_LOCK_ID})
        conn.commit()
        try:
            for path in files:
                logger.info("Applying %s", path.name)
                with conn.begin():
                    conn.exec_driver_sql(path.read_text(encoding="utf-8"))
                applied.append(path.name)
        finally:
            conn.execute(text("SELECT pg_advisory_unlock(:lock_id)"), {"lock_id": MIGRATION_LOCK_ID})
            conn.commit()
    return applied
