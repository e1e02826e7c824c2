# app/database.py
import logging

from sqlalchemy import event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings
from app.migrations import apply_sql_migrations

# Importing these registers the profile lifecycle hooks and row policies.
from app.core import lifecycle as _lifecycle  # noqa: F401
from app.core import policies as _policies  # noqa: F401
from app.models import identity as _identity_models  # noqa: F401
from app.models import profile as _profile_models  # noqa: F401

settings = get_settings()
logger = logging.getLogger(__name__)

PROFILE_COLUMNS = ("id", "email", "full_name", "avatar_url", "created_at", "updated_at")


def is_postgres(engine: Engine) -> bool:
    return engine.dialect.name.startswith("postgres")


def build_engine(db_url: str) -> Engine:
    """
    Build the SQLAlchemy engine for either backend.

    Supabase Postgres (via pooler):
      - sslmode=require   : enforce SSL when running in the cloud
      - pool_size=1       : keep only 1 connection to the Supabase pooler
      - max_overflow=0    : do not open extra connections beyond the pool
      - pool_pre_ping=True: validate connections before using them

    Supabase Session mode limits the number of clients; SQLAlchemy's default
    pool (5+) quickly hits "MaxClientsInSessionMode: max clients reached".

    SQLite (local mode / tests):
      - one shared connection for in-memory databases
      - foreign keys switched on per connection
    """
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(db_url, echo=False, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # psycopg2 is the installed driver; a bare postgresql:// may pick another
    for prefix in ("postgresql://", "postgres://"):
        if db_url.startswith(prefix):
            db_url = "postgresql+psycopg2://" + db_url[len(prefix):]

    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    return create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


engine = build_engine(settings.DATABASE_URL)


def init_db(target: Engine | None = None) -> None:
    """
    Prepare the schema on startup.

    Supabase Postgres: run sql/*.sql (table, triggers, RLS policies). Identities
    live in auth.users there, so SQLModel metadata is not created.

    Anything else: create identities + profiles from SQLModel metadata.
    """
    target = target or engine
    if is_postgres(target) and settings.APPLY_SQL_MIGRATIONS:
        apply_sql_migrations(target, settings.SQL_DIR)
    else:
        SQLModel.metadata.create_all(target)


def check_profiles_schema(target: Engine | None = None) -> list[str]:
    """
    Return a list of problems with the profiles table (empty if healthy).
    """
    target = target or engine
    inspector = inspect(target)
    if not inspector.has_table("profiles"):
        return ["Profiles table does not exist"]
    present = {col["name"] for col in inspector.get_columns("profiles")}
    missing = [name for name in PROFILE_COLUMNS if name not in present]
    if missing:
        return [f"Required columns missing from profiles table: {', '.join(missing)}"]
    return []


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    The session starts anonymous; app.core.auth.get_caller_session binds the
    authenticated identity to it.
    """
    with Session(engine) as session:
        yield session
