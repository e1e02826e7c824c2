# app/core/lifecycle.py
"""
ORM counterparts of the database triggers in sql/2-add-functions.sql.

  - provisioning: inserting an Identity inserts its Profile in the same
    transaction. Any failure aborts the identity insert as well.
  - timestamp: every UPDATE of a Profile gets a server-side updated_at,
    whatever the caller put in that column.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import event, insert, inspect, select
from sqlalchemy.orm import ORMExecuteState, Session

from app.models.identity import Identity
from app.models.profile import Profile

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; they are always stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def next_updated_at(previous: datetime | None) -> datetime:
    """
    Current server time, bumped past `previous` when the clock has not
    moved since the last stamp, so updated_at strictly increases per row.
    """
    now = utcnow()
    if previous is not None:
        floor = as_utc(previous) + timedelta(microseconds=1)
        if now < floor:
            return floor
    return now


def _profile_row(identity: Identity, now: datetime) -> dict[str, Any]:
    """
    Column values for a freshly provisioned profile.

    full_name mirrors coalesce(raw_user_meta_data->>'full_name', '').
    """
    meta = identity.raw_user_meta_data or {}
    full_name = meta.get("full_name")
    return {
        "id": identity.id,
        "email": identity.email,
        "full_name": "" if full_name is None else str(full_name),
        "avatar_url": None,
        "created_at": now,
        "updated_at": now,
    }


@event.listens_for(Identity, "after_insert")
def provision_profile(mapper, connection, target: Identity) -> None:
    # Core insert on the flush connection: same transaction as the identity,
    # and not routed through the session, so the policy layer is bypassed.
    connection.execute(insert(Profile.__table__).values(**_profile_row(target, utcnow())))
    logger.info("Provisioned profile for identity %s", target.id)


@event.listens_for(Profile, "before_update")
def stamp_updated_at(mapper, connection, target: Profile) -> None:
    # The stored row is the floor, like OLD.updated_at in the SQL trigger;
    # whatever the caller assigned to the attribute is overwritten.
    table = Profile.__table__
    previous = connection.execute(
        select(table.c.updated_at).where(table.c.id == target.id)
    ).scalar()
    target.updated_at = next_updated_at(previous)


@event.listens_for(Session, "do_orm_execute")
def stamp_bulk_updates(state: ORMExecuteState) -> None:
    # update(Profile) statements skip mapper events; stamp them here.
    if state.is_update and inspect(Profile) in state.all_mappers:
        state.statement = state.statement.values(updated_at=utcnow())
