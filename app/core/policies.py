# app/core/policies.py
"""
Row ownership policies for `profiles`, enforced on every ORM Session.

Same matrix as sql/3-enable-rls-policies.sql:

    select  auth.uid() = id
    insert  auth.uid() = id   (explicit rejection)
    update  auth.uid() = id   (row is invisible otherwise; id is immutable)
    delete  auth.uid() = id   (row is invisible otherwise)

The caller identity travels in `session.info` (see bind_caller). A session
with no caller bound is anonymous and sees zero rows.
"""
import logging
import uuid

from sqlalchemy import event, false, inspect
from sqlalchemy.orm import ORMExecuteState, Session, attributes, with_loader_criteria

from app.models.profile import Profile

logger = logging.getLogger(__name__)

AUTH_UID_KEY = "auth_uid"


class PolicyViolation(Exception):
    """A write was rejected by a row ownership policy (SQLSTATE 42501)."""

    code = "42501"

    def __init__(self, operation: str, row_id: object):
        self.operation = operation
        self.row_id = row_id
        super().__init__(
            f'{operation} violates row-level security policy for table "profiles"'
        )


def bind_caller(session: Session, caller_id: uuid.UUID | None) -> Session:
    """Attach the authenticated identity id (or None for anonymous) to a session."""
    session.info[AUTH_UID_KEY] = caller_id
    return session


def current_uid(session: Session) -> uuid.UUID | None:
    return session.info.get(AUTH_UID_KEY)


def owns(session: Session, row_id: object) -> bool:
    """True iff the session's caller is the owner of row `row_id`."""
    uid = current_uid(session)
    if uid is None or row_id is None:
        return False
    try:
        return uuid.UUID(str(row_id)) == uid
    except ValueError:
        return False


def ownership_criteria(uid: uuid.UUID | None):
    if uid is None:
        return false()
    return Profile.id == uid


def _bulk_rows(state: ORMExecuteState) -> list[dict]:
    params = state.parameters
    if not params:
        return []
    return list(params) if isinstance(params, list) else [params]


def _inserted_ids(state: ORMExecuteState) -> list:
    """Ids an ORM INSERT statement would write; None where none is given."""
    rows = _bulk_rows(state)
    if rows:
        return [row.get("id") for row in rows]
    # .values() binds are named "id" for one row, "id_m0", "id_m1", ... for many
    bound = state.statement.compile().params
    ids = [value for key, value in bound.items() if key == "id" or key.startswith("id_m")]
    return ids or [None]


def _check_bulk_writes(state: ORMExecuteState) -> None:
    if state.is_insert:
        for row_id in _inserted_ids(state):
            if not owns(state.session, row_id):
                logger.warning("Rejected bulk profile insert for %s", row_id)
                raise PolicyViolation("insert", row_id)
    elif state.is_update:
        if state.is_executemany:
            # update(Profile) with a list of rows is matched by primary key
            for row in state.parameters:
                if not owns(state.session, row.get("id")):
                    logger.warning("Rejected bulk profile update for %s", row.get("id"))
                    raise PolicyViolation("update", row.get("id"))
            return
        column_keys = list(state.parameters or {})
        if "id" in state.statement.compile(column_keys=column_keys).params:
            logger.warning("Rejected bulk profile id change by %s", current_uid(state.session))
            raise PolicyViolation("update", None)


@event.listens_for(Session, "do_orm_execute")
def _scope_profile_statements(state: ORMExecuteState) -> None:
    if (state.is_insert or state.is_update) and inspect(Profile) in state.all_mappers:
        _check_bulk_writes(state)
    # Applies per row regardless of filters, ordering, limits or bulk shape.
    if not (state.is_select or state.is_update or state.is_delete):
        return
    criteria = ownership_criteria(current_uid(state.session))
    state.statement = state.statement.options(
        with_loader_criteria(Profile, criteria, include_aliases=True)
    )


@event.listens_for(Session, "before_flush")
def _check_profile_writes(session: Session, flush_context, instances) -> None:
    for obj in session.new:
        if isinstance(obj, Profile) and not owns(session, obj.id):
            logger.warning("Rejected profile insert for %s", obj.id)
            raise PolicyViolation("insert", obj.id)

    for obj in session.dirty:
        if not isinstance(obj, Profile):
            continue
        if attributes.get_history(obj, "id").has_changes():
            raise PolicyViolation("update", obj.id)
        if not owns(session, obj.id):
            logger.warning("Rejected profile update for %s", obj.id)
            raise PolicyViolation("update", obj.id)

    for obj in session.deleted:
        if isinstance(obj, Profile) and not owns(session, obj.id):
            logger.warning("Rejected profile delete for %s", obj.id)
            raise PolicyViolation("delete", obj.id)
