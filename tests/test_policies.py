"""Row ownership: callers only ever see or change their own profile."""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import delete, insert, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.policies import PolicyViolation, bind_caller, current_uid, owns
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository

repo = ProfileRepository()


# ─────────────────────────────────────────────────────────────────
# select
# ─────────────────────────────────────────────────────────────────


def test_owner_can_select_own_profile(ann, session_as):
    profile = repo.get_by_id(session_as(ann.id), ann.id)

    assert profile is not None
    assert profile.full_name == "Ann"


def test_other_caller_cannot_see_profile(ann, bob, session_as):
    assert repo.get_by_id(session_as(bob.id), ann.id) is None


def test_listing_only_returns_own_row(ann, bob, session_as):
    rows = repo.list(session_as(bob.id))

    assert [p.id for p in rows] == [bob.id]


@pytest.mark.parametrize(
    "stmt",
    [
        select(Profile),
        select(Profile).where(Profile.email == "a@x.com"),
        select(Profile).order_by(Profile.created_at).limit(1000),
        select(Profile).where(Profile.id != uuid.UUID(int=0)),
        select(Profile.id, Profile.email),
    ],
    ids=["all", "filtered", "ordered-limited", "not-equal", "columns"],
)
def test_anonymous_caller_sees_no_rows(ann, bob, session_as, stmt):
    session = session_as(None)

    assert session.exec(stmt).all() == []


def test_unbound_session_is_anonymous(ann, engine):
    with Session(engine) as session:
        assert current_uid(session) is None
        assert session.exec(select(Profile)).all() == []


# ─────────────────────────────────────────────────────────────────
# insert
# ─────────────────────────────────────────────────────────────────


def test_anonymous_insert_is_rejected(session_as, count_rows):
    session = session_as(None)

    with pytest.raises(PolicyViolation) as exc:
        repo.insert(session, Profile(id=uuid.uuid4(), email="anon@x.com"))

    assert exc.value.operation == "insert"
    assert exc.value.code == "42501"
    assert count_rows(Profile) == 0


def test_insert_for_someone_else_is_rejected(ann, bob, session_as):
    with pytest.raises(PolicyViolation):
        repo.insert(session_as(bob.id), Profile(id=ann.id, email="forged@x.com"))


def test_owner_duplicate_insert_is_constraint_violation(ann, session_as, count_rows):
    with pytest.raises(IntegrityError):
        repo.insert(session_as(ann.id), Profile(id=ann.id, email="a@x.com"))

    assert count_rows(Profile) == 1


def test_insert_without_identity_is_constraint_violation(session_as, count_rows):
    orphan = uuid.uuid4()

    with pytest.raises(IntegrityError):
        repo.insert(session_as(orphan), Profile(id=orphan, email="ghost@x.com"))

    assert count_rows(Profile) == 0


def test_session_stays_usable_after_rejection(ann, session_as):
    session = session_as(ann.id)

    with pytest.raises(PolicyViolation):
        repo.insert(session, Profile(id=uuid.uuid4()))

    assert repo.get_by_id(session, ann.id) is not None


def _delete_own_profile(session_as, identity):
    session = session_as(identity.id)
    repo.delete(session, repo.get_by_id(session, identity.id))


def _profile_values(identity, email=None):
    now = datetime.now(timezone.utc)
    return {
        "id": identity.id,
        "email": email or identity.email,
        "full_name": "",
        "created_at": now,
        "updated_at": now,
    }


def test_anonymous_bulk_insert_is_rejected(ann, session_as, count_rows):
    _delete_own_profile(session_as, ann)
    session = session_as(None)

    with pytest.raises(PolicyViolation) as exc:
        session.execute(insert(Profile).values(**_profile_values(ann, "forged@x.com")))
    session.rollback()

    assert exc.value.operation == "insert"
    assert count_rows(Profile) == 0


def test_bulk_insert_for_someone_else_is_rejected(ann, bob, session_as, count_rows):
    _delete_own_profile(session_as, ann)
    session = session_as(bob.id)

    with pytest.raises(PolicyViolation):
        session.execute(insert(Profile).values(**_profile_values(ann, "forged@x.com")))
    session.rollback()

    assert count_rows(Profile) == 1
    assert repo.get_by_id(session_as(ann.id), ann.id) is None


def test_multi_row_bulk_insert_with_a_foreign_row_is_rejected(ann, bob, session_as, count_rows):
    _delete_own_profile(session_as, ann)
    _delete_own_profile(session_as, bob)
    session = session_as(bob.id)

    rows = [_profile_values(bob), _profile_values(ann, "forged@x.com")]
    with pytest.raises(PolicyViolation):
        session.execute(insert(Profile).values(rows))
    session.rollback()

    assert count_rows(Profile) == 0


def test_executemany_insert_for_someone_else_is_rejected(ann, bob, session_as, count_rows):
    _delete_own_profile(session_as, ann)
    session = session_as(bob.id)

    with pytest.raises(PolicyViolation):
        session.execute(insert(Profile), [_profile_values(ann, "forged@x.com")])
    session.rollback()

    assert count_rows(Profile) == 1


def test_owner_bulk_insert_is_allowed(ann, session_as, count_rows):
    _delete_own_profile(session_as, ann)
    session = session_as(ann.id)

    session.execute(insert(Profile).values(**_profile_values(ann)))
    session.commit()

    assert count_rows(Profile) == 1
    assert repo.get_by_id(session, ann.id).email == "a@x.com"


# ─────────────────────────────────────────────────────────────────
# update
# ─────────────────────────────────────────────────────────────────


def test_update_of_foreign_row_via_detached_object_is_rejected(ann, bob, session_as):
    owner_session = session_as(ann.id)
    profile = repo.get_by_id(owner_session, ann.id)
    owner_session.expunge(profile)

    profile.full_name = "Hijacked"
    with pytest.raises(PolicyViolation) as exc:
        repo.update(session_as(bob.id), profile)

    assert exc.value.operation == "update"
    assert repo.get_by_id(session_as(ann.id), ann.id).full_name == "Ann"


def test_profile_id_is_immutable(ann, session_as):
    session = session_as(ann.id)
    profile = repo.get_by_id(session, ann.id)

    profile.id = uuid.uuid4()
    with pytest.raises(PolicyViolation):
        repo.update(session, profile)


def test_bulk_update_by_other_caller_touches_nothing(ann, bob, session_as):
    session = session_as(bob.id)
    stmt = (
        update(Profile)
        .where(Profile.id == ann.id)
        .values(full_name="Hacked")
        .execution_options(synchronize_session=False)
    )

    result = session.execute(stmt)
    session.commit()

    assert result.rowcount == 0
    assert repo.get_by_id(session_as(ann.id), ann.id).full_name == "Ann"


def test_anonymous_bulk_update_touches_nothing(ann, bob, session_as):
    session = session_as(None)
    stmt = update(Profile).values(full_name="Hacked").execution_options(synchronize_session=False)

    result = session.execute(stmt)
    session.commit()

    assert result.rowcount == 0
    assert repo.get_by_id(session_as(bob.id), bob.id).full_name == "Bob"


def test_bulk_update_cannot_move_row_to_another_id(ann, identity_factory, session_as, count_rows):
    carol = identity_factory("c@x.com", full_name="Carol")
    _delete_own_profile(session_as, carol)
    session = session_as(ann.id)

    stmt = (
        update(Profile)
        .where(Profile.id == ann.id)
        .values(id=carol.id)
        .execution_options(synchronize_session=False)
    )
    with pytest.raises(PolicyViolation) as exc:
        session.execute(stmt)
    session.rollback()

    assert exc.value.operation == "update"
    assert count_rows(Profile) == 1
    assert repo.get_by_id(session_as(ann.id), ann.id).full_name == "Ann"
    assert repo.get_by_id(session_as(carol.id), carol.id) is None


def test_bulk_update_by_owner_still_works(ann, session_as):
    session = session_as(ann.id)
    stmt = (
        update(Profile)
        .where(Profile.id == ann.id)
        .values(full_name="Ann B")
        .execution_options(synchronize_session=False)
    )

    result = session.execute(stmt)
    session.commit()

    assert result.rowcount == 1
    assert repo.get_by_id(session, ann.id).full_name == "Ann B"


# ─────────────────────────────────────────────────────────────────
# delete
# ─────────────────────────────────────────────────────────────────


def test_owner_can_delete_own_profile(ann, session_as, count_rows):
    session = session_as(ann.id)

    repo.delete(session, repo.get_by_id(session, ann.id))

    assert repo.get_by_id(session, ann.id) is None
    assert count_rows(Profile) == 0


def test_delete_of_foreign_row_is_rejected(ann, bob, session_as, count_rows):
    owner_session = session_as(ann.id)
    profile = repo.get_by_id(owner_session, ann.id)
    owner_session.expunge(profile)

    other = session_as(bob.id)
    other.add(profile)
    with pytest.raises(PolicyViolation) as exc:
        repo.delete(other, profile)

    assert exc.value.operation == "delete"
    assert count_rows(Profile) == 2


def test_anonymous_bulk_delete_touches_nothing(ann, bob, session_as, count_rows):
    session = session_as(None)

    result = session.execute(delete(Profile).execution_options(synchronize_session=False))
    session.commit()

    assert result.rowcount == 0
    assert count_rows(Profile) == 2


# ─────────────────────────────────────────────────────────────────
# helpers
# ─────────────────────────────────────────────────────────────────


def test_owns_compares_string_and_uuid_ids(session_as):
    caller = uuid.uuid4()
    session = session_as(caller)

    assert owns(session, caller)
    assert owns(session, str(caller))
    assert not owns(session, uuid.uuid4())
    assert not owns(session, "not-a-uuid")
    assert not owns(bind_caller(session, None), caller)
