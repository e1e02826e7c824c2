# create_identity.py
import sys

from sqlmodel import Session

from app.core.policies import bind_caller
from app.database import engine, init_db
from app.repositories.identity_repo import IdentityRepository
from app.repositories.profile_repo import ProfileRepository
from app.services.identity_service import IdentityService


def main():
    if len(sys.argv) < 2:
        print("usage: python create_identity.py EMAIL [FULL NAME]")
        sys.exit(1)

    email = sys.argv[1]
    full_name = " ".join(sys.argv[2:]) or None

    init_db()
    with Session(engine) as session:
        identity = IdentityService(IdentityRepository()).create_identity(session, email, full_name)

        # Read it back as the new identity, the way the app would.
        bind_caller(session, identity.id)
        profile = ProfileRepository().get_by_id(session, identity.id)

    print(f"Identity: {identity.id} <{identity.email}>")
    print(f"Profile:  full_name={profile.full_name!r} created_at={profile.created_at}")


if __name__ == "__main__":
    main()
