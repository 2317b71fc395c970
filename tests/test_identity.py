import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from ewaste.core.enums import UserRole
from ewaste.core.errors import NotFoundError, ValidationError
from ewaste.db.session import Base
from ewaste.schemas.profile import ProfileCreate
from ewaste.services.identity import (
    DEMO_USERS,
    StaticIdentityProvider,
    register_profile,
    resolve_actor,
    seed_demo_profiles,
)

from ewaste.models import profile as profile_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_resolve_actor_returns_profile(db_session):
    seed_demo_profiles(db_session)
    provider = StaticIdentityProvider({"token-muni": "u_mun_001"})

    actor = resolve_actor(db_session, provider, "token-muni")
    assert actor.id == "u_mun_001"
    assert actor.name == "City Admin"
    assert actor.role is UserRole.MUNICIPALITY


def test_seeding_is_idempotent(db_session):
    assert len(seed_demo_profiles(db_session)) == len(DEMO_USERS)
    assert seed_demo_profiles(db_session) == []


def test_unauthenticated_session_is_rejected(db_session):
    provider = StaticIdentityProvider({})
    with pytest.raises(ValidationError):
        resolve_actor(db_session, provider, "expired")


def test_missing_profile_is_not_found(db_session):
    provider = StaticIdentityProvider({"token": "u_ghost"})
    with pytest.raises(NotFoundError) as excinfo:
        resolve_actor(db_session, provider, "token")
    assert excinfo.value.kind == "Profile"


def test_duplicate_profile_is_rejected(db_session):
    payload = ProfileCreate(id="u_rec_002", name="Circuit Salvage", role="RECYCLER")
    created = register_profile(db_session, payload)
    assert created.role is UserRole.RECYCLER
    assert created.avatar_url is None
    with pytest.raises(ValidationError):
        register_profile(db_session, payload)
