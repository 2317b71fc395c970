"""Identity contract.

Authentication lives outside this package. All the lifecycle engine needs is
a stable user id for an authenticated session, plus the display name and role
stored in that user's profile.
"""

from __future__ import annotations

from typing import Mapping, Protocol

from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..core.errors import NotFoundError, ValidationError
from ..crud.profiles import create_profile, get_profile
from ..schemas.profile import ProfileCreate, ProfileOut

DEMO_USERS: dict[UserRole, ProfileCreate] = {
    UserRole.CITIZEN: ProfileCreate(
        id="u_cit_001",
        name="Alex Citizen",
        role=UserRole.CITIZEN,
        avatar_url="https://picsum.photos/seed/alex/100/100",
    ),
    UserRole.MUNICIPALITY: ProfileCreate(
        id="u_mun_001",
        name="City Admin",
        role=UserRole.MUNICIPALITY,
        avatar_url="https://picsum.photos/seed/city/100/100",
    ),
    UserRole.RECYCLER: ProfileCreate(
        id="u_rec_001",
        name="GreenEarth Recyclers",
        role=UserRole.RECYCLER,
        avatar_url="https://picsum.photos/seed/green/100/100",
    ),
}


class IdentityProvider(Protocol):
    def authenticated_user_id(self, session_token: str) -> str | None: ...


class StaticIdentityProvider:
    """Token -> user id table, for local runs and tests."""

    def __init__(self, sessions: Mapping[str, str]) -> None:
        self._sessions = dict(sessions)

    def authenticated_user_id(self, session_token: str) -> str | None:
        return self._sessions.get(session_token)


def register_profile(db: Session, payload: ProfileCreate) -> ProfileOut:
    try:
        profile = create_profile(db, payload.model_dump())
    except ValueError as exc:
        raise ValidationError(str(exc), details={"id": payload.id}) from exc
    return ProfileOut.model_validate(profile, from_attributes=True)


def seed_demo_profiles(db: Session) -> list[ProfileOut]:
    """Create the demo users that are not stored yet."""

    seeded = []
    for payload in DEMO_USERS.values():
        if get_profile(db, payload.id) is None:
            seeded.append(register_profile(db, payload))
    return seeded


def resolve_actor(db: Session, provider: IdentityProvider, session_token: str) -> ProfileOut:
    """Map an authenticated session to the profile callers act as.

    The profile's ``name`` is what goes into ledger ``actor`` fields and its
    ``id`` is the ``owner_id`` of citizen submissions.
    """

    user_id = provider.authenticated_user_id(session_token)
    if not user_id:
        raise ValidationError("Session is not authenticated")
    profile = get_profile(db, user_id)
    if profile is None:
        raise NotFoundError(user_id, kind="Profile")
    return ProfileOut.model_validate(profile, from_attributes=True)
