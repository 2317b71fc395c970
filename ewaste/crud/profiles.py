"""Profile lookups backing the identity contract."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..models.profile import Profile


def get_profile(db: Session, user_id: str) -> Profile | None:
    return db.get(Profile, user_id)


def create_profile(db: Session, payload: dict) -> Profile:
    """Persist a profile right after sign-up. Duplicate ids are rejected."""

    user_id = (payload.get("id") or "").strip()
    if not user_id:
        raise ValueError("id is required")
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    role = payload.get("role")
    if not role:
        raise ValueError("role is required")
    if db.get(Profile, user_id) is not None:
        raise ValueError(f"profile {user_id} already exists")
    profile = Profile(
        id=user_id,
        name=name,
        role=getattr(role, "value", role),
        avatar_url=(payload.get("avatar_url") or None),
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile
