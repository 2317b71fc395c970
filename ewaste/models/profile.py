from __future__ import annotations

from sqlalchemy import Column, Text

from ..db.session import Base


class Profile(Base):
    """Display name and role for an authenticated user id."""

    __tablename__ = "profiles"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    avatar_url = Column(Text, nullable=True)


__all__ = ["Profile"]
