"""SQLAlchemy engine, session factory and declarative base."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.settings import settings

# For SQLite, ``check_same_thread=False`` lets independent callers on different
# threads share the pool. Other engines ignore the argument.
CONNECT_ARGS = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}

engine = create_engine(settings.DB_URL, connect_args=CONNECT_ARGS)
# ``expire_on_commit=False`` keeps loaded rows readable after a unit of work commits.
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
Base = declarative_base()


def init_db(bind: Engine | None = None) -> Engine:
    """Create missing tables and apply additive migrations."""

    from .migrate import run_migrations

    # Importing the models registers them with ``Base.metadata``.
    from ..models import item as _item  # noqa: F401
    from ..models import profile as _profile  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    run_migrations(target)
    return target
