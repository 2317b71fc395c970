from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .core.logging import configure_logging
from .core.settings import AppSettings, get_settings
from .db.session import SessionLocal, init_db
from .services.lifecycle import LifecycleEngine
from .services.repository import SqlItemRepository


def bootstrap(
    settings: AppSettings | None = None,
    *,
    bind: Engine | None = None,
    session_factory: sessionmaker | None = None,
) -> LifecycleEngine:
    """Configure logging, make sure the schema exists and return a ready engine."""

    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    target = init_db(bind)
    factory = session_factory or (
        sessionmaker(bind=target, autocommit=False, autoflush=False, expire_on_commit=False)
        if bind is not None
        else SessionLocal
    )
    return LifecycleEngine(SqlItemRepository(factory), settings=settings)
