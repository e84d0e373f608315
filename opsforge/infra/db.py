from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from opsforge.config import SETTINGS

logger = logging.getLogger(__name__)

engine = create_engine(SETTINGS.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()

T = TypeVar("T")


def init_db(bind: Engine | None = None) -> None:
    from . import models  # noqa: F401  register tables on Base.metadata

    target = bind or engine
    with target.connect() as connection:
        connection.execute(text("SELECT 1"))
    Base.metadata.create_all(target)


class Storage:
    """Owns the session factory; every multi-row write goes through ``run_atomic``."""

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def session(self) -> Session:
        return self._session_factory()

    def run_atomic(self, fn: Callable[[Session], T]) -> T:
        """Run ``fn`` in one transaction: commit on return, roll back every write if it raises."""
        with self._session_factory() as session:
            try:
                result = fn(session)
                session.commit()
            except BaseException:
                session.rollback()
                logger.debug("Transaction rolled back", exc_info=True)
                raise
            return result
