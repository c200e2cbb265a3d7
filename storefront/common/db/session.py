from contextlib import contextmanager
import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from ..errors import ConcurrencyConflictError


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/storefront.db")


def _ensure_sqlite_parent(url: str) -> None:
    # Ensure sqlite file parent directory exists to avoid 'unable to open database file'
    if url.startswith("sqlite:///") and ":memory:" not in url:
        db_path = url.split("sqlite:///")[-1]
        Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def make_engine(url: str):
    _ensure_sqlite_parent(url)
    if url.startswith("sqlite") and ":memory:" in url:
        # one shared connection so every session sees the same in-memory database
        return create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, future=True)


def make_session_factory(url_or_engine):
    """Return a transactional session context manager bound to an engine.

    The returned callable commits when the block exits cleanly and rolls
    back on any exception. The engine is exposed as ``factory.engine``.
    """
    engine = make_engine(url_or_engine) if isinstance(url_or_engine, str) else url_or_engine
    maker = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def session_scope():
        session = maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    session_scope.engine = engine
    return session_scope


def flush_or_conflict(session, resource: str) -> None:
    """Flush pending writes, reporting a lost race as ``ConcurrencyConflictError``.

    A stale version (another writer updated the row first) and a unique-key
    collision (another writer inserted the same row first) are both races.
    """
    try:
        session.flush()
    except (StaleDataError, IntegrityError):
        raise ConcurrencyConflictError(resource) from None


def init_db(engine) -> None:
    from ..models import Base

    Base.metadata.create_all(engine)


_default_factory = None


def get_session():
    global _default_factory
    if _default_factory is None:
        _default_factory = make_session_factory(DATABASE_URL)
    return _default_factory()
