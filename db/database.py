"""
Database engine and session management.

The engine is created lazily so importing the application never opens a
connection. Request handlers receive it through the ``get_engine``
dependency, which tests override with their own engine.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import settings

# Configure logging
logger = logging.getLogger(__name__)

# Global engine
_engine: Optional[Engine] = None

def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for ``url`` with pool settings suited to its backend."""
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=30,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        echo=echo,
    )

def get_engine() -> Engine:
    """Get the database engine, creating it if it doesn't exist."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url, echo=settings.DEBUG)
        logger.info(f"Database engine created ({_engine.dialect.name})")
    return _engine

def dispose_engine() -> None:
    """Release pooled connections, used on application shutdown."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None

@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Context manager for ORM sessions bound to ``engine``."""
    session = sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database error: {str(e)}", exc_info=True)
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

def init_db(engine: Engine) -> None:
    """Create all tables that don't exist yet."""
    from db.model import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ensured")

def check_connection(engine: Engine) -> bool:
    """Run a trivial query; raises if the database is unreachable."""
    with engine.connect() as conn:
        return conn.execute(text("SELECT 1")).scalar() == 1
