import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from rentledger.core.config import settings, is_sqlite

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if is_sqlite():
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        connect_args={
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"  # 30s query timeout
        },
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_recycle=settings.DATABASE_POOL_RECYCLE,
        pool_timeout=30,
    )

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_connection() -> bool:
    """Probe the database; never raises."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.warning(f"Database connection failed: {e}")
        return False


def init_db() -> bool:
    """Create tables that do not exist yet (local development / first boot)."""
    from rentledger.db.base import Base
    import rentledger.models  # noqa: F401  registers every model with Base

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables initialized")
        return True
    except Exception as e:
        logger.warning(f"Database init failed: {e}")
        return False


def close_db_connection() -> None:
    engine.dispose()
    logger.info("Database connections closed")
