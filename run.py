import logging
import os

import uvicorn

from rentledger.core.config import settings

logger = logging.getLogger(__name__)


def run_migrations() -> bool:
    """Run Alembic migrations."""
    try:
        from alembic.config import Config
        from alembic import command

        alembic_cfg = Config("alembic.ini")
        logger.info("[STARTUP] Running database migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("[STARTUP] Migrations complete!")
        return True
    except Exception as e:
        logger.warning(f"[WARN] Migration failed: {e}")
        return False


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Tables are otherwise created on startup by the app lifespan
    if os.getenv("RUN_MIGRATIONS") == "true" and not run_migrations():
        logger.warning("[WARN] Falling back to direct table creation on startup")

    uvicorn.run(
        "rentledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        workers=1,
        lifespan="on",
    )
