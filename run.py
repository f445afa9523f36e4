import os

import uvicorn


def run_migrations() -> bool:
    """Run Alembic migrations."""
    try:
        from alembic.config import Config
        from alembic import command

        alembic_cfg = Config("alembic.ini")
        print("[STARTUP] Running database migrations...")
        command.upgrade(alembic_cfg, "head")
        print("[STARTUP] Migrations complete!")
        return True
    except Exception as e:
        print(f"[WARN] Migration failed: {e}")
        return False


if __name__ == "__main__":
    from itmaint.core.config import settings

    # Tables are otherwise created by init_db() in the app lifespan
    if os.getenv("RUN_MIGRATIONS") == "true":
        run_migrations()

    uvicorn.run(
        "itmaint.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=os.getenv("ENV") == "development",
        log_level=settings.LOG_LEVEL.lower(),
        workers=1,  # the scheduler must run in a single process
    )
