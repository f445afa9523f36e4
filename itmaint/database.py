"""
Database engine and session management
Sync SQLAlchemy engine shared by the API and the scheduled jobs
"""
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from itmaint.core.config import settings
from itmaint.db.base import Base

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    connect_args={
        "check_same_thread": False  # SQLite is shared with the scheduler threads
    } if settings.is_sqlite else {
        "connect_timeout": 10,
    },
    echo=False,
    pool_pre_ping=True,
    pool_recycle=settings.DATABASE_POOL_RECYCLE,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
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
    """Test database connection - NON-BLOCKING."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            return True
    except Exception as e:
        logger.warning(f"[WARN] Database connection failed (continuing): {e}")
        return False


def seed_default_admin(db: Session) -> bool:
    """Create the default administrator account when no user exists yet."""
    from itmaint.core.security import get_password_hash
    from itmaint.models.user import User, UserRole

    if db.query(User).first() is not None:
        return False

    admin = User(
        username=settings.DEFAULT_ADMIN_USERNAME,
        email=settings.DEFAULT_ADMIN_EMAIL,
        full_name="Administrator",
        hashed_password=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
        role=UserRole.ADMIN.value,
    )
    db.add(admin)
    db.commit()
    logger.info(f"[OK] Default administrator '{admin.username}' created")
    return True


def init_db(bind=None) -> bool:
    """Initialize database tables and seed the default administrator."""
    # Import all models so they're registered with Base
    import itmaint.models  # noqa: F401

    bind = bind or engine
    try:
        Base.metadata.create_all(bind=bind)
        with Session(bind=bind) as db:
            seed_default_admin(db)
        logger.info("[OK] Database tables initialized!")
        return True
    except Exception as e:
        logger.warning(f"[WARN] Database init warning: {e}")
        return False


def close_db_connection():
    """Close database connections."""
    engine.dispose()
    logger.info("[OK] Database connections closed")
