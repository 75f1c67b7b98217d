from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from attendance_hub.core.config import settings


def engine_options(url: str) -> Dict[str, Any]:
    """Backend-specific create_engine() kwargs for `url`."""
    options: Dict[str, Any] = {"echo": settings.database_echo}
    if url.startswith("sqlite"):
        # Sessions cross threads under FastAPI's threadpool; writers wait on
        # the file lock instead of failing with "database is locked".
        options["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.sqlite_busy_timeout,
        }
    else:
        options["pool_pre_ping"] = True
    return options


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

# Services own commit/rollback; the request-scoped session never autocommits.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield one session per request and always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the attendance and leave tables. Called once from the app lifespan."""
    from attendance_hub.models import (  # noqa: F401
        attendance, audit_log, leave_balance, leave_request, user
    )
    Base.metadata.create_all(bind=engine)
