import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()

class LeaveAllotments(BaseModel):
    """Default per-year allotments used when a balance row is initialised."""
    annual_leave: float = Field(default=float(os.getenv("DEFAULT_ANNUAL_LEAVE", "10")))
    sick_leave: float = Field(default=float(os.getenv("DEFAULT_SICK_LEAVE", "10")))
    personal_leave: float = Field(default=float(os.getenv("DEFAULT_PERSONAL_LEAVE", "5")))

class Config(BaseModel):
    app_name: str = "Attendance Hub"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./attendance.db")
    database_echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"
    # Seconds a SQLite writer waits on a locked database before failing
    sqlite_busy_timeout: float = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Bootstrap account created on first start
    default_admin_username: str = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    default_admin_password: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")
    bootstrap_admin: bool = os.getenv("BOOTSTRAP_ADMIN", "true").lower() == "true"

    # Leave accounting
    leave_allotments: LeaveAllotments = LeaveAllotments()

    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("⚠ Using insecure default SECRET_KEY, only acceptable in development.")
