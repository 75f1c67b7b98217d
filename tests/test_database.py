from attendance_hub.core.config import settings
from attendance_hub.database import engine_options


def test_sqlite_engine_waits_on_locks():
    options = engine_options("sqlite:///./attendance.db")
    assert options["connect_args"] == {
        "check_same_thread": False,
        "timeout": settings.sqlite_busy_timeout,
    }
    assert "pool_pre_ping" not in options


def test_server_engine_checks_pooled_connections():
    options = engine_options("postgresql://hub:secret@db/attendance")
    assert options["pool_pre_ping"] is True
    assert "connect_args" not in options
