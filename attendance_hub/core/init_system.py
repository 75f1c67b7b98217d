import logging
from datetime import date

from attendance_hub.core import security
from attendance_hub.core.config import settings
from attendance_hub.database import SessionLocal
from attendance_hub.models.user import User, UserRole
from attendance_hub.services.leave_accounting import LeaveAccountingService

logger = logging.getLogger(__name__)

def init_system_data(session_factory=SessionLocal):
    """
    Checks if the system needs initialization.
    If no admin account exists, creates the default one with a current-year balance.
    """
    if not settings.bootstrap_admin:
        return
    db = session_factory()
    try:
        admin = db.query(User).filter(User.username == settings.default_admin_username).first()
        if admin is not None:
            logger.info("System initialization check: admin account present.")
            return

        admin = User(
            username=settings.default_admin_username,
            hashed_password=security.get_password_hash(settings.default_admin_password),
            name="System Administrator",
            role=UserRole.ADMIN,
            department="Administration",
            position="System Administrator",
        )
        db.add(admin)
        db.commit()
        LeaveAccountingService(db).ensure_balance(admin.id, date.today().year)
        logger.info(f"✓ Created default admin: {settings.default_admin_username} (change the password immediately)")
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
        raise
    finally:
        db.close()
