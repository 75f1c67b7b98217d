"""Seed a demo manager and employee, each with a balance for the current year."""
from datetime import date

from attendance_hub.core.security import get_password_hash
from attendance_hub.database import SessionLocal, init_db
from attendance_hub.models.user import User, UserRole
from attendance_hub.services.leave_accounting import LeaveAccountingService

init_db()
db = SessionLocal()

def create_user(username, password, name, role, department):
    # Check if user already exists to avoid unique constraint errors
    user = db.query(User).filter(User.username == username).first()
    if user:
        print(f"User {username} already exists. Skipping.")
    else:
        user = User(
            username=username,
            hashed_password=get_password_hash(password),
            name=name,
            role=role,
            department=department,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        print(f"Created {role.value} -> {username}")

    LeaveAccountingService(db).ensure_balance(user.id, date.today().year)

try:
    create_user("manager", "Manager123!", "Demo Manager", UserRole.MANAGER, "Engineering")
    create_user("employee", "Employee123!", "Demo Employee", UserRole.EMPLOYEE, "Engineering")
finally:
    db.close()
