from datetime import date

from fastapi import status

from attendance_hub.models.audit_log import AuditLog
from attendance_hub.models.leave_balance import LeaveBalance
from attendance_hub.models.user import User

NEW_USER = {
    "username": "carol",
    "password": "secret123",
    "name": "Carol",
    "role": "employee",
    "department": "Sales",
    "position": "Account Executive",
}


def test_admin_creates_user_with_balance(client, db_session, admin_user, auth_headers):
    response = client.post("/api/users", headers=auth_headers(admin_user), json=NEW_USER)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["username"] == "carol"
    assert "password" not in data and "hashed_password" not in data

    balance = db_session.query(LeaveBalance).filter_by(user_id=data["id"], year=date.today().year).one()
    assert balance.annual_leave == 10
    assert db_session.query(AuditLog).filter_by(action="create_user").count() == 1

    login = client.post("/api/auth/login", json={"username": "carol", "password": "secret123"})
    assert login.status_code == status.HTTP_200_OK


def test_duplicate_username(client, admin_user, employee_user, auth_headers):
    response = client.post("/api/users", headers=auth_headers(admin_user), json={**NEW_USER, "username": "alice"})
    assert response.status_code == status.HTTP_409_CONFLICT


def test_employee_cannot_manage_users(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    assert client.get("/api/users", headers=headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.post("/api/users", headers=headers, json=NEW_USER).status_code == status.HTTP_403_FORBIDDEN


def test_user_reads_and_updates_self(client, employee_user, manager_user, auth_headers):
    headers = auth_headers(employee_user)
    response = client.put(
        f"/api/users/{employee_user.id}",
        headers=headers,
        json={"phone": "555-0100", "name": ""},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["phone"] == "555-0100"
    # Empty values keep the stored name
    assert response.json()["name"] == "Alice"

    other = client.get(f"/api/users/{manager_user.id}", headers=headers)
    assert other.status_code == status.HTTP_403_FORBIDDEN


def test_admin_deletes_user(client, db_session, admin_user, employee_user, auth_headers):
    user_id = employee_user.id
    response = client.delete(f"/api/users/{user_id}", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_200_OK

    db_session.expire_all()
    assert db_session.get(User, user_id) is None

    missing = client.delete(f"/api/users/{user_id}", headers=auth_headers(admin_user))
    assert missing.status_code == status.HTTP_404_NOT_FOUND
