import pytest

from dorm_service.infrastructure.models import UserORM


def _payload(**overrides):
    data = {"email": "warden@example.com", "name": "Warden", "role": "dorm_manager", "password": "password123"}
    data.update(overrides)
    return data


def test_create_user(client, admin_headers):
    """Тест создания пользователя администратором"""
    response = client.post("/admin/users", json=_payload(), headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"id", "email", "name", "role"}
    assert data["email"] == "warden@example.com"
    assert data["role"] == "dorm_manager"


def test_created_user_can_log_in(client, admin_headers):
    """Созданный пользователь входит своим паролем"""
    client.post("/admin/users", json=_payload(role="student"), headers=admin_headers)
    response = client.post("/auth/login", json={"email": "warden@example.com", "password": "password123"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "student"


def test_password_stored_hashed(client, admin_headers, db):
    """Пароль хранится только в виде хэша"""
    client.post("/admin/users", json=_payload(), headers=admin_headers)
    row = db.query(UserORM).filter(UserORM.email == "warden@example.com").first()
    assert row.password_hash != "password123"
    assert "password123" not in row.password_hash


@pytest.mark.parametrize("overrides", [
    {"email": "not-an-email"},
    {"name": ""},
    {"role": "superuser"},
    {"password": "short"},
])
def test_create_user_validation(client, admin_headers, overrides):
    """Невалидные поля дают 400 validation_error"""
    response = client.post("/admin/users", json=_payload(**overrides), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["details"]


def test_create_user_duplicate(client, admin_headers):
    """Тест создания пользователя с существующим email"""
    assert client.post("/admin/users", json=_payload(), headers=admin_headers).status_code == 200
    response = client.post("/admin/users", json=_payload(name="Other"), headers=admin_headers)
    assert response.status_code == 409
    assert response.json() == {"error": "email_taken"}


def test_create_user_unauthorized(client):
    response = client.post("/admin/users", json=_payload())
    assert response.status_code == 401


def test_no_endpoint_leaks_password(client, admin_headers, manager_headers):
    """Ни один ответ не содержит пароль или его хэш"""
    user = client.post("/admin/users", json=_payload(role="student"), headers=admin_headers).json()
    student = client.post("/students", json={"userId": user["id"], "studentNo": "S-1"}, headers=manager_headers)
    login = client.post("/auth/login", json={"email": "warden@example.com", "password": "password123"})
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {login.json()['token']}"})
    students = client.get("/students", headers=manager_headers)
    for response in (student, login, me, students):
        assert response.status_code == 200
        assert "password" not in response.text.lower()
