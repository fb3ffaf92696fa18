import time

from fastapi import status
from jose import jwt


def register(client, email="lea@example.com", password="secret1", **extra):
    payload = {"email": email, "password": password, "name": "Martin", "firstName": "Léa"}
    payload.update(extra)
    return client.post("/api/users/register", json=payload)


def test_register_user(client):
    response = register(client, email="Lea@Example.com")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["email"] == "lea@example.com"
    assert data["firstName"] == "Léa"
    assert data["role"] == "STUDENT"
    assert "password" not in data
    assert "passwordHash" not in data


def test_register_ignores_requested_role(client):
    response = register(client, role="ADMIN")
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["role"] == "STUDENT"


def test_register_duplicate_email(client):
    register(client)
    response = register(client, email="LEA@example.com")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["success"] is False


def test_register_validation(client):
    response = register(client, email="not-an-email")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["field"] == "email"

    response = register(client, password="123")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["field"] == "password"


def test_register_rejects_password_over_72_bytes(client):
    response = register(client, password="x" * 73)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    error = response.json()["errors"][0]
    assert error["field"] == "password"
    assert "72 bytes" in error["message"]

    # 40 characters, 80 bytes in UTF-8
    response = register(client, password="é" * 40)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["field"] == "password"

    response = register(client, password="x" * 72)
    assert response.status_code == status.HTTP_201_CREATED


def test_login_returns_token_with_claims(client):
    user = register(client).json()["data"]

    before = int(time.time())
    response = client.post("/api/users/login", json={"email": "lea@example.com", "password": "secret1"})
    after = int(time.time())

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["id"] == user["id"]
    assert data["user"]["lastLoginAt"] is not None

    claims = jwt.get_unverified_claims(data["token"])
    assert claims["userId"] == user["id"]
    assert claims["email"] == "lea@example.com"
    lifetime = 72 * 3600
    assert before + lifetime - 1 <= claims["exp"] <= after + lifetime + 1


def test_login_failures_look_the_same(client):
    register(client)
    wrong_password = client.post("/api/users/login", json={"email": "lea@example.com", "password": "nope-nope"})
    unknown_email = client.post("/api/users/login", json={"email": "ghost@example.com", "password": "secret1"})

    assert wrong_password.status_code == status.HTTP_400_BAD_REQUEST
    assert unknown_email.status_code == status.HTTP_400_BAD_REQUEST
    assert wrong_password.json() == unknown_email.json() == {"success": False, "error": "Invalid credentials"}


def test_protected_route_requires_token(client):
    response = client.get("/api/classes")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["success"] is False


def test_protected_route_rejects_bad_token(client):
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Could not validate credentials"


def test_token_of_deleted_user_is_rejected(auth_client, student, student_headers):
    assert auth_client.delete(f"/api/users/{student.id}").status_code == status.HTTP_200_OK
    response = auth_client.get("/api/users/me", headers=student_headers)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_me(auth_client, admin):
    response = auth_client.get("/api/users/me")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["email"] == admin.email
    assert response.json()["data"]["role"] == "ADMIN"


def test_me_with_lessons(auth_client, hierarchy, admin):
    auth_client.post(f"/api/lessons/{hierarchy['lesson']['id']}/users", json={"userId": admin.id})
    body = auth_client.get("/api/users/me", params={"include": "lessons"}).json()
    assert [lesson["name"] for lesson in body["data"]["lessons"]] == ["Fractions"]


def test_logout(auth_client):
    response = auth_client.post("/api/users/logout")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Logged out"


def test_change_password(client, student, student_headers):
    response = client.put(
        "/api/users/me/password",
        json={"currentPassword": "wrong-one", "newPassword": "brand-new"},
        headers=student_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.put(
        "/api/users/me/password",
        json={"currentPassword": "student123", "newPassword": "brand-new"},
        headers=student_headers,
    )
    assert response.status_code == status.HTTP_200_OK

    old = client.post("/api/users/login", json={"email": student.email, "password": "student123"})
    assert old.status_code == status.HTTP_400_BAD_REQUEST
    new = client.post("/api/users/login", json={"email": student.email, "password": "brand-new"})
    assert new.status_code == status.HTTP_200_OK


def test_change_password_rejects_password_over_72_bytes(client, student, student_headers):
    response = client.put(
        "/api/users/me/password",
        json={"currentPassword": "student123", "newPassword": "x" * 100},
        headers=student_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["field"] == "newPassword"

    login = client.post("/api/users/login", json={"email": student.email, "password": "student123"})
    assert login.status_code == status.HTTP_200_OK


def test_list_users_filters(auth_client, student):
    body = auth_client.get("/api/users", params={"role": "STUDENT"}).json()
    assert [user["email"] for user in body["data"]] == [student.email]

    body = auth_client.get("/api/users", params={"search": "marti"}).json()
    assert [user["email"] for user in body["data"]] == [student.email]

    body = auth_client.get("/api/users").json()
    assert body["pagination"]["total"] == 2


def test_student_cannot_change_own_role(client, student, student_headers):
    response = client.put(f"/api/users/{student.id}", json={"role": "ADMIN"}, headers=student_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.put(f"/api/users/{student.id}", json={"firstName": "Léa"}, headers=student_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["firstName"] == "Léa"


def test_student_cannot_edit_other_users(client, admin, student_headers):
    response = client.put(f"/api/users/{admin.id}", json={"name": "Hacked"}, headers=student_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_changes_role(auth_client, student):
    response = auth_client.put(f"/api/users/{student.id}", json={"role": "MODERATOR"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["role"] == "MODERATOR"


def test_update_user_email_must_be_unique(auth_client, admin, student):
    response = auth_client.put(f"/api/users/{student.id}", json={"email": admin.email})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_user_password_is_rehashed(auth_client, client, student):
    response = auth_client.put(f"/api/users/{student.id}", json={"password": "changed1"})
    assert response.status_code == status.HTTP_200_OK
    login = client.post("/api/users/login", json={"email": student.email, "password": "changed1"})
    assert login.status_code == status.HTTP_200_OK


def test_update_user_rejects_password_over_72_bytes(auth_client, student):
    response = auth_client.put(f"/api/users/{student.id}", json={"password": "ü" * 37})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["field"] == "password"


def test_delete_user_blocked_by_enrolment(auth_client, hierarchy, student):
    auth_client.post(f"/api/lessons/{hierarchy['lesson']['id']}/users", json={"userId": student.id})
    response = auth_client.delete(f"/api/users/{student.id}")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Cannot delete user: it contains 1 lesson enrolment(s)"


def test_get_missing_user(auth_client):
    assert auth_client.get("/api/users/999").status_code == status.HTTP_404_NOT_FOUND
