"""
Name: API Test Fixtures

Responsibilities:
  - Start the real FastAPI app (lifespan included) on the memory backend
  - Seed users straight into the container repositories
  - Log users in and hand back Authorization headers

Notes:
  - Cookies set by /auth/login persist in the TestClient jar; tests that
    check anonymous access clear them first
"""

import pytest
from fastapi.testclient import TestClient

from kiki.container import get_user_repository
from kiki.domain.entities import UserStatus
from kiki.domain.roles import RoleName
from kiki.identity.auth_users import hash_password

ROOT_EMAIL = "root@kiki.test"
ROOT_PASSWORD = "root-password"


@pytest.fixture
def api_client():
    from kiki.api.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def seed_user(user_factory):
    """R: Persist an approved user with a real argon2 hash."""

    def _seed(
        email: str,
        password: str,
        *,
        role_name: RoleName = RoleName.FAMILYADMIN,
        status: UserStatus = UserStatus.APPROVED,
        account_id=None,
        name: str = "Usuario Semilla",
    ):
        user = user_factory.create(
            email=email,
            role_name=role_name,
            status=status,
            account_id=account_id,
            password_hash=hash_password(password),
            name=name,
        )
        return get_user_repository().create_user(user)

    return _seed


@pytest.fixture
def login():
    """R: POST /auth/login and return (response, headers)."""

    def _login(client: TestClient, email: str, password: str):
        response = client.post("/auth/login", json={"email": email, "password": password})
        headers = {}
        if response.status_code == 200:
            headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
        return response, headers

    return _login


@pytest.fixture
def root_headers(api_client, seed_user, login):
    seed_user(ROOT_EMAIL, ROOT_PASSWORD, role_name=RoleName.SUPERADMIN, name="Root")
    response, headers = login(api_client, ROOT_EMAIL, ROOT_PASSWORD)
    assert response.status_code == 200
    return headers


@pytest.fixture
def onboarded_account(api_client, root_headers, login):
    """R: Account created by the superadmin plus its admin's headers."""
    response = api_client.post(
        "/v1/accounts",
        json={
            "name": "Escuela Norte",
            "legal_name": "Escuela Norte S.A.",
            "admin_email": "admin@norte.test",
            "admin_name": "Admin Norte",
            "admin_password": "norte-password",
        },
        headers=root_headers,
    )
    assert response.status_code == 201
    account = response.json()
    login_response, admin_headers = login(api_client, "admin@norte.test", "norte-password")
    assert login_response.status_code == 200
    return {"account": account, "admin_headers": admin_headers}


@pytest.fixture
def school(api_client, onboarded_account):
    """R: Division + student inside the onboarded account."""
    account_id = onboarded_account["account"]["id"]
    headers = onboarded_account["admin_headers"]
    division = api_client.post(
        f"/v1/accounts/{account_id}/divisions",
        json={"name": "1A", "description": "Primer grado"},
        headers=headers,
    )
    assert division.status_code == 201
    student = api_client.post(
        f"/v1/accounts/{account_id}/students",
        json={
            "division_id": division.json()["id"],
            "first_name": "Ana",
            "last_name": "Pérez",
            "dni": "40111222",
        },
        headers=headers,
    )
    assert student.status_code == 201
    return {
        **onboarded_account,
        "division": division.json(),
        "student": student.json(),
    }
