"""
Name: Association Endpoint Tests

Responsibilities:
  - Test /v1/associations lifecycle (create, approve, reject, deactivate)
  - Test the per-user active association pointer (/v1/me/*)
  - Verify tenant isolation and error mapping (403/404/409/422)
  - Test family shares (/v1/me/shares) and their consumption at registration
"""

import pytest

pytestmark = pytest.mark.unit


@pytest.fixture
def coordinator(api_client, school, login):
    """R: Coordinador provisioned by the account admin in division 1A."""
    account_id = school["account"]["id"]
    response = api_client.post(
        "/v1/users",
        json={
            "name": "Coord Uno",
            "email": "coord@norte.test",
            "password": "coord-pass",
            "role": "coordinador",
            "account_id": account_id,
            "division_id": school["division"]["id"],
        },
        headers=school["admin_headers"],
    )
    assert response.status_code == 201
    return {"user": response.json(), "password": "coord-pass"}


@pytest.fixture
def second_division(api_client, school):
    response = api_client.post(
        f"/v1/accounts/{school['account']['id']}/divisions",
        json={"name": "2B"},
        headers=school["admin_headers"],
    )
    assert response.status_code == 201
    return response.json()


def _associations(client, account_id, headers, **params):
    response = client.get(
        f"/v1/accounts/{account_id}/associations", params=params, headers=headers
    )
    assert response.status_code == 200
    return response.json()["associations"]


class TestAssociationManagement:
    def test_provisioned_user_has_active_association(self, api_client, school, coordinator):
        rows = _associations(
            api_client, school["account"]["id"], school["admin_headers"], status="active"
        )

        coord_rows = [r for r in rows if r["user_id"] == coordinator["user"]["id"]]
        assert len(coord_rows) == 1
        assert coord_rows[0]["role"] == "coordinador"
        assert coord_rows[0]["division_id"] == school["division"]["id"]

    def test_create_second_association_in_other_division(
        self, api_client, school, coordinator, second_division
    ):
        response = api_client.post(
            "/v1/associations",
            json={
                "user_id": coordinator["user"]["id"],
                "account_id": school["account"]["id"],
                "role": "coordinador",
                "division_id": second_division["id"],
            },
            headers=school["admin_headers"],
        )

        assert response.status_code == 201
        assert response.json()["status"] == "pending"

        approved = api_client.post(
            f"/v1/associations/{response.json()['id']}/approve",
            headers=school["admin_headers"],
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "active"

    def test_duplicate_live_scope_is_conflict(self, api_client, school, coordinator):
        response = api_client.post(
            "/v1/associations",
            json={
                "user_id": coordinator["user"]["id"],
                "account_id": school["account"]["id"],
                "role": "coordinador",
                "division_id": school["division"]["id"],
            },
            headers=school["admin_headers"],
        )

        assert response.status_code == 409

    def test_coordinator_without_division_is_validation_error(
        self, api_client, school, coordinator
    ):
        response = api_client.post(
            "/v1/associations",
            json={
                "user_id": coordinator["user"]["id"],
                "account_id": school["account"]["id"],
                "role": "coordinador",
            },
            headers=school["admin_headers"],
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_permission_module_is_rejected(self, api_client, school, coordinator):
        response = api_client.post(
            "/v1/associations",
            json={
                "user_id": coordinator["user"]["id"],
                "account_id": school["account"]["id"],
                "role": "coordinador",
                "division_id": school["division"]["id"],
                "permissions": [{"module": "eventos", "actions": ["leer"]}],
            },
            headers=school["admin_headers"],
        )

        assert response.status_code == 422

    def test_reject_pending_registration(self, api_client, school):
        registered = api_client.post(
            "/auth/register",
            json={
                "name": "Familia Ruiz",
                "email": "ruiz@norte.test",
                "password": "ruiz-pass",
                "account_id": school["account"]["id"],
                "division_id": school["division"]["id"],
                "student_id": school["student"]["id"],
            },
        )
        association_id = registered.json()["association_id"]

        rejected = api_client.post(
            f"/v1/associations/{association_id}/reject", headers=school["admin_headers"]
        )
        again = api_client.post(
            f"/v1/associations/{association_id}/approve", headers=school["admin_headers"]
        )

        assert rejected.status_code == 200
        assert rejected.json()["status"] == "inactive"
        assert again.status_code == 409
        assert again.json()["code"] == "INVALID_STATE"

    def test_unknown_association_is_404(self, api_client, school):
        response = api_client.post(
            "/v1/associations/00000000-0000-0000-0000-000000000000/approve",
            headers=school["admin_headers"],
        )

        assert response.status_code == 404

    def test_other_tenant_admin_cannot_list(self, api_client, school, root_headers, login):
        created = api_client.post(
            "/v1/accounts",
            json={
                "name": "Escuela Sur",
                "legal_name": "Escuela Sur S.R.L.",
                "admin_email": "admin@sur.test",
                "admin_name": "Admin Sur",
                "admin_password": "sur-password",
            },
            headers=root_headers,
        )
        assert created.status_code == 201
        _, sur_headers = login(api_client, "admin@sur.test", "sur-password")

        response = api_client.get(
            f"/v1/accounts/{school['account']['id']}/associations", headers=sur_headers
        )

        assert response.status_code == 403


class TestActiveAssociation:
    def test_single_association_is_selected_at_login(self, api_client, coordinator, login):
        _, headers = login(api_client, "coord@norte.test", coordinator["password"])

        response = api_client.get("/v1/me/active-association", headers=headers)

        assert response.status_code == 200
        assert response.json()["role"] == "coordinador"

    def test_choose_between_many(
        self, api_client, school, coordinator, second_division, login
    ):
        second = api_client.post(
            "/v1/associations",
            json={
                "user_id": coordinator["user"]["id"],
                "account_id": school["account"]["id"],
                "role": "coordinador",
                "division_id": second_division["id"],
            },
            headers=school["admin_headers"],
        ).json()
        api_client.post(
            f"/v1/associations/{second['id']}/approve", headers=school["admin_headers"]
        )
        _, headers = login(api_client, "coord@norte.test", coordinator["password"])

        # Con más de una asociación no se elige ninguna automáticamente.
        assert api_client.get("/v1/me/active-association", headers=headers).json() is None
        available = api_client.get("/v1/me/associations", headers=headers).json()
        assert len(available["associations"]) == 2

        chosen = api_client.put(
            "/v1/me/active-association",
            json={"association_id": second["id"]},
            headers=headers,
        )
        assert chosen.status_code == 200
        assert chosen.json()["division_id"] == second_division["id"]
        me = api_client.get("/auth/me", headers=headers).json()
        assert me["active_association"]["association_id"] == second["id"]

    def test_deactivation_clears_pointer(self, api_client, school, coordinator, login):
        _, headers = login(api_client, "coord@norte.test", coordinator["password"])
        active = api_client.get("/v1/me/active-association", headers=headers).json()

        deactivated = api_client.post(
            f"/v1/associations/{active['association_id']}/deactivate",
            headers=school["admin_headers"],
        )

        assert deactivated.status_code == 200
        assert deactivated.json()["status"] == "inactive"
        assert api_client.get("/v1/me/active-association", headers=headers).json() is None

    def test_cannot_activate_foreign_association(
        self, api_client, school, coordinator, login
    ):
        admin_active = api_client.get(
            "/v1/me/active-association", headers=school["admin_headers"]
        ).json()
        _, headers = login(api_client, "coord@norte.test", coordinator["password"])

        response = api_client.put(
            "/v1/me/active-association",
            json={"association_id": admin_active["association_id"]},
            headers=headers,
        )

        assert response.status_code == 403

    def test_clear_pointer(self, api_client, coordinator, login):
        _, headers = login(api_client, "coord@norte.test", coordinator["password"])

        cleared = api_client.delete("/v1/me/active-association", headers=headers)

        assert cleared.status_code == 204
        assert api_client.get("/v1/me/active-association", headers=headers).json() is None


@pytest.fixture
def family_headers(api_client, school, login):
    """R: Logged-in familyadmin of the school's student (single association)."""
    response = api_client.post(
        "/v1/users",
        json={
            "name": "Mamá de Ana",
            "email": "mama@norte.test",
            "password": "mama-pass",
            "role": "familyadmin",
            "account_id": school["account"]["id"],
            "division_id": school["division"]["id"],
            "student_id": school["student"]["id"],
        },
        headers=school["admin_headers"],
    )
    assert response.status_code == 201
    _, headers = login(api_client, "mama@norte.test", "mama-pass")
    return headers


class TestFamilyShare:
    def test_share_with_registered_user(self, api_client, school, coordinator, family_headers):
        response = api_client.post(
            "/v1/me/shares", json={"email": "coord@norte.test"}, headers=family_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["request"] is None
        assert body["association"]["user_id"] == coordinator["user"]["id"]
        assert body["association"]["role"] == "familyviewer"
        assert body["association"]["status"] == "active"
        assert body["association"]["student_id"] == school["student"]["id"]

    def test_pending_request_is_consumed_at_registration(
        self, api_client, school, family_headers
    ):
        requested = api_client.post(
            "/v1/me/shares", json={"email": "abuela@norte.test"}, headers=family_headers
        )
        duplicate = api_client.post(
            "/v1/me/shares", json={"email": "abuela@norte.test"}, headers=family_headers
        )

        assert requested.status_code == 201
        assert requested.json()["association"] is None
        assert requested.json()["request"]["status"] == "pending"
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "CONFLICT"

        registered = api_client.post(
            "/auth/register",
            json={"name": "Abuela", "email": "abuela@norte.test", "password": "abuela-pass"},
        )

        assert registered.status_code == 201
        shared_ids = registered.json()["shared_association_ids"]
        assert len(shared_ids) == 1
        rows = _associations(
            api_client, school["account"]["id"], school["admin_headers"], status="active"
        )
        shared = [r for r in rows if r["id"] == shared_ids[0]]
        assert shared[0]["user_id"] == registered.json()["user"]["id"]
        assert shared[0]["student_id"] == school["student"]["id"]

    def test_staff_cannot_share(self, api_client, coordinator, login):
        _, headers = login(api_client, "coord@norte.test", coordinator["password"])

        response = api_client.post(
            "/v1/me/shares", json={"email": "x@norte.test"}, headers=headers
        )

        assert response.status_code == 403
