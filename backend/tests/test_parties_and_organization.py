"""
Provider, branch and role API tests.
"""

import pytest

from stockroom.models import Role


class TestProviders:

    def test_create(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/providers",
            json={
                "nit": "800111222",
                "company": "Pharma Dist",
                "name": "Carlos Ruiz",
                "contact_phone": "3201112233",
                "email": "Orders@Pharma.example.com",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.json
        assert resp.json["provider"]["code"] == "Pv01"
        assert resp.json["provider"]["email"] == "orders@pharma.example.com"

    def test_nit_must_be_digits(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/providers",
            json={"nit": "80-011", "company": "X", "name": "Y", "contact_phone": "1", "email": "x@example.com"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "nit must contain only digits" in resp.json["errors"]

    def test_provider_with_purchases_cannot_be_deleted(self, client, db_session, admin_headers, provider, make_product):
        product = make_product()
        client.post(
            "/api/purchases",
            json={
                "provider_id": provider.id,
                "status": "inactive",
                "lines": [{"product_id": product.id, "quantity": 1, "price": 1}],
            },
            headers=admin_headers,
        )
        client.patch(f"/api/providers/{provider.id}/status", json={"status": "inactive"}, headers=admin_headers)

        resp = client.delete(f"/api/providers/{provider.id}", headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["message"] == "Cannot delete provider: it is referenced by purchases"


class TestBranches:

    @pytest.fixture
    def branch_payload(self):
        return {"name": "Downtown", "location": "Center", "address": "Main St 1", "phone": "6015550000"}

    def test_create_and_pending_status(self, client, db_session, admin_headers, branch_payload):
        resp = client.post("/api/branches", json=branch_payload, headers=admin_headers)
        assert resp.status_code == 201
        branch_id = resp.json["branch"]["id"]

        resp = client.patch(f"/api/branches/{branch_id}/status", json={"status": "pending"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["branch"]["status"] == "pending"

    def test_invalid_status(self, client, db_session, admin_headers, branch_payload):
        branch_id = client.post("/api/branches", json=branch_payload, headers=admin_headers).json["branch"]["id"]
        resp = client.patch(f"/api/branches/{branch_id}/status", json={"status": "closed"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid status. Must be one of: active, inactive, pending"

    def test_missing_fields(self, client, db_session, admin_headers):
        resp = client.post("/api/branches", json={"name": "Solo"}, headers=admin_headers)
        assert resp.status_code == 400
        assert set(resp.json["errors"]) == {
            "address is required",
            "location is required",
            "phone is required",
        }


class TestRoles:

    def test_create_role_with_permissions(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/roles",
            json={"name": "Cashier", "permissions": ["view_sales", "CREATE_SALES"]},
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.json
        role = resp.json["role"]
        assert role["name"] == "cashier"
        assert role["permissions"] == ["CREATE_SALES", "VIEW_SALES"]

    def test_unknown_permission(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/roles",
            json={"name": "cashier", "permissions": ["LAUNCH_ROCKETS"]},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["errors"] == ["Unknown permission: LAUNCH_ROCKETS"]

    def test_admin_role_is_locked(self, client, db_session, admin_headers):
        admin = db_session.query(Role).filter_by(name="admin").one()

        resp = client.put(f"/api/roles/{admin.id}", json={"permissions": []}, headers=admin_headers)
        assert resp.status_code == 403
        assert resp.json["message"] == "The admin role cannot be modified"

        resp = client.patch(f"/api/roles/{admin.id}/status", json={"status": "inactive"}, headers=admin_headers)
        assert resp.status_code == 403

    def test_default_role_cannot_be_deleted(self, client, db_session, admin_headers):
        employee = db_session.query(Role).filter_by(name="employee").one()
        resp = client.delete(f"/api/roles/{employee.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Default roles cannot be deleted"

    def test_replace_permissions(self, client, db_session, admin_headers):
        role_id = client.post(
            "/api/roles", json={"name": "auditor", "permissions": ["VIEW_SALES"]}, headers=admin_headers,
        ).json["role"]["id"]

        resp = client.put(
            f"/api/roles/{role_id}",
            json={"permissions": ["VIEW_PURCHASES", "EXPORT_PURCHASES"]},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.json["role"]["permissions"] == ["EXPORT_PURCHASES", "VIEW_PURCHASES"]

    def test_custom_role_delete(self, client, db_session, admin_headers):
        role_id = client.post("/api/roles", json={"name": "temp"}, headers=admin_headers).json["role"]["id"]

        assert client.delete(f"/api/roles/{role_id}", headers=admin_headers).status_code == 400
        client.patch(f"/api/roles/{role_id}/status", json={"status": "inactive"}, headers=admin_headers)
        assert client.delete(f"/api/roles/{role_id}", headers=admin_headers).status_code == 200
