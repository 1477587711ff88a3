"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- The employee role is denied management operations (403)
- Admin and assistant roles can perform what their role grants
- The permission policy can be swapped when building the app
- Inactive roles grant nothing
"""

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Role
from stockroom.permissions import EMPLOYEE_ROLE
from stockroom.services.permission_service import RolePermissionPolicy, StaticPermissionPolicy
from conftest import PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/categories"),
            ("GET", "/api/customers"),
            ("GET", "/api/providers"),
            ("GET", "/api/branches"),
            ("GET", "/api/roles"),
            ("GET", "/api/roles/permissions"),
            ("GET", "/api/purchases"),
            ("GET", "/api/purchases/export/pdf"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/sales/export/excel"),
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/register"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["kind"] == "unauthorized"

    def test_invalid_token(self, client, db_session):
        resp = client.get("/api/products", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401
        assert resp.json["message"] == "Invalid or expired token"


# =============================================================================
# EMPLOYEE DENIED MANAGEMENT OPERATIONS: 403
# =============================================================================


class TestEmployeeDenied:
    """Employee role can sell but cannot manage the catalog or the organization."""

    @pytest.mark.parametrize(
        "method,path,permission",
        [
            ("POST", "/api/products", "CREATE_PRODUCTS"),
            ("POST", "/api/categories", "CREATE_CATEGORIES"),
            ("GET", "/api/providers", "VIEW_PROVIDERS"),
            ("GET", "/api/purchases", "VIEW_PURCHASES"),
            ("POST", "/api/purchases", "CREATE_PURCHASES"),
            ("GET", "/api/roles", "VIEW_ROLES"),
            ("POST", "/api/branches", "CREATE_BRANCHES"),
            ("GET", "/api/sales/export/pdf", "EXPORT_SALES"),
            ("POST", "/api/auth/register", "CREATE_USERS"),
        ],
    )
    def test_forbidden(self, client, employee_headers, method, path, permission):
        resp = getattr(client, method.lower())(path, json={}, headers=employee_headers)
        assert resp.status_code == 403
        assert resp.json == {
            "message": "Permission denied",
            "kind": "forbidden",
            "required_permission": permission,
        }

    def test_can_view_products_and_create_sales(self, client, employee_headers, make_product):
        product = make_product(stock=3)

        assert client.get("/api/products", headers=employee_headers).status_code == 200
        resp = client.post(
            "/api/sales",
            json={"lines": [{"product_id": product.id, "quantity": 1}]},
            headers=employee_headers,
        )
        assert resp.status_code == 201

    def test_cannot_cancel_sales(self, client, employee_headers, make_product):
        product = make_product(stock=3)
        sale_id = client.post(
            "/api/sales",
            json={"lines": [{"product_id": product.id, "quantity": 1}]},
            headers=employee_headers,
        ).json["sale"]["id"]

        resp = client.patch(f"/api/sales/{sale_id}/status", json={"status": "cancelled"}, headers=employee_headers)
        assert resp.status_code == 403


# =============================================================================
# ADMIN / ASSISTANT
# =============================================================================


class TestPrivilegedRoles:

    def test_admin_can_list_roles_and_permissions(self, client, admin_headers):
        assert client.get("/api/roles", headers=admin_headers).status_code == 200
        resp = client.get("/api/roles/permissions", headers=admin_headers)
        assert resp.status_code == 200
        assert "SALES" in resp.json["permissions"]

    def test_assistant_manages_catalog_but_not_roles(self, client, assistant_headers):
        resp = client.post("/api/categories", json={"name": "Snacks"}, headers=assistant_headers)
        assert resp.status_code == 201
        assert client.get("/api/roles", headers=assistant_headers).status_code == 403
        assert client.get("/api/branches", headers=assistant_headers).status_code == 200
        resp = client.post("/api/branches", json={}, headers=assistant_headers)
        assert resp.status_code == 403


class TestInactiveRole:

    def test_inactive_role_grants_nothing(self, client, db_session, employee_headers):
        role = db_session.query(Role).filter_by(name=EMPLOYEE_ROLE).one()
        role.status = "inactive"
        db_session.commit()

        resp = client.get("/api/products", headers=employee_headers)
        assert resp.status_code == 403


# =============================================================================
# INJECTED POLICY
# =============================================================================


class TestInjectedPolicy:

    def test_default_policy(self, app):
        assert isinstance(app.extensions["permission_policy"], RolePermissionPolicy)

    def test_static_policy_replaces_role_table(self, db_session):
        policy = StaticPermissionPolicy({EMPLOYEE_ROLE: ["VIEW_PROVIDERS"]})
        custom = create_app(
            {"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"},
            permission_policy=policy,
        )
        assert custom.extensions["permission_policy"] is policy

        with custom.app_context():
            db.create_all()
            from stockroom.services import auth_service, permission_service
            auth_service.create_default_roles()
            permission_service.initialize_permissions()
            role = db.session.query(Role).filter_by(name=EMPLOYEE_ROLE).one()
            auth_service.create_user(
                name="Static",
                lastname="Policy",
                contact_number="1",
                email="static@example.com",
                password=PASSWORD,
                role_id=role.id,
            )

            client = custom.test_client()
            headers = auth_headers(get_auth_token(client, "static@example.com", PASSWORD))
            assert client.get("/api/providers", headers=headers).status_code == 200
            assert client.get("/api/products", headers=headers).status_code == 403
            db.drop_all()

    def test_static_policy_denies_inactive_role(self):
        policy = StaticPermissionPolicy({"clerk": ["VIEW_SALES"]})
        active = Role(name="clerk", status="active")
        inactive = Role(name="clerk", status="inactive")

        assert policy.allows(active, "VIEW_SALES")
        assert not policy.allows(active, "CREATE_SALES")
        assert not policy.allows(inactive, "VIEW_SALES")
        assert not policy.allows(None, "VIEW_SALES")
