"""
Health endpoint, CORS headers and CLI bootstrap tests.
"""

from stockroom.cli import init_system, list_permissions_cli
from stockroom.models import Customer, Role, User


class TestHealth:

    def test_degraded_before_seeding(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"
        assert resp.json["checks"]["database"]["status"] == "healthy"

    def test_healthy_after_seeding(self, client, setup_roles):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"


class TestCors:

    def test_allowed_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_unknown_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://evil.example.com"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(init_system, ["--admin-email", "boss@example.com"])
        second = runner.invoke(init_system, ["--admin-email", "boss@example.com"])

        assert first.exit_code == 0, first.output
        assert second.exit_code == 0, second.output
        assert "already exists" in second.output

        db_session.expire_all()
        assert db_session.query(Role).count() == 3
        assert db_session.query(User).filter_by(email="boss@example.com").one().role.name == "admin"
        assert db_session.query(Customer).filter_by(is_default=True).count() == 1

    def test_init_rejects_weak_admin_password(self, app, db_session):
        result = app.test_cli_runner().invoke(init_system, ["--admin-password", "weak"])
        assert result.exit_code != 0
        assert "Password does not meet requirements" in result.output

    def test_perms_list_for_role(self, app, setup_roles):
        result = app.test_cli_runner().invoke(list_permissions_cli, ["--role", "employee"])
        assert result.exit_code == 0
        assert "CREATE_SALES" in result.output
        assert "CREATE_PRODUCTS" not in result.output
