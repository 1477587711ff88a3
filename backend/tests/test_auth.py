"""
Authentication tests: login, logout, registration and password reset.
"""

from datetime import timedelta

import pytest

from stockroom.errors import ValidationError
from stockroom.models import Role, SessionToken, User
from stockroom.services import auth_service, mail_service
from stockroom.time_utils import utcnow
from conftest import PASSWORD, auth_headers, get_auth_token, refreshed


@pytest.fixture
def sent_mail(monkeypatch):
    """Capture reset e-mails instead of sending them."""
    outbox = []

    def _capture(email, name, token):
        outbox.append({"email": email, "name": name, "token": token})
        return True

    monkeypatch.setattr(mail_service, "send_password_reset", _capture)
    monkeypatch.setattr(mail_service, "send_password_setup", _capture)
    return outbox


class TestPasswordStrength:

    def test_every_failed_rule_is_reported(self):
        with pytest.raises(ValidationError) as exc:
            auth_service.validate_password_strength("abc")
        assert len(exc.value.errors) == 4

    def test_strong_password_passes(self):
        auth_service.validate_password_strength("Str0ng!pass")


class TestLogin:

    def test_login_returns_token_and_permissions(self, client, employee_user):
        resp = client.post("/api/auth/login", json={"email": "EMPLOYEE@example.com", "password": PASSWORD})

        assert resp.status_code == 200
        assert len(resp.json["token"]) == 64
        assert "CREATE_SALES" in resp.json["user"]["permissions"]
        assert "CREATE_PRODUCTS" not in resp.json["user"]["permissions"]

    def test_wrong_password(self, client, employee_user):
        resp = client.post("/api/auth/login", json={"email": employee_user.email, "password": "Wrong123!"})
        assert resp.status_code == 401
        assert resp.json["message"] == "Invalid credentials"

    def test_unknown_email_looks_the_same(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
        assert resp.status_code == 401
        assert resp.json["message"] == "Invalid credentials"

    def test_disabled_account(self, client, make_user):
        make_user("employee", email="off@example.com", is_active=False)
        resp = client.post("/api/auth/login", json={"email": "off@example.com", "password": PASSWORD})
        assert resp.status_code == 403

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={})
        assert resp.status_code == 400

    def test_logout_revokes_token(self, client, employee_user):
        headers = auth_headers(get_auth_token(client, employee_user.email, PASSWORD))

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_expired_session(self, client, db_session, employee_user):
        headers = auth_headers(get_auth_token(client, employee_user.email, PASSWORD))
        session = db_session.query(SessionToken).filter_by(user_id=employee_user.id).one()
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_me(self, client, employee_headers):
        resp = client.get("/api/auth/me", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["role"]["name"] == "employee"


class TestRegister:

    def _payload(self, role_id, **overrides):
        payload = {
            "name": "Ana",
            "lastname": "Lopez",
            "contact_number": "3001234567",
            "email": "ana@example.com",
            "password": "Str0ng!pass",
            "role_id": role_id,
        }
        payload.update(overrides)
        return payload

    def test_admin_registers_user(self, client, db_session, admin_headers):
        role = db_session.query(Role).filter_by(name="employee").one()

        resp = client.post("/api/auth/register", json=self._payload(role.id), headers=admin_headers)

        assert resp.status_code == 201, resp.json
        assert resp.json["user"]["email"] == "ana@example.com"
        assert "password_hash" not in resp.json["user"]
        assert get_auth_token(client, "ana@example.com", "Str0ng!pass")

    def test_weak_password(self, client, db_session, admin_headers):
        role = db_session.query(Role).filter_by(name="employee").one()
        resp = client.post("/api/auth/register", json=self._payload(role.id, password="weak"), headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Password does not meet requirements"

    def test_duplicate_email(self, client, db_session, admin_headers, admin_user):
        role = db_session.query(Role).filter_by(name="employee").one()
        resp = client.post(
            "/api/auth/register",
            json=self._payload(role.id, email=admin_user.email),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Email is already registered"

    def test_unknown_role(self, client, db_session, admin_headers):
        resp = client.post("/api/auth/register", json=self._payload(999), headers=admin_headers)
        assert resp.status_code == 404


class TestPasswordReset:

    def test_full_reset_flow(self, client, employee_user, sent_mail):
        old_headers = auth_headers(get_auth_token(client, employee_user.email, PASSWORD))

        resp = client.post("/api/auth/forgot-password", json={"email": employee_user.email})
        assert resp.status_code == 200
        assert len(sent_mail) == 1
        token = sent_mail[0]["token"]

        page = client.get(f"/reset-password/{token}")
        assert page.status_code == 200
        assert f"/api/auth/reset-password/{token}".encode() in page.data

        resp = client.post(f"/api/auth/reset-password/{token}", json={"new_password": "N3w!password"})
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=old_headers).status_code == 401
        assert get_auth_token(client, employee_user.email, "N3w!password")
        assert get_auth_token(client, employee_user.email, PASSWORD) is None

    def test_token_is_single_use(self, client, employee_user, sent_mail):
        client.post("/api/auth/forgot-password", json={"email": employee_user.email})
        token = sent_mail[0]["token"]

        client.post(f"/api/auth/reset-password/{token}", json={"new_password": "N3w!password"})
        resp = client.post(f"/api/auth/reset-password/{token}", json={"new_password": "An0ther!pass"})

        assert resp.status_code == 400
        assert resp.json["message"] == "Reset link is invalid or has expired"

    def test_expired_token(self, client, db_session, employee_user, sent_mail):
        client.post("/api/auth/forgot-password", json={"email": employee_user.email})
        token = sent_mail[0]["token"]
        user = refreshed(User, employee_user.id)
        user.reset_token_expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        resp = client.post(f"/api/auth/reset-password/{token}", json={"new_password": "N3w!password"})

        assert resp.status_code == 400

    def test_weak_new_password_keeps_token(self, client, employee_user, sent_mail):
        client.post("/api/auth/forgot-password", json={"email": employee_user.email})
        token = sent_mail[0]["token"]

        resp = client.post(f"/api/auth/reset-password/{token}", json={"new_password": "short"})
        assert resp.status_code == 400
        assert resp.json["errors"]

        resp = client.post(f"/api/auth/reset-password/{token}", json={"new_password": "N3w!password"})
        assert resp.status_code == 200

    def test_unknown_email_gets_same_answer(self, client, db_session, sent_mail):
        resp = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert resp.status_code == 200
        assert sent_mail == []

    def test_mail_failure_clears_token(self, client, employee_user, monkeypatch):
        def _fail(*args):
            raise mail_service.MailDeliveryError("Could not send e-mail")

        monkeypatch.setattr(mail_service, "send_password_reset", _fail)

        resp = client.post("/api/auth/forgot-password", json={"email": employee_user.email})

        assert resp.status_code == 500
        assert refreshed(User, employee_user.id).reset_token_hash is None

    def test_password_setup_link(self, client, employee_headers, employee_user, sent_mail):
        resp = client.post("/api/auth/request-password-setup", headers=employee_headers)

        assert resp.status_code == 200
        assert sent_mail[0]["email"] == employee_user.email
