# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

- register: only for authenticated users holding CREATE_USERS
- login: email + password, returns a bearer token
- forgot-password / reset-password: e-mailed single-use link
- request-password-setup: mails a setup link to the logged-in user
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import ErrorKind, error_response
from ..services import auth_service, mail_service, permission_service, session_service
from ..services.mail_service import MailDeliveryError
from ..validation import parse_id


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_payload(user) -> dict:
    data = user.to_dict()
    data["permissions"] = sorted(permission_service.get_user_permissions(user))
    return data


@auth_bp.post("/register")
@require_auth
@require_permission("CREATE_USERS")
def register_route():
    """
    Create a user account.

    Request body:
    {
        "name": "Ana", "lastname": "Lopez",
        "contact_number": "3001234567",
        "email": "ana@example.com",
        "password": "Str0ng!pass",
        "role_id": 2
    }
    """
    data = request.get_json(silent=True) or {}
    role_id = data.get("role_id")
    user = auth_service.create_user(
        name=data.get("name"),
        lastname=data.get("lastname"),
        contact_number=data.get("contact_number"),
        email=data.get("email"),
        password=data.get("password"),
        role_id=parse_id(role_id, "role ID"),
    )
    return jsonify({"message": "User registered", "user": user.to_dict()}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    The token must be sent as "Authorization: Bearer <token>" on protected
    routes.
    """
    data = request.get_json(silent=True) or {}
    user = auth_service.authenticate(data.get("email"), data.get("password"))

    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    current_app.logger.info("User %s logged in", user.id)

    return jsonify({
        "message": "Login successful",
        "token": token,
        "session": session.to_dict(),
        "user": _user_payload(user),
    })


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"})


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"message": "Current user", "user": _user_payload(g.current_user)})


@auth_bp.post("/forgot-password")
def forgot_password_route():
    """
    Mail a password reset link.

    The answer is the same whether or not the address belongs to an
    account.
    """
    data = request.get_json(silent=True) or {}
    issued = auth_service.request_password_reset(data.get("email"))

    if issued:
        user, token = issued
        try:
            mail_service.send_password_reset(user.email, user.name, token)
        except MailDeliveryError:
            auth_service.clear_reset_token(user)
            return error_response("Could not send the reset e-mail", ErrorKind.INTERNAL)

    return jsonify({
        "message": "If the email is registered, a password reset link has been sent",
    })


@auth_bp.post("/reset-password/<token>")
def reset_password_route(token: str):
    data = request.get_json(silent=True) or {}
    auth_service.reset_password(token, data.get("new_password"))
    return jsonify({"message": "Password updated, please log in again"})


@auth_bp.post("/request-password-setup")
@require_auth
def request_password_setup_route():
    user = g.current_user
    token = auth_service.issue_password_setup_token(user)
    try:
        mail_service.send_password_setup(user.email, user.name, token)
    except MailDeliveryError:
        auth_service.clear_reset_token(user)
        return error_response("Could not send the setup e-mail", ErrorKind.INTERNAL)

    return jsonify({"message": f"A password setup link has been sent to {user.email}"})
