# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Every action must be attributable to a user. Passwords are hashed with
bcrypt (cost factor 12) and must meet the strength rules below.

Password reset / setup tokens reuse the session token scheme: a random
token is mailed to the user and only its SHA-256 hash is stored, with an
expiry of PASSWORD_RESET_TTL_MINUTES.
"""

import re
from datetime import timedelta

import bcrypt
from flask import current_app

from ..errors import AuthenticationError, BusinessRuleError, NotFoundError, PermissionDenied, ValidationError
from ..extensions import db
from ..models import Role, User
from ..permissions import DEFAULT_ROLES
from ..time_utils import utcnow
from ..validation import DIGITS_RE, EMAIL_RE
from . import session_service
from .code_service import next_code


PASSWORD_RULES = [
    (lambda p: len(p) >= 8, "Password must be at least 8 characters long"),
    (lambda p: re.search(r'[A-Z]', p), "Password must contain at least one uppercase letter"),
    (lambda p: re.search(r'[a-z]', p), "Password must contain at least one lowercase letter"),
    (lambda p: re.search(r'\d', p), "Password must contain at least one digit"),
    (
        lambda p: re.search(r"[!@#$%^&*(),.?'\":{}|<>_\-]", p),
        "Password must contain at least one special character",
    ),
]


def validate_password_strength(password) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Raises ValidationError listing every rule that failed.
    """
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required")

    errors = [message for rule, message in PASSWORD_RULES if not rule(password)]
    if errors:
        raise ValidationError("Password does not meet requirements", errors=errors)


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12 (validated first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    *,
    name: str,
    lastname: str,
    contact_number: str,
    email: str,
    password: str,
    role_id: int,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises ValidationError for bad fields, NotFoundError for an unknown role,
    BusinessRuleError when the email is taken or the role is inactive.
    """
    errors = []
    name = (name or "").strip() if isinstance(name, str) else ""
    lastname = (lastname or "").strip() if isinstance(lastname, str) else ""
    contact_number = (contact_number or "").strip() if isinstance(contact_number, str) else ""
    email = (email or "").strip().lower() if isinstance(email, str) else ""

    if not name:
        errors.append("name is required")
    if not lastname:
        errors.append("lastname is required")
    if not contact_number:
        errors.append("contact_number is required")
    elif not DIGITS_RE.match(contact_number):
        errors.append("contact_number must contain only digits")
    if not email:
        errors.append("email is required")
    elif not EMAIL_RE.match(email):
        errors.append("email must be a valid email address")
    if errors:
        raise ValidationError("Validation failed", errors=errors)

    role = db.session.get(Role, role_id)
    if not role:
        raise NotFoundError("Role not found")
    if not role.is_active:
        raise BusinessRuleError("Cannot assign an inactive role")

    if db.session.query(User).filter_by(email=email).first():
        raise BusinessRuleError("Email is already registered")

    user = User(
        name=name,
        lastname=lastname,
        contact_number=contact_number,
        email=email,
        password_hash=hash_password(password),
        role_id=role.id,
    )

    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Created user %s with role %s", user.email, role.name)
    return user


def authenticate(email, password) -> User:
    """
    Authenticate by email and password.

    Unknown email and wrong password produce the same error. A correct
    password on a deactivated account is refused with PermissionDenied.
    Updates last_login_at on success.
    """
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError("Email and password are required")

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        raise PermissionDenied("Account is disabled")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def create_default_roles() -> list[Role]:
    """Create the default roles if they are missing. Idempotent."""
    roles = []
    for name, description in DEFAULT_ROLES.items():
        role = db.session.query(Role).filter_by(name=name).first()
        if not role:
            role = Role(
                code=next_code(Role),
                name=name,
                description=description,
                status="active",
                is_default=True,
            )
            db.session.add(role)
            db.session.flush()
        roles.append(role)

    db.session.commit()
    return roles


def _issue_reset_token(user: User) -> str:
    token = session_service.generate_token()
    ttl = timedelta(minutes=current_app.config["PASSWORD_RESET_TTL_MINUTES"])
    user.reset_token_hash = session_service.hash_token(token)
    user.reset_token_expires_at = utcnow() + ttl
    db.session.commit()
    return token


def clear_reset_token(user: User) -> None:
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.session.commit()


def request_password_reset(email) -> tuple[User, str] | None:
    """
    Issue a reset token for an active account.

    Returns None when there is no such active user, so callers can answer
    the same way in both cases.
    """
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email is required")

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active:
        return None
    return user, _issue_reset_token(user)


def issue_password_setup_token(user: User) -> str:
    return _issue_reset_token(user)


def reset_password(token, new_password) -> User:
    """
    Set a new password using a reset token.

    The token is single-use; every open session of the user is revoked.
    """
    if not isinstance(token, str) or not token:
        raise ValidationError("Reset token is required")

    user = db.session.query(User).filter_by(
        reset_token_hash=session_service.hash_token(token)
    ).first()
    if not user or not user.reset_token_expires_at or user.reset_token_expires_at < utcnow():
        raise BusinessRuleError("Reset link is invalid or has expired")

    user.password_hash = hash_password(new_password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    session_service.revoke_all_user_sessions(user.id, reason="Password reset")
    db.session.commit()

    current_app.logger.info("Password reset for user %s", user.id)
    return user
