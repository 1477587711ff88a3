# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, g

from .errors import ErrorKind, PermissionDenied, error_response
from .services import session_service, permission_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session token.

    Sets g.current_user and g.session_context. Returns 401 when the
    Authorization header is missing, or the token is invalid, expired or
    belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return error_response("Authentication required", ErrorKind.UNAUTHORIZED)

        context = session_service.validate_session(token)
        if not context:
            return error_response("Invalid or expired token", ErrorKind.UNAUTHORIZED)

        g.current_user = context.user
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the authenticated user's role to grant permission_code (403 otherwise)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not hasattr(g, "current_user"):
                return error_response("Authentication required", ErrorKind.UNAUTHORIZED)

            try:
                permission_service.require_permission(
                    g.current_user, permission_code, resource=request.path
                )
            except PermissionDenied:
                return error_response(
                    "Permission denied",
                    ErrorKind.FORBIDDEN,
                    required_permission=permission_code,
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator
