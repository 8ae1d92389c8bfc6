# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .errors import Forbidden, Unauthorized, error_response
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _load_current_user():
    """Resolve the bearer token and expose the session on g."""
    token = _bearer_token()
    g.current_user = session_service.validate_session(token) if token else None
    g.session_token = token
    return g.current_user


def require_auth(f):
    """
    Require a valid session.

    Sets g.current_user. Returns 401 if the Authorization header is
    missing, or the token is invalid, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if _load_current_user() is None:
            return error_response(Unauthorized())
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """
    Require a session whose user has the admin role.

    A missing session and a non-admin session look the same to the caller:
    403 {"message": "Forbidden"}, returned before the route body (and so
    before any write) runs.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = _load_current_user()
        if user is None or user.role != current_app.config["ADMIN_ROLE"]:
            current_app.logger.warning(
                "Forbidden %s %s (user=%s)",
                request.method,
                request.path,
                user.id if user is not None else None,
            )
            return error_response(Forbidden())
        return f(*args, **kwargs)

    return decorated_function
