# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .errors import Forbidden, SessionInvalid
from .services import session_service


def bearer_token() -> str | None:
    """Token from an "Authorization: Bearer <token>" header, or None."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.principal: the authenticated Principal (staff user or portal customer)
    - g.session_context: the full SessionContext object
    - g.token: the presented bearer token (for logout)

    SECURITY: Missing header, unknown token, expired token and deactivated
    identity all produce the same 401 body.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        try:
            context = session_service.validate_session(token)
        except SessionInvalid as e:
            return jsonify(e.to_dict()), e.status_code

        g.principal = context.principal
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """
    Require the authenticated principal to hold one of roles.

    Must be stacked below @require_auth. Used for whole endpoints that only
    one role may reach (user management, catalog writes); per-record rules go
    through authorization_service instead.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                e = SessionInvalid()
                return jsonify(e.to_dict()), e.status_code

            if principal.role not in roles:
                current_app.logger.info(
                    "Forbidden: %s %s (id=%s) on %s %s",
                    principal.role,
                    principal.username,
                    principal.id,
                    request.method,
                    request.path,
                )
                e = Forbidden("Permission denied")
                return jsonify(e.to_dict()), e.status_code

            return f(*args, **kwargs)

        return decorated_function
    return decorator
