from functools import wraps
from flask import g, jsonify

CLIENT = "CLIENT"
OWNER = "OWNER"
ADMIN = "ADMIN"

ROLES = (CLIENT, OWNER, ADMIN)


def require_roles(*role_names: str):
    """
    Route guard.

    @require_roles(OWNER) admits owners; @require_roles() admits any signed-in
    user. ADMIN passes every check.
    """
    wanted = frozenset(role_names)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401
            if wanted and not user.is_admin and not wanted & user.role_names:
                return jsonify(error="Forbidden"), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
