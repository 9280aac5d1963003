from functools import wraps
from flask import g, jsonify
from utils.auth_context import role_names

STAFF_ROLES = ("STAFF", "ADMIN")

def has_role(*role_names_: str) -> bool:
    names = role_names(getattr(g, "user", None))
    return "SUPER_ADMIN" in names or bool(names.intersection(role_names_))

def require_roles(*required: str):
    """
    Usage: @require_roles("ADMIN")
    SUPER_ADMIN passes every check.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if getattr(g, "user", None) is None:
                return jsonify(error="Authentication required"), 401
            if not has_role(*required):
                return jsonify(error="Forbidden"), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
