from functools import wraps
from flask import g, jsonify

def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN", "MANAGER")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = getattr(g, "identity", None)
            if identity is None:
                return jsonify(error="Authentication required"), 401

            if identity.role not in role_names:
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
