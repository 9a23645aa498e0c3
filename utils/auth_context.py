from functools import wraps
from flask import g, jsonify
from security.session import get_session_from_request
from services.identity import load_identity

def load_current_identity():
    sess = get_session_from_request()
    if not sess:
        g.identity = None
        g.session = None
        return
    g.session = sess
    g.identity = load_identity(sess.identity_role, sess.identity_id)

def current_email():
    identity = getattr(g, "identity", None)
    return identity.record.email if identity else None

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "identity", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
