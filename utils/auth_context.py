from functools import wraps
from flask import current_app, g, jsonify, request
from models import db
from models.user import User
from services.actor import UserActor

ROLE_PRECEDENCE = ("SUPER_ADMIN", "ADMIN", "STAFF", "PLAYER")

def load_current_user():
    """
    Sessions are handled upstream; the auth layer forwards the authenticated
    user id in a trusted header.
    """
    g.user = None
    header = current_app.config.get("AUTH_USER_HEADER", "X-Authenticated-User-Id")
    raw_id = request.headers.get(header)
    if not raw_id or not raw_id.isdigit():
        return
    g.user = User.active(db.session).filter(User.id == int(raw_id)).first()

def role_names(user) -> set:
    return {r.name for r in user.roles} if user else set()

def current_actor() -> UserActor:
    names = role_names(g.user)
    role = next((r for r in ROLE_PRECEDENCE if r in names), "PLAYER")
    return UserActor(user_id=g.user.id, role=role)

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
