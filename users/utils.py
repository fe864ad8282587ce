# users/utils.py
from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from extensions import db
from users.models import User


def current_user():
    user_id = get_jwt_identity()
    if not user_id:
        return None
    return db.session.get(User, int(user_id))


def role_required(*roles):
    """JWT-protected view restricted to members holding one of the roles."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = current_user()
            if not user:
                return jsonify({"error": "Unauthorized"}), 401
            if not any(user.check_role(r) for r in roles):
                return jsonify({"error": f"Forbidden: {'/'.join(roles)} only"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


admin_required = role_required("admin")
