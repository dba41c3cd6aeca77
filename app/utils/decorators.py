from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt_identity
from app.extensions import db
from app.models import User


def current_user_id():
    """Authenticated user id from the JWT identity (or None)."""
    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError):
        return None


def get_current_user():
    user_id = current_user_id()
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def require_permission(*permissions):
    """
    Decorator to require one of the given permissions
    Usage: @require_permission('equipe')
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            """
            Require that the current JWT-authenticated user holds one of the
            given permissions. Must be used together with @jwt_required().
            """
            user = get_current_user()
            if not user or not user.is_active:
                return jsonify({
                    'success': False,
                    'erro': 'Acesso negado. Usuário inválido ou inativo.'
                }), 401

            if not any(user.has_permission(p) for p in permissions):
                return jsonify({
                    'success': False,
                    'erro': f'Acesso negado. Permissão necessária: {", ".join(permissions)}'
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
