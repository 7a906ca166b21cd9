from functools import wraps

from flask import jsonify
from flask_login import current_user

from triviaboard.errors import GameError, NOT_FOUND, FORBIDDEN, CONFLICT, INVALID

STATUS_BY_KIND = {
    NOT_FOUND: 404,
    FORBIDDEN: 403,
    CONFLICT: 409,
    INVALID: 400,
}


def register_error_handlers(flask_app):
    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        return jsonify(exc.to_dict()), STATUS_BY_KIND.get(exc.kind, 400)


def roles_required(*roles):
    """Reject the request with 403 unless the session user holds one of ``roles``.

    Must sit below ``login_required`` so ``current_user`` is authenticated.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if current_user.role not in roles:
                return jsonify({'error': 'Insufficient permissions'}), 403
            return view(*args, **kwargs)
        return wrapper
    return decorator


def json_int(data, key, required=True):
    """Read an integer field from a JSON body, raising a 400-mapped GameError."""
    value = data.get(key)
    if value is None:
        if required:
            raise GameError(f'{key} is required')
        return None
    if isinstance(value, bool):
        raise GameError(f'{key} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise GameError(f'{key} must be an integer')


def json_bool(data, key, default=False):
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise GameError(f'{key} must be a boolean')
    return value
