"""Middleware for authentication context."""
from functools import wraps
from flask import session, g, current_app
from otica.database import get_session
from otica.models import AppUser
from otica.exceptions import UnauthorizedError


def load_current_user():
    """
    Load current user into g (Flask's per-request global).

    Called before each request. Sets g.user and g.user_id when the session
    carries a valid, active user; both stay None otherwise.
    """
    g.user = None
    g.user_id = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        db_session = get_session()
        user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
    except Exception as e:
        current_app.logger.error(f"Error in load_current_user: {e}")
        return

    if user:
        g.user = user
        g.user_id = user.id
    else:
        session.pop('user_id', None)


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Raises UnauthorizedError (rendered as 401 JSON) when no user is loaded.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise UnauthorizedError('Autenticação necessária.')
        return f(*args, **kwargs)
    return decorated_function
