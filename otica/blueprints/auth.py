"""Authentication blueprint (session based, JSON)."""
import logging
from flask import Blueprint, request, session, g, jsonify
from otica.database import get_session
from otica.models import AppUser
from otica.middleware import require_login
from otica.exceptions import UnauthorizedError, ValidationError
from otica.utils.request_data import json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Authenticate with email/password and open a session."""
    data = json_body()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        raise ValidationError('Email e senha são obrigatórios.')

    db_session = get_session()
    user = db_session.query(AppUser).filter_by(email=email, active=True).first()
    if not user or not user.check_password(password):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthorizedError('Email ou senha inválidos.')

    session.clear()
    session['user_id'] = user.id
    session.permanent = True
    logger.info(f"User {user.id} logged in")
    return jsonify(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Close the current session."""
    session.clear()
    return jsonify({'status': 'ok'})


@auth_bp.route('/me')
@require_login
def me():
    """Return the authenticated user."""
    return jsonify(g.user.to_dict())
