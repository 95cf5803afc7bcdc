"""
Session gate for the admin panel and the token gate for the dev endpoints.
"""

import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request, session

logger = logging.getLogger(__name__)


class CredentialVerifier:
    """Checks a username/password pair and returns the session user, or None"""

    def verify(self, username, password):
        raise NotImplementedError


class StaticCredentialVerifier(CredentialVerifier):
    """Single shared admin account taken from configuration"""

    def __init__(self, username, password):
        self.username = username
        self.password = password

    def verify(self, username, password):
        if not self.username or not self.password:
            return None
        user_ok = hmac.compare_digest(str(username).encode(), str(self.username).encode())
        pass_ok = hmac.compare_digest(str(password).encode(), str(self.password).encode())
        if user_ok and pass_ok:
            return {'id': 'admin', 'username': self.username, 'role': 'admin'}
        return None


def get_verifier():
    return current_app.extensions['credential_verifier']


def login_user(user):
    session.clear()
    session.permanent = True
    session['isAuthenticated'] = True
    session['isAdmin'] = user.get('role') == 'admin'
    session['user'] = user


def logout_user():
    session.clear()


def is_authenticated():
    return bool(session.get('isAuthenticated'))


def is_admin():
    return is_authenticated() and bool(session.get('isAdmin'))


def login_required(f):
    """Decorator for routes that need any logged-in session"""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not is_authenticated():
            return jsonify({'message': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated


def admin_required(f):
    """Decorator for routes that need the admin flag on the session"""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not is_admin():
            return jsonify({'message': 'Admin access required'}), 403
        return f(*args, **kwargs)
    return decorated


def dev_token_required(f):
    """Decorator for dev endpoints: x-admin-token must match LOCAL_ADMIN_TOKEN"""
    @wraps(f)
    def decorated(*args, **kwargs):
        expected = current_app.config.get('LOCAL_ADMIN_TOKEN') or ''
        token = request.headers.get('x-admin-token', '')
        if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
            logger.warning(f"Rejected dev request to {request.path}")
            return jsonify({'error': 'unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated
