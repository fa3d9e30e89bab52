import hmac
import logging
from functools import wraps
from flask import current_app, request

from backup_console.errors import AuthenticationError

log = logging.getLogger(__name__)

def _provided_token():
    """Token from ``Authorization: Bearer <token>`` or ``X-API-Key``."""
    auth_header = request.headers.get('Authorization', '')
    if auth_header.lower().startswith('bearer '):
        return auth_header[7:].strip()
    return request.headers.get('X-API-Key')

def api_token_required(f):
    """Decorator to restrict access to callers holding the admin API token."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get('ADMIN_API_TOKEN')
        if not expected:
            log.warning("ADMIN_API_TOKEN is not configured, refusing request")
            raise AuthenticationError("API access is not configured")

        provided = _provided_token()
        if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
            raise AuthenticationError("Invalid or missing API token")

        return f(*args, **kwargs)
    return decorated_function
