import logging
from flask import jsonify
from werkzeug.exceptions import HTTPException

log = logging.getLogger(__name__)

class AppError(Exception):
    """Base exception class for application-specific errors."""

    def __init__(self, message=None, details=None, status_code=None):
        super().__init__(message)
        self.message = message or "An unexpected error occurred"
        self.details = details
        self.status_code = status_code or 500

class AuthenticationError(AppError):
    """Exception for authentication errors."""

    def __init__(self, message=None, details=None):
        super().__init__(
            message=message or "Authentication required",
            details=details,
            status_code=401
        )

class ValidationError(AppError):
    """Exception for data validation errors."""

    def __init__(self, message=None, details=None):
        super().__init__(
            message=message or "Validation error",
            details=details,
            status_code=400
        )

class ResourceNotFoundError(AppError):
    """Exception for requests to non-existent resources."""

    def __init__(self, message=None, details=None):
        super().__init__(
            message=message or "Resource not found",
            details=details,
            status_code=404
        )

class BackupNotFoundError(ResourceNotFoundError):
    """Raised when a backup id has no manifest or no files on disk."""

    def __init__(self, message=None, details=None):
        super().__init__(message=message or "Backup not found", details=details)

class BackupFormatError(AppError):
    """Raised when an artifact cannot be decoded."""

    def __init__(self, message=None, details=None):
        super().__init__(
            message=message or "Malformed backup file",
            details=details,
            status_code=422
        )

def _error_body(message, details=None):
    body = {'error': message}
    if details:
        body['details'] = details
    return body

def register_error_handlers(app):
    """Register application error handlers."""

    @app.errorhandler(AppError)
    def handle_app_error(e):
        """Handle application specific errors."""
        if e.status_code >= 500:
            log.error(f"Application error: {e.message}")
        return jsonify(_error_body(e.message, e.details)), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle Werkzeug HTTP exceptions, rate limiting included."""
        return jsonify(_error_body(e.description or e.name)), e.code

    @app.errorhandler(500)
    def internal_server_error(e):
        """Handle 500 errors."""
        return jsonify(_error_body("Internal server error")), 500
