from flask import jsonify, request, render_template, current_app
from werkzeug.exceptions import HTTPException


class ErrorResponse(Exception):
    """Base class for errors rendered as ``{success: false, message}``."""

    status_code = 500
    default_message = 'Server Error'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ErrorResponse):
    status_code = 400
    default_message = 'Invalid request'


class AuthError(ErrorResponse):
    status_code = 401
    default_message = 'Not authorized'


class ForbiddenError(ErrorResponse):
    status_code = 403
    default_message = 'Forbidden'


class NotFoundError(ErrorResponse):
    status_code = 404
    default_message = 'Resource not found'


class ConflictError(ErrorResponse):
    status_code = 409
    default_message = 'Resource already exists'


def error_envelope(message, status_code):
    return jsonify({'success': False, 'message': message}), status_code


def register_error_handlers(app):
    @app.errorhandler(ErrorResponse)
    def handle_error_response(e):
        if e.status_code >= 500:
            current_app.logger.error(f"{type(e).__name__}: {e.message}")
        return error_envelope(e.message, e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        if request.path.startswith('/api/'):
            return error_envelope(e.description or e.name, e.code)
        if e.code == 404:
            return render_template('404.html'), 404
        return e

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        current_app.logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return error_envelope('Server Error', 500)
