"""Domain exceptions and the JSON error handler that maps them to HTTP."""
from datetime import datetime, timezone

from flask import jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

GENERIC_ERROR_MESSAGE = 'An unexpected error occurred. Please try again later.'


class ScrambleError(Exception):
    status_code = 500
    error = 'Internal Server Error'

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PlayerNotFoundError(ScrambleError):
    status_code = 404
    error = 'Player Not Found'

    def __init__(self, identifier):
        super().__init__(f"Player not found: {identifier}", {'player': str(identifier)})


class GameSessionNotFoundError(ScrambleError):
    status_code = 404
    error = 'Game Session Not Found'


class FeatureFlagNotFoundError(ScrambleError):
    status_code = 404
    error = 'Feature Flag Not Found'

    def __init__(self, name):
        super().__init__(f"Feature flag not found: {name}", {'feature': name})


class ConfigurationNotFoundError(ScrambleError):
    status_code = 404
    error = 'Configuration Not Found'

    def __init__(self, key):
        super().__init__(f"Configuration not found: {key}", {'config_key': key})


class DuplicatePlayerError(ScrambleError):
    status_code = 409
    error = 'Duplicate Player'

    def __init__(self, field, value):
        super().__init__(f"Player with {field} '{value}' already exists", {'field': field, 'value': value})


class DuplicateFeatureFlagError(ScrambleError):
    status_code = 409
    error = 'Duplicate Feature Flag'

    def __init__(self, name):
        super().__init__(f"Feature flag already exists: {name}", {'feature': name})


class AllQuestionsCompletedError(ScrambleError):
    status_code = 409
    error = 'All Questions Completed'

    def __init__(self, game_type, difficulty, total):
        super().__init__(
            f"All {total} {game_type.lower()} questions for {difficulty} have been played. Restart to play again.",
            {'game_type': game_type, 'difficulty': difficulty, 'total_questions': total},
        )


class InvalidGameStateError(ScrambleError):
    status_code = 400
    error = 'Invalid Game State'


class MaxHintsExceededError(ScrambleError):
    status_code = 400
    error = 'Max Hints Exceeded'

    def __init__(self, max_hints, current_hints):
        super().__init__(
            f"Maximum of {max_hints} hints per game exceeded (current: {current_hints})",
            {'max_hints': max_hints, 'current_hints': current_hints},
        )


class RequestValidationError(ScrambleError):
    status_code = 400
    error = 'Validation Failed'

    def __init__(self, errors):
        super().__init__('Invalid request parameters', errors)


class AuthenticationError(ScrambleError):
    status_code = 401
    error = 'Unauthorized'


def _payload(status, error, message, details=None):
    return jsonify({
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'status': status,
        'error': error,
        'message': message,
        'path': request.path,
        'details': details or {},
    }), status


def register_error_handlers(app):
    """Attach JSON error handlers for domain errors, HTTP errors and the rest."""
    from scramble import db

    @app.errorhandler(ScrambleError)
    def handle_scramble_error(exc):
        app.logger.warning(f"[error] type={type(exc).__name__} path={request.path} message={exc.message}")
        return _payload(exc.status_code, exc.error, exc.message, exc.details)

    @app.errorhandler(ValueError)
    def handle_value_error(exc):
        db.session.rollback()
        app.logger.warning(f"[error] type=ValueError path={request.path} message={exc}")
        return _payload(400, 'Bad Request', str(exc))

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc):
        db.session.rollback()
        app.logger.warning(f"[error] type=IntegrityError path={request.path} message={exc.orig}")
        return _payload(409, 'Conflict', 'The request conflicts with existing data')

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return _payload(exc.code, exc.name, exc.description)

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        db.session.rollback()
        app.logger.exception(f"[error] unexpected path={request.path}")
        return _payload(500, 'Internal Server Error', GENERIC_ERROR_MESSAGE)
