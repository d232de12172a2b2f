# errors.py
"""
Error types raised by the teams API and the Flask handlers that turn them
into the JSON error envelope:

    {"timestamp", "status", "error", "message", ["fields" | "violations"]}

These handlers are the only place an error response body is built.
"""

import logging
from datetime import datetime, timezone
from http import HTTPStatus

from flask import current_app, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

log = logging.getLogger("app")


class TeamNotFoundError(LookupError):
    def __init__(self, team_id):
        self.team_id = team_id
        super().__init__(f"Team not found with id {team_id}")


class BadArgumentError(ValueError):
    """A business precondition failed (e.g. a mandatory field is missing)."""


class MalformedRequestError(Exception):
    """Unreadable body, missing parameter or a parameter of the wrong type."""


class ParameterViolationError(Exception):
    def __init__(self, violations):
        self.violations = violations
        super().__init__("Validation failed")


class AuthenticationRequiredError(Exception):
    def __init__(self, message="Full authentication is required to access this resource"):
        super().__init__(message)


class AccessDeniedError(Exception):
    def __init__(self, message="Access Denied"):
        super().__init__(message)


def build_body(status: HTTPStatus, message, **extra):
    body = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status.value,
        "error": status.phrase,
        "message": message,
    }
    body.update(extra)
    return body


def _error_response(status: HTTPStatus, message, **extra):
    return jsonify(build_body(status, message, **extra)), status.value


def _field_path(loc) -> str:
    """("players", 0, "name") -> "players[0].name" """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "body"


def field_errors(exc: ValidationError):
    fields = []
    for err in exc.errors(include_url=False):
        rejected = None if err["type"] == "missing" else err.get("input")
        fields.append({
            "field": _field_path(err["loc"]),
            "rejectedValue": rejected,
            "message": err["msg"],
        })
    return fields


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def handle_body_validation(e: ValidationError):
        return _error_response(HTTPStatus.BAD_REQUEST, "Validation failed", fields=field_errors(e))

    @app.errorhandler(ParameterViolationError)
    def handle_parameter_violation(e: ParameterViolationError):
        return _error_response(HTTPStatus.BAD_REQUEST, "Validation failed", violations=e.violations)

    @app.errorhandler(MalformedRequestError)
    def handle_malformed(e: MalformedRequestError):
        return _error_response(HTTPStatus.BAD_REQUEST, str(e))

    @app.errorhandler(TeamNotFoundError)
    def handle_team_not_found(e: TeamNotFoundError):
        return _error_response(HTTPStatus.NOT_FOUND, str(e))

    @app.errorhandler(ValueError)
    def handle_bad_argument(e: ValueError):
        return _error_response(HTTPStatus.BAD_REQUEST, str(e))

    @app.errorhandler(AuthenticationRequiredError)
    def handle_unauthenticated(e: AuthenticationRequiredError):
        resp, status = _error_response(HTTPStatus.UNAUTHORIZED, str(e))
        realm = current_app.config.get("BASIC_AUTH_REALM", "soccer")
        resp.headers["WWW-Authenticate"] = f'Basic realm="{realm}"'
        return resp, status

    @app.errorhandler(AccessDeniedError)
    def handle_access_denied(e: AccessDeniedError):
        return _error_response(HTTPStatus.FORBIDDEN, str(e))

    @app.errorhandler(HTTPException)
    def handle_http_ex(e: HTTPException):
        return _error_response(HTTPStatus(e.code), e.description)

    @app.errorhandler(Exception)
    def handle_generic_ex(e):
        log.exception("Unhandled error")
        return _error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected server error")
