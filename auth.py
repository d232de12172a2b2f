# auth.py
"""
HTTP Basic admission for the API.

Reads are public, writes need the configured credential pair, and any
route/method not listed in ACCESS_RULES is denied.
"""

import hmac
import logging

from flask import current_app, g, request

from errors import AccessDeniedError, AuthenticationRequiredError

log = logging.getLogger("app")

PUBLIC = "public"
AUTHENTICATED = "authenticated"

# (method, url rule) -> access level
ACCESS_RULES = {
    ("GET", "/api/teams"): PUBLIC,
    ("GET", "/api/teams/filter"): PUBLIC,
    ("POST", "/api/teams"): AUTHENTICATED,
    ("PATCH", "/api/teams/<team_id>"): AUTHENTICATED,
    ("PUT", "/api/teams/<team_id>"): AUTHENTICATED,
    ("DELETE", "/api/teams/<team_id>"): AUTHENTICATED,
    ("GET", "/healthz"): PUBLIC,
    ("GET", "/readyz"): PUBLIC,
    ("GET", "/v3/api-docs"): PUBLIC,
    ("GET", "/metrics"): PUBLIC,
}


def _credentials_match(username: str, password: str) -> bool:
    want_user = current_app.config.get("BASIC_AUTH_USERNAME")
    want_pw = current_app.config.get("BASIC_AUTH_PASSWORD")
    if not want_user or not want_pw:
        # no credential store configured: nobody can write
        return False
    user_ok = hmac.compare_digest(username.encode(), want_user.encode())
    pw_ok = hmac.compare_digest(password.encode(), want_pw.encode())
    return user_ok and pw_ok


def authenticated_user():
    """Return the Basic-auth username if the request carries valid credentials."""
    auth = request.authorization
    if auth is None or (auth.type or "").lower() != "basic":
        return None
    if auth.username is None or auth.password is None:
        return None
    if not _credentials_match(auth.username, auth.password):
        log.warning("basic_auth_rejected user=%s", auth.username)
        return None
    return auth.username


def enforce_access_rules():
    """before_request hook: admit or reject the request per ACCESS_RULES."""
    if request.method == "OPTIONS":
        return None

    method = "GET" if request.method == "HEAD" else request.method
    rule = request.url_rule.rule if request.url_rule is not None else None
    level = ACCESS_RULES.get((method, rule))

    if level == PUBLIC:
        return None

    g.user = authenticated_user()
    if level == AUTHENTICATED:
        if g.user is None:
            raise AuthenticationRequiredError()
        return None

    # not an explicitly listed route
    if g.user is None:
        raise AuthenticationRequiredError()
    raise AccessDeniedError()


def init_auth(app):
    app.before_request(enforce_access_rules)
