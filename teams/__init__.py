# teams/__init__.py
"""
Teams blueprint: list, filter, create, patch, replace and delete teams.
All endpoints under /api/teams.
"""

import logging
from decimal import Decimal, InvalidOperation

from flask import Blueprint, jsonify, request

from db import get_engine
from errors import MalformedRequestError, ParameterViolationError
from services.team_schemas import TeamRequest
from services.teams import (
    add_team,
    delete_team,
    filter_teams,
    find_with_all_players,
    update_team_fully,
    update_team_partially,
)
from teams.openapi import build_openapi

log = logging.getLogger("app")

teams_bp = Blueprint("teams", __name__)


# -----------------------------------------------------------------------
# Request helpers
# -----------------------------------------------------------------------

def _type_mismatch(name, value, required):
    return MalformedRequestError(
        f"Failed to convert value '{value}' of parameter '{name}' to required type '{required}'"
    )


INT_RANGE = (-(2 ** 31), 2 ** 31 - 1)
LONG_RANGE = (-(2 ** 63), 2 ** 63 - 1)


def _bounded_int(name, raw, bounds, required):
    try:
        value = int(raw)
    except ValueError:
        raise _type_mismatch(name, raw, required)
    # out-of-range values would overflow the driver's integer binding
    if not bounds[0] <= value <= bounds[1]:
        raise _type_mismatch(name, raw, required)
    return value


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    return _bounded_int(name, raw, INT_RANGE, "int")


def _decimal_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise _type_mismatch(name, raw, "BigDecimal")
    if not value.is_finite():
        raise _type_mismatch(name, raw, "BigDecimal")
    return value


def _path_id(raw: str) -> int:
    return _bounded_int("id", raw, LONG_RANGE, "Long")


def _min_violation(prop, value, minimum):
    if value < minimum:
        return {
            "property": prop,
            "invalidValue": value,
            "message": f"must be greater than or equal to {minimum}",
        }
    return None


def _json_body():
    body = request.get_json(force=True, silent=True)
    if body is None:
        raise MalformedRequestError("Required request body is missing or is not valid JSON")
    return body


def _parse_body(model):
    # pydantic.ValidationError propagates to the 400 "fields" handler
    return model.model_validate(_json_body())


# -----------------------------------------------------------------------
# Reads (public)
# -----------------------------------------------------------------------

@teams_bp.get("/api/teams")
def api_list_teams():
    page = _int_arg("page", 0)
    size = _int_arg("size", 10)
    sort_by = request.args.get("sortBy") or "name"
    direction = request.args.get("direction") or "asc"

    violations = [
        v for v in (
            _min_violation("findWithAllPlayers.page", page, 0),
            _min_violation("findWithAllPlayers.size", size, 1),
        ) if v
    ]
    if violations:
        raise ParameterViolationError(violations)

    log.info(
        "Fetching all teams with players - page=%s, size=%s, sortBy=%s, direction=%s",
        page, size, sort_by, direction,
    )
    with get_engine().connect() as conn:
        teams = find_with_all_players(conn, page, size, sort_by, direction)
    log.info("Returned %s teams", teams.total_elements)
    return jsonify(teams.to_dict()), 200


@teams_bp.get("/api/teams/filter")
def api_filter_teams():
    name = request.args.get("name")
    min_budget = _decimal_arg("minBudget")

    log.info("Filtering teams - name=%s, minBudget=%s", name, min_budget)
    with get_engine().connect() as conn:
        teams = filter_teams(conn, name, min_budget)
    log.info("Returned %s teams after filtering", teams.total_elements)
    return jsonify(teams.to_dict()), 200


# -----------------------------------------------------------------------
# Writes (authenticated, one transaction per request)
# -----------------------------------------------------------------------

@teams_bp.post("/api/teams")
def api_create_team():
    body = _parse_body(TeamRequest)
    log.info("Creating new team: name=%s", body.name)
    with get_engine().begin() as conn:
        created = add_team(conn, body)
    log.info("Team created with ID=%s", created.id)
    return jsonify(created.model_dump()), 201


@teams_bp.patch("/api/teams/<team_id>")
def api_patch_team(team_id):
    tid = _path_id(team_id)
    # validated by the service once the team is found
    body = _json_body()
    log.info("Partially updating team ID=%s", tid)
    with get_engine().begin() as conn:
        updated = update_team_partially(conn, tid, body)
    log.info("Team ID=%s partially updated", tid)
    return jsonify(updated.to_dict()), 200


@teams_bp.put("/api/teams/<team_id>")
def api_replace_team(team_id):
    tid = _path_id(team_id)
    body = _parse_body(TeamRequest)
    log.info("Fully updating team ID=%s", tid)
    with get_engine().begin() as conn:
        updated = update_team_fully(conn, tid, body)
    log.info("Team ID=%s fully updated", tid)
    return jsonify(updated.to_dict()), 200


@teams_bp.delete("/api/teams/<team_id>")
def api_delete_team(team_id):
    tid = _path_id(team_id)
    log.info("Deleting team ID=%s", tid)
    with get_engine().begin() as conn:
        delete_team(conn, tid)
    log.info("Team ID=%s deleted", tid)
    return "", 204


@teams_bp.get("/v3/api-docs")
def api_docs():
    return jsonify(build_openapi()), 200
