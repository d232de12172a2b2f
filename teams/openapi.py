# teams/openapi.py
"""OpenAPI 3 description of the teams API, built from the pydantic bodies."""

from services.team_schemas import (
    PlayerRequest,
    PlayerResponse,
    TeamPartialUpdateRequest,
    TeamRequest,
    TeamResponse,
)

REF = "#/components/schemas/{model}"

_SCHEMA_MODELS = (PlayerRequest, TeamRequest, TeamPartialUpdateRequest, PlayerResponse, TeamResponse)

_BASIC_AUTH = [{"basicAuth": []}]


def _ref(name):
    return {"$ref": REF.format(model=name)}


def _json(schema):
    return {"application/json": {"schema": schema}}


def _query(name, description, schema):
    return {"name": name, "in": "query", "required": False, "description": description, "schema": schema}


_ID_PARAM = {
    "name": "id",
    "in": "path",
    "required": True,
    "description": "ID of the team",
    "schema": {"type": "integer", "format": "int64"},
}


def _components():
    schemas = {}
    for model in _SCHEMA_MODELS:
        schema = model.model_json_schema(ref_template=REF)
        schemas.update(schema.pop("$defs", {}))
        schemas[model.__name__] = schema

    schemas["Team"] = schemas["TeamResponse"]
    schemas["PageTeam"] = {
        "type": "object",
        "properties": {
            "content": {"type": "array", "items": _ref("Team")},
            "totalElements": {"type": "integer"},
            "totalPages": {"type": "integer"},
            "number": {"type": "integer"},
            "size": {"type": "integer"},
            "numberOfElements": {"type": "integer"},
            "first": {"type": "boolean"},
            "last": {"type": "boolean"},
            "empty": {"type": "boolean"},
            "sort": {"type": "array", "items": {"type": "object"}},
        },
    }
    schemas["Error"] = {
        "type": "object",
        "properties": {
            "timestamp": {"type": "string", "format": "date-time"},
            "status": {"type": "integer"},
            "error": {"type": "string"},
            "message": {"type": "string"},
            "fields": {"type": "array", "items": {"type": "object"}},
            "violations": {"type": "array", "items": {"type": "object"}},
        },
    }
    return schemas


def build_openapi(title="Soccer Teams API", version="1.0.0"):
    error = {"content": _json(_ref("Error"))}
    return {
        "openapi": "3.0.3",
        "info": {"title": title, "version": version},
        "tags": [{"name": "Teams", "description": "Operations related to team management"}],
        "paths": {
            "/api/teams": {
                "get": {
                    "tags": ["Teams"],
                    "summary": "Get all teams with their players",
                    "description": "Returns a paginated list of all teams including their players",
                    "parameters": [
                        _query("page", "Page number (zero-based)", {"type": "integer", "default": 0, "minimum": 0}),
                        _query("size", "Page size", {"type": "integer", "default": 10, "minimum": 1}),
                        _query("sortBy", "Field to sort by", {"type": "string", "default": "name"}),
                        _query("direction", "Sort direction: asc or desc", {"type": "string", "default": "asc"}),
                    ],
                    "responses": {
                        "200": {"description": "List of teams", "content": _json(_ref("PageTeam"))},
                        "400": {"description": "Invalid paging or sort parameters", **error},
                    },
                },
                "post": {
                    "tags": ["Teams"],
                    "summary": "Create a new team",
                    "description": "Persists a new team with provided name, acronym, and budget",
                    "security": _BASIC_AUTH,
                    "requestBody": {"required": True, "content": _json(_ref("TeamRequest"))},
                    "responses": {
                        "201": {"description": "Team created successfully", "content": _json(_ref("TeamResponse"))},
                        "400": {"description": "Invalid request", **error},
                        "401": {"description": "Authentication required", **error},
                    },
                },
            },
            "/api/teams/filter": {
                "get": {
                    "tags": ["Teams"],
                    "summary": "Filter teams",
                    "description": "Returns teams filtered by name and/or minimum budget",
                    "parameters": [
                        _query("name", "Partial or full team name (case-insensitive)", {"type": "string"}),
                        _query("minBudget", "Minimum budget", {"type": "number"}),
                    ],
                    "responses": {
                        "200": {"description": "Filtered list of teams", "content": _json(_ref("PageTeam"))},
                        "400": {"description": "Invalid filter parameter", **error},
                    },
                },
            },
            "/api/teams/{id}": {
                "parameters": [_ID_PARAM],
                "patch": {
                    "tags": ["Teams"],
                    "summary": "Partially update a team",
                    "description": "Updates certain fields of an existing team (e.g., name, budget)",
                    "security": _BASIC_AUTH,
                    "requestBody": {"required": True, "content": _json(_ref("TeamPartialUpdateRequest"))},
                    "responses": {
                        "200": {"description": "Team updated successfully", "content": _json(_ref("Team"))},
                        "404": {"description": "Team not found", **error},
                    },
                },
                "put": {
                    "tags": ["Teams"],
                    "summary": "Fully update a team",
                    "description": "Replaces all data of an existing team, including its players",
                    "security": _BASIC_AUTH,
                    "requestBody": {"required": True, "content": _json(_ref("TeamRequest"))},
                    "responses": {
                        "200": {"description": "Team fully updated", "content": _json(_ref("Team"))},
                        "400": {"description": "Invalid request", **error},
                        "404": {"description": "Team not found", **error},
                    },
                },
                "delete": {
                    "tags": ["Teams"],
                    "summary": "Delete a team",
                    "description": "Deletes a team by its ID",
                    "security": _BASIC_AUTH,
                    "responses": {
                        "204": {"description": "Team deleted successfully"},
                        "404": {"description": "Team not found", **error},
                    },
                },
            },
        },
        "components": {
            "schemas": _components(),
            "securitySchemes": {"basicAuth": {"type": "http", "scheme": "basic"}},
        },
    }
