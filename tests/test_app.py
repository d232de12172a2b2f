"""Tests for the app factory: error envelope, JSON encoding, health and docs."""

import json
import logging
from decimal import Decimal

import pytest
from pydantic import BaseModel, ValidationError

from app import JsonFormatter, TeamsJSONProvider
from errors import _field_path, field_errors
from services.team_models import Position


class TestErrorEnvelope:
    def test_unexpected_error_is_masked(self, client, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("secret internals")

        monkeypatch.setattr("teams.find_with_all_players", boom)

        resp = client.get("/api/teams")
        body = resp.get_json()

        assert resp.status_code == 500
        assert body["message"] == "Unexpected server error"
        assert body["error"] == "Internal Server Error"
        assert set(body) == {"timestamp", "status", "error", "message"}

    def test_missing_body_is_a_bad_request(self, client, auth_headers):
        resp = client.post("/api/teams", headers=auth_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"].startswith("Required request body is missing")

    def test_oversized_body_is_rejected(self, app, client, auth_headers):
        app.config["REQUEST_MAX_BODY_BYTES"] = 10

        resp = client.post("/api/teams", json={"name": "A very long team name"}, headers=auth_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Request body too large"

    def test_oversized_anonymous_write_is_unauthorized(self, app, client):
        app.config["REQUEST_MAX_BODY_BYTES"] = 10

        resp = client.post("/api/teams", json={"name": "A very long team name"})

        assert resp.status_code == 401

    @pytest.mark.parametrize(
        "loc, expected",
        [(("name",), "name"), (("players", 0, "name"), "players[0].name"), ((), "body")],
    )
    def test_field_path(self, loc, expected):
        assert _field_path(loc) == expected

    def test_field_errors_from_pydantic(self):
        class Body(BaseModel):
            size: int
            label: str

        with pytest.raises(ValidationError) as exc:
            Body.model_validate({"size": "big"})

        fields = {f["field"]: f for f in field_errors(exc.value)}
        assert fields["size"]["rejectedValue"] == "big"
        assert fields["label"]["rejectedValue"] is None


class TestJsonEncoding:
    def test_decimals_become_numbers(self, app):
        provider = TeamsJSONProvider(app)

        out = json.loads(provider.dumps({"a": Decimal("800000000.00"), "b": Decimal("20.50")}))

        assert out == {"a": 800000000, "b": 20.5}

    def test_decimals_keep_every_digit(self, app):
        provider = TeamsJSONProvider(app)

        text = provider.dumps({"budget": Decimal("1234567890123456.78")})

        assert json.loads(text, parse_float=Decimal) == {"budget": Decimal("1234567890123456.78")}

    def test_floats_are_read_as_decimals(self, app):
        assert TeamsJSONProvider(app).loads('{"budget": 1234567890123456.78}') == {
            "budget": Decimal("1234567890123456.78")
        }

    def test_created_team_echoes_exact_budget(self, client, auth_headers):
        resp = client.post(
            "/api/teams",
            data='{"name": "Big Spenders", "acronym": "BSP", "budget": 1234567890123456.78}',
            content_type="application/json",
            headers=auth_headers,
        )

        assert resp.status_code == 201
        assert json.loads(resp.data, parse_float=Decimal)["budget"] == Decimal("1234567890123456.78")

    def test_enums_become_values(self, app):
        assert TeamsJSONProvider(app).dumps([Position.GOALKEEPER]) == '["GOALKEEPER"]'


class TestRequestId:
    def test_generated_when_missing(self, client):
        assert client.get("/healthz").headers["X-Request-ID"]

    def test_echoed_when_given(self, client):
        resp = client.get("/healthz", headers={"X-Request-ID": "abc-123"})

        assert resp.headers["X-Request-ID"] == "abc-123"


class TestLogging:
    def test_json_formatter_outside_request(self):
        record = logging.LogRecord("app", logging.INFO, __file__, 1, "hello %s", ("world",), None)

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "app"
        assert "path" not in payload

    def test_json_formatter_inside_request(self, app):
        record = logging.LogRecord("app", logging.INFO, __file__, 1, "hi", (), None)

        with app.test_request_context("/api/teams", method="GET"):
            payload = json.loads(JsonFormatter().format(record))

        assert payload["path"] == "/api/teams"
        assert payload["method"] == "GET"


class TestHealthAndDocs:
    def test_healthz(self, client):
        assert client.get("/healthz").get_json()["status"] == "ok"

    def test_readyz_pings_database(self, client):
        resp = client.get("/readyz")

        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ready"

    def test_openapi_document(self, client):
        doc = client.get("/v3/api-docs").get_json()

        assert doc["openapi"].startswith("3.")
        assert set(doc["paths"]) == {"/api/teams", "/api/teams/filter", "/api/teams/{id}"}
        assert doc["paths"]["/api/teams"]["post"]["security"] == [{"basicAuth": []}]
        assert "security" not in doc["paths"]["/api/teams"]["get"]
        schemas = doc["components"]["schemas"]
        assert {"TeamRequest", "PlayerRequest", "TeamPartialUpdateRequest", "TeamResponse", "Position"} <= set(schemas)
        assert set(schemas["TeamRequest"]["required"]) == {"name", "acronym", "budget"}
