"""Pytest configuration and fixtures."""

import base64
from decimal import Decimal

import pytest

from app import Config, create_app
from services.team_models import Player, Position, Team
from services.team_repository import TeamRepository


@pytest.fixture
def app(tmp_path):
    """App wired to a fresh SQLite file per test."""

    class TestConfig(Config):
        PROFILE = "test"
        TESTING = True
        DEBUG = False
        DATABASE_URL = f"sqlite:///{tmp_path / 'teams.db'}"
        DB_CREATE_SCHEMA = True
        ENABLE_PROMETHEUS = False
        BASIC_AUTH_USERNAME = "admin"
        BASIC_AUTH_PASSWORD = "secret"
        BASIC_AUTH_REALM = "soccer"

    app = create_app(TestConfig)
    yield app
    app.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def engine(app):
    return app.engine


@pytest.fixture
def conn(engine):
    """A connection inside an open transaction, committed at teardown."""
    with engine.begin() as c:
        yield c


def basic_auth(username, password):
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def auth_headers():
    return basic_auth("admin", "secret")


@pytest.fixture
def seed_team(engine):
    """Persist a team (committed) and return it with its ids."""

    def _seed(name, acronym="ACR", budget="1", players=()):
        team = Team(
            name=name,
            acronym=acronym,
            budget=Decimal(budget),
            players=[Player(name=n, position=Position(pos)) for n, pos in players],
        )
        with engine.begin() as c:
            return TeamRepository(c).save(team)

    return _seed


@pytest.fixture
def load_team(engine):
    def _load(team_id):
        with engine.connect() as c:
            return TeamRepository(c).find_by_id(team_id)

    return _load
