"""Tests for the composable team filters."""

from decimal import Decimal

from services.team_models import PageRequest
from services.team_repository import TeamRepository
from services.team_specification import (
    BudgetAtLeast,
    FetchPlayers,
    NameContains,
    TeamSpecification,
    all_of,
    budget_greater_than_or_equal_to,
    fetch_players,
    name_contains_ignore_case,
)

PAGE = PageRequest(page=0, size=10)


def _names(conn, spec):
    return sorted(t.name for t in TeamRepository(conn).find_by_filter(spec, PAGE).content)


class TestComposition:
    def test_and_flattens_clauses_in_order(self):
        spec = fetch_players() & name_contains_ignore_case("om") & budget_greater_than_or_equal_to(Decimal("5"))

        assert isinstance(spec, TeamSpecification)
        assert spec.clauses == (FetchPlayers(), NameContains("om"), BudgetAtLeast(Decimal("5")))

    def test_fetches_players_only_with_fetch_clause(self):
        assert all_of(fetch_players()).fetches_players is True
        assert all_of(name_contains_ignore_case("x")).fetches_players is False
        assert TeamSpecification().fetches_players is False

    def test_all_of_merges_nested_specifications(self):
        inner = name_contains_ignore_case("a") & budget_greater_than_or_equal_to(None)
        spec = all_of(fetch_players(), inner)

        assert len(spec.clauses) == 3


class TestClausesAgainstDatabase:
    def test_name_contains_is_case_insensitive(self, seed_team, conn):
        seed_team("Olympique de Marseille")
        seed_team("Olympique Lyonnais")
        seed_team("Paris Saint-Germain")

        assert _names(conn, all_of(name_contains_ignore_case("OLYMPIQUE"))) == [
            "Olympique Lyonnais",
            "Olympique de Marseille",
        ]

    def test_name_contains_folds_accented_letters(self, seed_team, conn):
        seed_team("Évian Thonon Gaillard")
        seed_team("Evian Amateurs")

        assert _names(conn, all_of(name_contains_ignore_case("évian"))) == ["Évian Thonon Gaillard"]
        assert _names(conn, all_of(name_contains_ignore_case("ÉVIAN"))) == ["Évian Thonon Gaillard"]

    def test_blank_or_missing_name_matches_everything(self, seed_team, conn):
        seed_team("OM")
        seed_team("OL")

        assert _names(conn, all_of(name_contains_ignore_case(None))) == ["OL", "OM"]
        assert _names(conn, all_of(name_contains_ignore_case("   "))) == ["OL", "OM"]

    def test_like_wildcards_are_matched_literally(self, seed_team, conn):
        seed_team("OM")
        seed_team("100% Club")

        assert _names(conn, all_of(name_contains_ignore_case("%"))) == ["100% Club"]
        assert _names(conn, all_of(name_contains_ignore_case("_"))) == []

    def test_budget_threshold_is_inclusive(self, seed_team, conn):
        seed_team("OM", budget="10000000")
        seed_team("OL", budget="5000000")

        assert _names(conn, all_of(budget_greater_than_or_equal_to(Decimal("10000000")))) == ["OM"]
        assert _names(conn, all_of(budget_greater_than_or_equal_to(Decimal("5000000")))) == ["OL", "OM"]
        assert _names(conn, all_of(budget_greater_than_or_equal_to(None))) == ["OL", "OM"]

    def test_clauses_combine_with_and(self, seed_team, conn):
        seed_team("OM", budget="10000000")
        seed_team("Olympique Lyonnais", budget="5000000")

        spec = name_contains_ignore_case("o") & budget_greater_than_or_equal_to(Decimal("6000000"))
        assert _names(conn, spec) == ["OM"]

    def test_without_fetch_players_teams_have_no_players_loaded(self, seed_team, conn):
        seed_team("OM", players=[("Payet", "MIDFIELDER")])

        page = TeamRepository(conn).find_by_filter(all_of(name_contains_ignore_case("om")), PAGE)

        assert page.content[0].players == []

    def test_fetch_players_loads_players_without_duplicating_teams(self, seed_team, conn):
        seed_team("OM", players=[("Payet", "MIDFIELDER"), ("Mandanda", "GOALKEEPER"), ("Thauvin", "FORWARD")])
        seed_team("OL", players=[("Lacazette", "FORWARD")])

        page = TeamRepository(conn).find_by_filter(all_of(fetch_players()), PAGE)

        assert page.total_elements == 2
        assert [t.name for t in page.content] == ["OM", "OL"]
        assert [p.name for p in page.content[0].players] == ["Payet", "Mandanda", "Thauvin"]
