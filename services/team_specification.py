# services/team_specification.py
"""
Composable filters over teams.

A specification is an AND of clauses. Each clause turns into a SQLAlchemy
criterion against the team table; absent inputs become tautologies so they
never exclude rows. `fetch_players()` does not filter at all, it only tells
the repository to left-join players and collapse duplicate team rows.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import and_, func, true


class Clause:
    fetches_players = False

    def criterion(self, team):
        return true()

    def __and__(self, other) -> "TeamSpecification":
        return all_of(self, other)


@dataclass(frozen=True)
class NameContains(Clause):
    name: Optional[str]

    def criterion(self, team):
        if self.name is None or not self.name.strip():
            return true()
        return func.lower(team.c.name).contains(self.name.lower(), autoescape=True)


@dataclass(frozen=True)
class BudgetAtLeast(Clause):
    minimum: Optional[Decimal]

    def criterion(self, team):
        if self.minimum is None:
            return true()
        return team.c.budget >= self.minimum


@dataclass(frozen=True)
class FetchPlayers(Clause):
    fetches_players = True


@dataclass(frozen=True)
class TeamSpecification:
    clauses: Tuple[Clause, ...] = ()

    @property
    def fetches_players(self) -> bool:
        return any(c.fetches_players for c in self.clauses)

    def criterion(self, team):
        return and_(true(), *(c.criterion(team) for c in self.clauses))

    def __and__(self, other) -> "TeamSpecification":
        return all_of(self, other)


def all_of(*parts) -> TeamSpecification:
    clauses = []
    for part in parts:
        if isinstance(part, TeamSpecification):
            clauses.extend(part.clauses)
        else:
            clauses.append(part)
    return TeamSpecification(tuple(clauses))


def name_contains_ignore_case(name: Optional[str]) -> Clause:
    return NameContains(name)


def budget_greater_than_or_equal_to(minimum: Optional[Decimal]) -> Clause:
    return BudgetAtLeast(minimum)


def fetch_players() -> Clause:
    return FetchPlayers()
