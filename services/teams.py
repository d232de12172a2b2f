# services/teams.py
"""
Team aggregate business logic.

Every public function takes a `conn` (caller manages commit/rollback).
The blueprint runs each request inside `engine.begin()`, so a failure
anywhere in a function leaves no partial writes behind.
"""

import logging
from decimal import Decimal
from typing import Optional

from errors import BadArgumentError, TeamNotFoundError
from services.team_models import Direction, Page, PageRequest, Player, Team
from services.team_repository import TeamRepository
from services.team_schemas import TeamPartialUpdateRequest, TeamResponse
from services.team_specification import (
    budget_greater_than_or_equal_to,
    fetch_players,
    name_contains_ignore_case,
)

logger = logging.getLogger("app")

FILTER_PAGE = PageRequest(page=0, size=10)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _require_all_fields(request) -> None:
    if _is_blank(request.name) or _is_blank(request.acronym) or request.budget is None:
        logger.info("Team write rejected - missing mandatory fields")
        raise BadArgumentError("Every field is required")


def _build_players(requests, team_id=None):
    return [
        Player(name=p.name, position=p.position, team_id=team_id)
        for p in (requests or [])
    ]


def find_with_all_players(conn, page: int, size: int, sort_by: str, direction: str) -> Page:
    logger.info(
        "Fetching teams with players - page=%s, size=%s, sortBy=%s, direction=%s",
        page, size, sort_by, direction,
    )
    pageable = PageRequest(page, size, sort_by, Direction.from_string(direction))
    result = TeamRepository(conn).find_all_with_players(pageable)
    logger.info("Found %s teams", result.total_elements)
    return result


def filter_teams(conn, name: Optional[str], min_budget: Optional[Decimal]) -> Page:
    logger.info("Filtering teams - name=%s, minBudget=%s", name, min_budget)
    spec = fetch_players() & name_contains_ignore_case(name) & budget_greater_than_or_equal_to(min_budget)
    result = TeamRepository(conn).find_by_filter(spec, FILTER_PAGE)
    logger.info("Found %s teams after filter", result.total_elements)
    return result


def add_team(conn, request):
    """
    Create a team and its players.

    Returns a TeamResponse carrying the ids the database assigned.
    """
    logger.info("Adding new team: name=%s acronym=%s", request.name, request.acronym)
    _require_all_fields(request)

    team = Team(
        name=request.name,
        acronym=request.acronym,
        budget=request.budget,
        players=_build_players(request.players),
    )
    saved = TeamRepository(conn).save(team)
    logger.info("Team created with ID=%s", saved.id)
    return TeamResponse.from_team(saved)


def update_team_partially(conn, team_id: int, patch) -> Team:
    """
    Apply the fields present in `patch` and leave the rest (and the squad)
    alone.

    `patch` may be a TeamPartialUpdateRequest or the raw JSON body, which
    is validated only once the team is known to exist, so an unknown id is
    reported as not-found whatever the body holds.
    """
    logger.info("Partially updating team ID=%s", team_id)
    repo = TeamRepository(conn)
    existing = repo.find_by_id(team_id, for_update=True)
    if existing is None:
        logger.info("Team with ID=%s not found for partial update", team_id)
        raise TeamNotFoundError(team_id)

    if not isinstance(patch, TeamPartialUpdateRequest):
        patch = TeamPartialUpdateRequest.model_validate(patch)

    if not _is_blank(patch.name):
        existing.name = patch.name
    if patch.budget is not None:
        existing.budget = patch.budget

    updated = repo.save(existing)
    logger.info("Team ID=%s partially updated", updated.id)
    return updated


def update_team_fully(conn, team_id: int, request) -> Team:
    """
    Replace every field of a team, including its whole squad.

    Current players are deleted and the deletion flushed before the new
    ones are inserted, so the resulting squad is exactly `request.players`
    with fresh ids even when names overlap with the old squad.
    """
    logger.info("Fully updating team ID=%s", team_id)
    _require_all_fields(request)

    repo = TeamRepository(conn)
    existing = repo.find_by_id(team_id, for_update=True)
    if existing is None:
        logger.info("Team with ID=%s not found for full update", team_id)
        raise TeamNotFoundError(team_id)

    existing.name = request.name
    existing.acronym = request.acronym
    existing.budget = request.budget

    repo.delete_players(existing.players)
    existing.players.clear()
    repo.flush()

    existing.players.extend(_build_players(request.players, team_id=existing.id))

    updated = repo.save(existing)
    logger.info("Team ID=%s fully updated with %s players", team_id, len(updated.players))
    return updated


def delete_team(conn, team_id: int) -> None:
    logger.info("Deleting team ID=%s", team_id)
    repo = TeamRepository(conn)
    if not repo.exists_by_id(team_id):
        logger.info("Team with ID=%s not found for deletion", team_id)
        raise TeamNotFoundError(team_id)

    repo.delete_by_id(team_id)
    logger.info("Team ID=%s deleted successfully", team_id)
