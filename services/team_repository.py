# services/team_repository.py
"""
Persistence for the Team aggregate (team + owned player rows).

A TeamRepository is bound to one connection. The caller opens the
transaction (`engine.begin()`), so everything done through one repository
commits or rolls back together.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, insert, select, update

from db import player_table, team_table
from services.team_models import Page, PageRequest, Player, Position, Team
from services.team_specification import TeamSpecification

logger = logging.getLogger("app")

SORTABLE_FIELDS = ("id", "name", "acronym", "budget")


def _order_by(pageable: PageRequest, source):
    if pageable.sort_by is None:
        return [source.c.id.asc()]
    if pageable.sort_by not in SORTABLE_FIELDS:
        raise ValueError(f"No property '{pageable.sort_by}' found for type 'Team'")
    col = source.c[pageable.sort_by]
    primary = col.desc() if pageable.direction.value == "desc" else col.asc()
    # id tie-break keeps page boundaries stable
    if pageable.sort_by == "id":
        return [primary]
    return [primary, source.c.id.asc()]


def _row_to_team(m) -> Team:
    return Team(
        id=m["id"],
        name=m["name"],
        acronym=m["acronym"],
        budget=m["budget"],
    )


class TeamRepository:
    def __init__(self, conn):
        self.conn = conn
        self._pending_player_deletes: List[int] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_all_with_players(self, pageable: PageRequest) -> Page:
        return self._load_page(None, pageable, fetch_players=True)

    def find_by_filter(self, spec: TeamSpecification, pageable: PageRequest) -> Page:
        return self._load_page(spec.criterion(team_table), pageable, spec.fetches_players)

    def find_by_id(self, team_id: int, for_update: bool = False) -> Optional[Team]:
        stmt = select(team_table).where(team_table.c.id == team_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self.conn.execute(stmt).first()
        if not row:
            return None
        team = _row_to_team(row._mapping)
        team.players = self._players_for([team_id]).get(team_id, [])
        return team

    def exists_by_id(self, team_id: int) -> bool:
        count = self.conn.execute(
            select(func.count()).select_from(team_table).where(team_table.c.id == team_id)
        ).scalar_one()
        return count > 0

    def _players_for(self, team_ids: Iterable[int]) -> Dict[int, List[Player]]:
        rows = self.conn.execute(
            select(player_table)
            .where(player_table.c.team_id.in_(list(team_ids)))
            .order_by(player_table.c.id)
        ).all()
        by_team: Dict[int, List[Player]] = {}
        for r in rows:
            m = r._mapping
            by_team.setdefault(m["team_id"], []).append(
                Player(id=m["id"], name=m["name"], position=Position(m["position"]), team_id=m["team_id"])
            )
        return by_team

    def _load_page(self, criterion, pageable: PageRequest, fetch_players: bool) -> Page:
        order = _order_by(pageable, team_table)

        count_stmt = select(func.count()).select_from(team_table)
        if criterion is not None:
            count_stmt = count_stmt.where(criterion)
        total = self.conn.execute(count_stmt).scalar_one()

        page_ids = select(team_table.c.id)
        if criterion is not None:
            page_ids = page_ids.where(criterion)
        page_ids = page_ids.order_by(*order).limit(pageable.size).offset(pageable.offset).subquery()

        if not fetch_players:
            rows = self.conn.execute(
                select(team_table)
                .select_from(team_table.join(page_ids, page_ids.c.id == team_table.c.id))
                .order_by(*order)
            ).all()
            return Page([_row_to_team(r._mapping) for r in rows], pageable, total)

        stmt = (
            select(
                team_table,
                player_table.c.id.label("player_id"),
                player_table.c.name.label("player_name"),
                player_table.c.position.label("player_position"),
            )
            .select_from(
                team_table
                .join(page_ids, page_ids.c.id == team_table.c.id)
                .outerjoin(player_table, player_table.c.team_id == team_table.c.id)
            )
            .order_by(*order, player_table.c.id.asc())
        )

        # Collapse the join back to one Team per id, keeping sort order
        teams: Dict[int, Team] = {}
        for row in self.conn.execute(stmt).all():
            m = row._mapping
            team = teams.get(m["id"])
            if team is None:
                team = teams[m["id"]] = _row_to_team(m)
            if m["player_id"] is not None:
                team.players.append(Player(
                    id=m["player_id"],
                    name=m["player_name"],
                    position=Position(m["player_position"]),
                    team_id=m["id"],
                ))
        return Page(list(teams.values()), pageable, total)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def delete_players(self, players: Iterable[Player]) -> None:
        """Schedule players for deletion; `flush()` (or `save()`) runs it."""
        self._pending_player_deletes.extend(p.id for p in players if p.id is not None)

    def flush(self) -> None:
        if not self._pending_player_deletes:
            return
        ids = self._pending_player_deletes
        self._pending_player_deletes = []
        self.conn.execute(delete(player_table).where(player_table.c.id.in_(ids)))
        logger.info("players_deleted count=%s", len(ids))

    def save(self, team: Team) -> Team:
        self.flush()

        values = {
            "name": team.name,
            "acronym": team.acronym,
            "budget": Decimal(str(team.budget)) if team.budget is not None else None,
        }
        if team.id is None:
            result = self.conn.execute(insert(team_table).values(**values))
            team.id = result.inserted_primary_key[0]
        else:
            self.conn.execute(update(team_table).where(team_table.c.id == team.id).values(**values))

            # Orphan removal: rows no longer in the team's list go away
            keep = [p.id for p in team.players if p.id is not None]
            stmt = delete(player_table).where(player_table.c.team_id == team.id)
            if keep:
                stmt = stmt.where(player_table.c.id.not_in(keep))
            self.conn.execute(stmt)

        for player in team.players:
            player.team_id = team.id
            if player.id is None:
                result = self.conn.execute(
                    insert(player_table).values(
                        name=player.name,
                        position=player.position.value,
                        team_id=team.id,
                    )
                )
                player.id = result.inserted_primary_key[0]
            else:
                self.conn.execute(
                    update(player_table)
                    .where(player_table.c.id == player.id)
                    .values(name=player.name, position=player.position.value)
                )
        return team

    def delete_by_id(self, team_id: int) -> None:
        self.conn.execute(delete(player_table).where(player_table.c.team_id == team_id))
        self.conn.execute(delete(team_table).where(team_table.c.id == team_id))
