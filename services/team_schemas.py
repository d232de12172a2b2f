# services/team_schemas.py
"""Request and response bodies for the teams API."""

from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field
from pydantic_core import PydanticCustomError

from services.team_models import Position, Team


def _not_blank(v: str) -> str:
    if not v.strip():
        raise PydanticCustomError("blank", "must not be blank")
    return v


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


class PlayerRequest(BaseModel):
    name: NonBlankStr = Field(..., description="Player name")
    position: Position = Field(..., description="Playing position")


class TeamRequest(BaseModel):
    """Body of POST /api/teams and PUT /api/teams/{id}."""

    name: NonBlankStr = Field(..., description="Team name")
    acronym: NonBlankStr = Field(..., description="Short team code, e.g. PSG")
    budget: Decimal = Field(..., ge=0, description="Team budget")
    players: Optional[List[PlayerRequest]] = Field(None, description="Squad; omitted or null means no players")


class TeamPartialUpdateRequest(BaseModel):
    """Body of PATCH /api/teams/{id}; absent fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=2, description="New team name")
    budget: Optional[Decimal] = Field(None, ge=0, description="New team budget")


class PlayerResponse(BaseModel):
    id: int
    name: str
    position: Position


class TeamResponse(BaseModel):
    id: int
    name: str
    acronym: Optional[str]
    budget: Optional[Decimal]
    players: List[PlayerResponse] = []

    @classmethod
    def from_team(cls, team: Team) -> "TeamResponse":
        return cls(
            id=team.id,
            name=team.name,
            acronym=team.acronym,
            budget=team.budget,
            players=[
                PlayerResponse(id=p.id, name=p.name, position=p.position)
                for p in team.players
            ],
        )
