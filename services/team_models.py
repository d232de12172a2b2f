# services/team_models.py
"""
Team aggregate and paging value types.

A Team owns its Players; the parent link is kept as `team_id` on the
player and never serialised.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class Position(str, Enum):
    GOALKEEPER = "GOALKEEPER"
    DEFENDER = "DEFENDER"
    MIDFIELDER = "MIDFIELDER"
    FORWARD = "FORWARD"


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "Direction":
        """Anything other than 'desc' (any case) sorts ascending."""
        if value is not None and value.strip().lower() == "desc":
            return cls.DESC
        return cls.ASC


@dataclass
class Player:
    name: str
    position: Position
    id: Optional[int] = None
    team_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.value,
        }


@dataclass
class Team:
    name: str
    acronym: Optional[str]
    budget: Optional[Decimal]
    id: Optional[int] = None
    players: List[Player] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "acronym": self.acronym,
            "budget": self.budget,
            "players": [p.to_dict() for p in self.players],
        }


@dataclass(frozen=True)
class PageRequest:
    page: int
    size: int
    sort_by: Optional[str] = None
    direction: Direction = Direction.ASC

    def __post_init__(self):
        if self.page < 0:
            raise ValueError("Page index must not be less than zero")
        if self.size < 1:
            raise ValueError("Page size must not be less than one")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page:
    content: List[Any]
    pageable: PageRequest
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.pageable.size) if self.total_elements else 0

    def to_dict(self, serialize: Callable[[Any], Any] = lambda item: item.to_dict()) -> Dict[str, Any]:
        sort = []
        if self.pageable.sort_by:
            sort.append({
                "property": self.pageable.sort_by,
                "direction": self.pageable.direction.value.upper(),
            })
        number = self.pageable.page
        return {
            "content": [serialize(item) for item in self.content],
            "totalElements": self.total_elements,
            "totalPages": self.total_pages,
            "number": number,
            "size": self.pageable.size,
            "numberOfElements": len(self.content),
            "first": number == 0,
            "last": number + 1 >= self.total_pages,
            "empty": not self.content,
            "sort": sort,
        }
