from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tourney.models.match import Match
    from tourney.models.participant import Participant

TYPE_ROUND_ROBIN = "round_robin"
TYPE_SWISS = "swiss"
TOURNAMENT_TYPES = (TYPE_ROUND_ROBIN, TYPE_SWISS)

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    type: str = Field(default=TYPE_SWISS)  # "swiss" | "round_robin"
    status: str = Field(default=STATUS_PENDING)  # "pending" | "active" | "completed"
    total_rounds: int = Field(default=3)
    current_round: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)

    # Relationships
    participants: List["Participant"] = Relationship(back_populates="tournament")
    matches: List["Match"] = Relationship(back_populates="tournament")
