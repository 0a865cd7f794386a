from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tourney.models.tournament import Tournament

RESULT_BYE = "Bye"
RESULT_UNPLAYED = "0-0"


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int
    sequence_in_round: int

    player1_id: int = Field(foreign_key="participant.id")
    # Null for a bye
    player2_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    winner_id: Optional[int] = Field(default=None, foreign_key="participant.id")

    result: Optional[str] = Field(default=None)  # "2-0", "1-1", "Bye", ... null until reported
    is_bye: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    tournament: "Tournament" = Relationship(back_populates="matches")
