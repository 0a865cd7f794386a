from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tourney.models.tournament import Tournament


class Participant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    display_name: str
    score: int = Field(default=0)
    dropped: bool = Field(default=False)
    note: Optional[str] = Field(default=None)

    tournament: "Tournament" = Relationship(back_populates="participants")
