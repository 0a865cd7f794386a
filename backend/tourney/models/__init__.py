from tourney.models.match import Match
from tourney.models.participant import Participant
from tourney.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Participant",
    "Match",
]
