from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from tourney.database import get_session
from tourney.models.match import Match
from tourney.models.participant import Participant
from tourney.models.tournament import STATUS_PENDING, TOURNAMENT_TYPES, TYPE_SWISS, Tournament
from tourney.routes.matches import MatchResponse
from tourney.services.round_robin import PairingError
from tourney.services.tournament_service import (
    TournamentNotFound,
    TournamentStateError,
    advance_round,
    finish_tournament,
    get_tournament,
    start_tournament,
)

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    type: str = TYPE_SWISS

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v not in TOURNAMENT_TYPES:
            raise ValueError(f"type must be one of {', '.join(TOURNAMENT_TYPES)}")
        return v


class TournamentResponse(BaseModel):
    id: int
    name: str
    type: str
    status: str
    total_rounds: int
    current_round: int
    created_at: datetime
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class ParticipantCreate(BaseModel):
    display_name: str
    note: Optional[str] = None

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v):
        if not v or not v.strip():
            raise ValueError("display_name is required")
        return v.strip()


class ParticipantResponse(BaseModel):
    id: int
    tournament_id: int
    display_name: str
    score: int
    dropped: bool
    note: Optional[str] = None

    class Config:
        from_attributes = True


def _load_tournament(session: Session, tournament_id: int) -> Tournament:
    try:
        return get_tournament(session, tournament_id)
    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")


def _run_lifecycle(action, session: Session, tournament_id: int) -> Tournament:
    try:
        return action(session, tournament_id)
    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except (TournamentStateError, PairingError) as e:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a pending tournament"""
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def read_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return _load_tournament(session, tournament_id)


@router.get("/tournaments/{tournament_id}/participants", response_model=List[ParticipantResponse])
def list_participants(tournament_id: int, session: Session = Depends(get_session)):
    _load_tournament(session, tournament_id)
    return session.exec(
        select(Participant).where(Participant.tournament_id == tournament_id).order_by(Participant.id)
    ).all()


@router.post("/tournaments/{tournament_id}/participants", response_model=ParticipantResponse, status_code=201)
def add_participant(tournament_id: int, data: ParticipantCreate, session: Session = Depends(get_session)):
    """Register a participant. Only allowed before the tournament starts."""
    tournament = _load_tournament(session, tournament_id)
    if tournament.status != STATUS_PENDING:
        raise HTTPException(status_code=400, detail="Tournament already started")

    participant = Participant(tournament_id=tournament_id, **data.model_dump())
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return participant


@router.post("/tournaments/{tournament_id}/participants/{participant_id}/drop", response_model=ParticipantResponse)
def drop_participant(tournament_id: int, participant_id: int, session: Session = Depends(get_session)):
    """Drop a participant; they are left out of every round paired afterwards."""
    _load_tournament(session, tournament_id)
    participant = session.get(Participant, participant_id)
    if not participant or participant.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Participant not found")

    participant.dropped = True
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return participant


@router.post("/tournaments/{tournament_id}/start", response_model=TournamentResponse)
def start(tournament_id: int, session: Session = Depends(get_session)):
    """Start the tournament and pair the opening round (every round for round robin)"""
    return _run_lifecycle(start_tournament, session, tournament_id)


@router.post("/tournaments/{tournament_id}/next-round", response_model=TournamentResponse)
def next_round(tournament_id: int, session: Session = Depends(get_session)):
    """Close the current round (unreported matches become 0-0) and open the next one"""
    return _run_lifecycle(advance_round, session, tournament_id)


@router.post("/tournaments/{tournament_id}/finish", response_model=TournamentResponse)
def finish(tournament_id: int, session: Session = Depends(get_session)):
    return _run_lifecycle(finish_tournament, session, tournament_id)


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(tournament_id: int, round_number: Optional[int] = None, session: Session = Depends(get_session)):
    """Matches for a tournament, optionally filtered to one round"""
    _load_tournament(session, tournament_id)
    query = select(Match).where(Match.tournament_id == tournament_id)
    if round_number is not None:
        query = query.where(Match.round_number == round_number)
    return session.exec(query.order_by(Match.round_number, Match.sequence_in_round)).all()
