from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from tourney.database import get_session
from tourney.services.tournament_service import TournamentNotFound, TournamentStateError, report_result

router = APIRouter()


class MatchResponse(BaseModel):
    id: int
    tournament_id: int
    round_number: int
    sequence_in_round: int
    player1_id: int
    player2_id: Optional[int] = None
    winner_id: Optional[int] = None
    result: Optional[str] = None
    is_bye: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MatchResultReport(BaseModel):
    winner_id: Optional[int] = None  # null for a draw
    result: str

    @field_validator("result")
    @classmethod
    def validate_result(cls, v):
        if not v or not v.strip():
            raise ValueError("result is required")
        return v.strip()


@router.post("/matches/{match_id}/result", response_model=MatchResponse)
def report_match_result(match_id: int, report: MatchResultReport, session: Session = Depends(get_session)):
    """Report a result; participant scores are recomputed"""
    try:
        return report_result(session, match_id, report.winner_id, report.result)
    except TournamentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TournamentStateError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/matches/{match_id}/result", response_model=MatchResponse)
def correct_match_result(match_id: int, report: MatchResultReport, session: Session = Depends(get_session)):
    """Overwrite a reported result (admin correction)"""
    try:
        return report_result(session, match_id, report.winner_id, report.result, correction=True)
    except TournamentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TournamentStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
