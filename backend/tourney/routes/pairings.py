"""
Stateless pairing preview. Nothing is stored; the caller supplies the
participant ids in seating order.
"""

from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from tourney.services.round_robin import (
    Pairing,
    PairingError,
    cycle_length,
    generate_round,
    generate_schedule,
)

router = APIRouter()

# Preview size limits
MAX_PREVIEW_PARTICIPANTS = 512
MAX_PREVIEW_CYCLES = 10


class RoundRequest(BaseModel):
    participants: List[Union[int, str]] = Field(max_length=MAX_PREVIEW_PARTICIPANTS)
    round_number: int
    wrap: bool = True


class ScheduleRequest(BaseModel):
    participants: List[Union[int, str]] = Field(max_length=MAX_PREVIEW_PARTICIPANTS)
    cycles: int = Field(default=1, ge=1, le=MAX_PREVIEW_CYCLES)


class PairingOut(BaseModel):
    round_number: int
    sequence_in_round: int
    player1: Union[int, str]
    player2: Optional[Union[int, str]] = None  # null for a bye
    is_bye: bool


class RoundOut(BaseModel):
    round_number: int
    cycle_length: int
    pairings: List[PairingOut]


class ScheduleOut(BaseModel):
    cycle_length: int
    rounds: List[RoundOut]


def _pairing_out(p: Pairing) -> PairingOut:
    return PairingOut(
        round_number=p.round_number,
        sequence_in_round=p.sequence_in_round,
        player1=p.player1,
        player2=None if p.is_bye else p.player2,
        is_bye=p.is_bye,
    )


@router.post("/pairings/round-robin", response_model=RoundOut)
def preview_round(request: RoundRequest):
    """Circle-method pairings for one round"""
    try:
        pairings = generate_round(request.participants, request.round_number, wrap=request.wrap)
    except PairingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return RoundOut(
        round_number=request.round_number,
        cycle_length=cycle_length(len(request.participants)),
        pairings=[_pairing_out(p) for p in pairings],
    )


@router.post("/pairings/round-robin/schedule", response_model=ScheduleOut)
def preview_schedule(request: ScheduleRequest):
    """Every round of one or more full cycles"""
    try:
        rounds = generate_schedule(request.participants, cycles=request.cycles)
    except PairingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    cycle = cycle_length(len(request.participants))
    return ScheduleOut(
        cycle_length=cycle,
        rounds=[
            RoundOut(round_number=i, cycle_length=cycle, pairings=[_pairing_out(p) for p in pairings])
            for i, pairings in enumerate(rounds, start=1)
        ],
    )
