"""
Tournament round service.

Turns pairings into Match rows and moves a tournament through its lifecycle:

    pending --start--> active --next-round--> ... --finish--> completed

Round robin tournaments record every round at start (the circle method needs
only the fixed participant order). Swiss tournaments record one round at a
time, paired on the scores of the rounds already played.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Set

from sqlmodel import Session, select

from tourney.models.match import RESULT_BYE, RESULT_UNPLAYED, Match
from tourney.models.participant import Participant
from tourney.models.tournament import (
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_PENDING,
    TYPE_ROUND_ROBIN,
    TYPE_SWISS,
    Tournament,
)
from tourney.services.round_robin import InvalidInput, Pairing, cycle_length, generate_round
from tourney.services.swiss import swiss_pairings, swiss_round_count

logger = logging.getLogger(__name__)


class TournamentServiceError(Exception):
    """Base class for tournament service failures"""

    pass


class TournamentNotFound(TournamentServiceError):
    """Raised when the tournament (or one of its rows) does not exist"""

    pass


class TournamentStateError(TournamentServiceError):
    """Raised when an operation is not allowed in the tournament's current state"""

    pass


def get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(f"Tournament {tournament_id} not found")
    return tournament


def total_rounds_for(tournament_type: str, participant_count: int) -> int:
    """Round robin: one full cycle. Swiss: ceil(log2(n))."""
    if tournament_type == TYPE_ROUND_ROBIN:
        return cycle_length(participant_count)
    if tournament_type == TYPE_SWISS:
        return swiss_round_count(participant_count)
    raise InvalidInput(f"Unknown tournament type: {tournament_type}")


def active_participants(session: Session, tournament_id: int) -> List[Participant]:
    """Non-dropped participants ordered by id (fixed seating for the circle method)."""
    return list(
        session.exec(
            select(Participant)
            .where(Participant.tournament_id == tournament_id, Participant.dropped == False)  # noqa: E712
            .order_by(Participant.id)
        ).all()
    )


def round_matches(session: Session, tournament_id: int, round_number: int) -> List[Match]:
    return list(
        session.exec(
            select(Match)
            .where(Match.tournament_id == tournament_id, Match.round_number == round_number)
            .order_by(Match.sequence_in_round)
        ).all()
    )


def _swiss_history(session: Session, tournament_id: int):
    opponents: Dict[int, Set[int]] = defaultdict(set)
    byes: Set[int] = set()
    for match in session.exec(select(Match).where(Match.tournament_id == tournament_id)).all():
        if match.is_bye:
            byes.add(match.player1_id)
            continue
        opponents[match.player1_id].add(match.player2_id)
        opponents[match.player2_id].add(match.player1_id)
    return opponents, byes


def _pairings_for(session: Session, tournament: Tournament, round_number: int) -> List[Pairing]:
    participants = active_participants(session, tournament.id)

    if tournament.type == TYPE_ROUND_ROBIN:
        return generate_round([p.id for p in participants], round_number)

    opponents, byes = _swiss_history(session, tournament.id)
    standings = [(p.id, p.score) for p in participants]
    return swiss_pairings(standings, round_number, previous_opponents=opponents, previous_byes=byes)


def create_round_matches(session: Session, tournament: Tournament, round_number: int) -> List[Match]:
    """
    Record Match rows for one round. Does not commit.

    A bye is stored against the real participant with no opponent and counts
    as a win.

    Raises:
        TournamentStateError: the round already has matches
        InvalidInput: fewer than 2 active participants
    """
    if round_matches(session, tournament.id, round_number):
        raise TournamentStateError(f"Round {round_number} already has matches")

    pairings = _pairings_for(session, tournament, round_number)

    created: List[Match] = []
    for pairing in pairings:
        if pairing.is_bye:
            match = Match(
                tournament_id=tournament.id,
                round_number=round_number,
                sequence_in_round=pairing.sequence_in_round,
                player1_id=pairing.player1,
                player2_id=None,
                winner_id=pairing.player1,
                result=RESULT_BYE,
                is_bye=True,
            )
        else:
            match = Match(
                tournament_id=tournament.id,
                round_number=round_number,
                sequence_in_round=pairing.sequence_in_round,
                player1_id=pairing.player1,
                player2_id=pairing.player2,
            )
        session.add(match)
        created.append(match)

    session.flush()
    logger.info(
        "Tournament %d round %d: created %d matches (%d byes)",
        tournament.id,
        round_number,
        len(created),
        sum(1 for m in created if m.is_bye),
    )
    return created


def _auto_resolve_round(session: Session, tournament_id: int, round_number: int) -> int:
    """Unreported matches become 0-0 with no winner. Returns how many were resolved."""
    resolved = 0
    for match in round_matches(session, tournament_id, round_number):
        if match.is_bye or match.result is not None:
            continue
        match.result = RESULT_UNPLAYED
        match.winner_id = None
        session.add(match)
        resolved += 1
    if resolved:
        logger.info("Tournament %d round %d: auto-resolved %d matches as 0-0", tournament_id, round_number, resolved)
    return resolved


def recompute_scores(session: Session, tournament_id: int, up_to_round: int) -> None:
    """Score = matches won in rounds 1..up_to_round; a bye counts as a win."""
    wins: Dict[int, int] = defaultdict(int)
    query = select(Match).where(Match.tournament_id == tournament_id, Match.round_number <= up_to_round)
    for match in session.exec(query).all():
        if match.winner_id is not None:
            wins[match.winner_id] += 1

    participants = session.exec(select(Participant).where(Participant.tournament_id == tournament_id)).all()
    for participant in participants:
        participant.score = wins[participant.id]
        session.add(participant)


def start_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = get_tournament(session, tournament_id)
    if tournament.status != STATUS_PENDING:
        raise TournamentStateError("Tournament already started")

    participant_count = len(active_participants(session, tournament_id))
    if participant_count < 2:
        raise TournamentStateError("Need at least 2 participants to start")

    tournament.total_rounds = total_rounds_for(tournament.type, participant_count)
    tournament.status = STATUS_ACTIVE
    tournament.current_round = 1
    tournament.start_date = datetime.now(timezone.utc)
    session.add(tournament)

    if tournament.type == TYPE_ROUND_ROBIN:
        for round_number in range(1, tournament.total_rounds + 1):
            create_round_matches(session, tournament, round_number)
    else:
        create_round_matches(session, tournament, 1)

    recompute_scores(session, tournament_id, tournament.current_round)
    session.commit()
    session.refresh(tournament)

    logger.info(
        "Started %s tournament %d with %d participants, %d rounds",
        tournament.type,
        tournament.id,
        participant_count,
        tournament.total_rounds,
    )
    return tournament


def advance_round(session: Session, tournament_id: int) -> Tournament:
    tournament = get_tournament(session, tournament_id)
    if tournament.status != STATUS_ACTIVE:
        raise TournamentStateError("Tournament is not active")
    if tournament.current_round >= tournament.total_rounds:
        raise TournamentStateError("Tournament already at max rounds")

    _auto_resolve_round(session, tournament_id, tournament.current_round)
    session.flush()
    # Swiss pairs the next round on these scores
    recompute_scores(session, tournament_id, tournament.current_round)
    session.flush()

    next_round = tournament.current_round + 1
    tournament.current_round = next_round
    session.add(tournament)

    if not round_matches(session, tournament_id, next_round):
        create_round_matches(session, tournament, next_round)
    recompute_scores(session, tournament_id, next_round)

    session.commit()
    session.refresh(tournament)
    return tournament


def finish_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = get_tournament(session, tournament_id)
    if tournament.status != STATUS_ACTIVE:
        raise TournamentStateError("Tournament is not active")

    for round_number in range(1, tournament.current_round + 1):
        _auto_resolve_round(session, tournament_id, round_number)
    session.flush()
    recompute_scores(session, tournament_id, tournament.current_round)

    tournament.status = STATUS_COMPLETED
    tournament.end_date = datetime.now(timezone.utc)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


def report_result(session: Session, match_id: int, winner_id, result: str, correction: bool = False) -> Match:
    """
    Record a match result. winner_id None means a draw.

    A match takes one report. Overwriting an existing result (including a 0-0
    auto-resolution) needs correction=True.

    Raises:
        TournamentNotFound: match does not exist
        TournamentStateError: bye match, tournament not active, round not yet
            reached, already reported, or winner not in the match
    """
    match = session.get(Match, match_id)
    if not match:
        raise TournamentNotFound(f"Match {match_id} not found")
    if match.is_bye:
        raise TournamentStateError("Cannot report a result for a bye")

    tournament = get_tournament(session, match.tournament_id)
    if tournament.status != STATUS_ACTIVE:
        raise TournamentStateError("Tournament is not active")
    if match.round_number > tournament.current_round:
        raise TournamentStateError(
            f"Round {match.round_number} has not started (current round {tournament.current_round})"
        )
    if match.result is not None and not correction:
        raise TournamentStateError("Match already reported")
    if winner_id is not None and winner_id not in (match.player1_id, match.player2_id):
        raise TournamentStateError(f"Participant {winner_id} did not play match {match_id}")

    if match.result is not None:
        logger.info("Match %d: correcting result %s -> %s", match_id, match.result, result)

    match.winner_id = winner_id
    match.result = result
    session.add(match)
    session.flush()
    recompute_scores(session, match.tournament_id, tournament.current_round)
    session.commit()
    session.refresh(match)
    return match
