"""
Swiss pairing: score groups, adjacent opponents.

Participants are ranked by score (stable on input order). The pairing is the
rematch-free one closest to straight adjacent pairing, found by a bounded
depth-first search. When none exists, each player takes the next-ranked
unpaired player they have not met, or the next-ranked player if all are
rematches. For odd fields the lowest-ranked player without a previous bye
sits out.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from tourney.services.round_robin import (
    BYE,
    InvalidInput,
    Pairing,
    ParticipantId,
    validate_participants,
)

logger = logging.getLogger(__name__)


def swiss_round_count(n: int) -> int:
    """ceil(log2(n)) rounds, at least 1."""
    if n < 2:
        raise InvalidInput(f"Swiss needs at least 2 participants, got {n}")
    return max(1, math.ceil(math.log2(n)))


def _pick_bye(ranked: List[ParticipantId], previous_byes: Set[ParticipantId]) -> ParticipantId:
    for pid in reversed(ranked):
        if pid not in previous_byes:
            return pid
    return ranked[-1]


# Upper bound on search steps before giving up on a rematch-free pairing
MAX_SEARCH_STEPS = 10000


def _pair_without_rematches(
    ranked: List[ParticipantId], met: Dict[ParticipantId, Set[ParticipantId]]
) -> Optional[List[Tuple[ParticipantId, ParticipantId]]]:
    """
    Depth-first search over opponents in rank order; the first complete pairing
    found is the one closest to straight adjacent pairing. None if there is no
    rematch-free pairing (or the search budget runs out).
    """
    steps = 0

    def search(unpaired: List[ParticipantId]) -> Optional[List[Tuple[ParticipantId, ParticipantId]]]:
        nonlocal steps
        if not unpaired:
            return []
        player1, rest = unpaired[0], unpaired[1:]
        faced = met.get(player1, set())
        for i, opponent in enumerate(rest):
            steps += 1
            if steps > MAX_SEARCH_STEPS:
                return None
            if opponent in faced:
                continue
            tail = search(rest[:i] + rest[i + 1:])
            if tail is not None:
                return [(player1, opponent)] + tail
        return None

    return search(list(ranked))


def _pair_greedy(
    ranked: List[ParticipantId], met: Dict[ParticipantId, Set[ParticipantId]]
) -> List[Tuple[ParticipantId, ParticipantId]]:
    pairs: List[Tuple[ParticipantId, ParticipantId]] = []
    unpaired = list(ranked)
    while unpaired:
        player1 = unpaired.pop(0)
        faced = met.get(player1, set())
        opponent = next((pid for pid in unpaired if pid not in faced), unpaired[0])
        unpaired.remove(opponent)
        pairs.append((player1, opponent))
    return pairs


def swiss_pairings(
    standings: Sequence[Tuple[ParticipantId, float]],
    round_number: int,
    previous_opponents: Optional[Mapping[ParticipantId, Iterable[ParticipantId]]] = None,
    previous_byes: Optional[Iterable[ParticipantId]] = None,
) -> List[Pairing]:
    """
    Pair one Swiss round.

    Args:
        standings: (participant_id, score) in seeding order
        round_number: round being paired (>= 1)
        previous_opponents: participant_id -> ids already faced
        previous_byes: ids that already had a bye

    Returns:
        Pairings in rank order, the bye (if any) last
    """
    validate_participants([pid for pid, _ in standings])
    if round_number < 1:
        raise InvalidInput(f"Round number must be >= 1, got {round_number}")

    met: Dict[ParticipantId, Set[ParticipantId]] = {
        pid: set(opponents) for pid, opponents in (previous_opponents or {}).items()
    }
    had_bye = set(previous_byes or ())

    ranked = [pid for pid, _ in sorted(standings, key=lambda s: -s[1])]

    bye_player = None
    if len(ranked) % 2 == 1:
        bye_player = _pick_bye(ranked, had_bye)
        ranked.remove(bye_player)

    pairs = _pair_without_rematches(ranked, met)
    if pairs is None:
        pairs = _pair_greedy(ranked, met)
        rematches = [(a, b) for a, b in pairs if b in met.get(a, set())]
        logger.warning("Round %d: no rematch-free pairing, keeping rematches %s", round_number, rematches)

    pairings = [Pairing(round_number, seq, a, b) for seq, (a, b) in enumerate(pairs, start=1)]

    if bye_player is not None:
        pairings.append(Pairing(round_number, len(pairings) + 1, bye_player, BYE))

    return pairings
