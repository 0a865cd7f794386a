"""
Round Robin Pairing (circle method)

Participants sit in two facing rows of N'/2. Position 0 is the anchor and never
moves; every round the last position moves to index 1 and the rest shift right.
Round r is the order after r-1 rotation steps, pairing position i with N'-1-i:

    [1, 2, 3, BYE]  round 1: 1 bye, 2v3
    [1, BYE, 2, 3]  round 2: 1v3, 2 bye
    [1, 3, BYE, 2]  round 3: 1v2, 3 bye

Odd fields get a BYE slot appended so N' is always even. One full cycle is N'-1
rounds; every pair of real participants meets exactly once per cycle.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, List, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

ParticipantId = Union[int, str]


class PairingError(Exception):
    """Base class for pairing failures"""

    pass


class InvalidInput(PairingError, ValueError):
    """Raised for bad participant lists, round numbers or cycle counts"""

    pass


class RoundOutOfRange(PairingError, ValueError):
    """Raised when a round past the single cycle is requested with wrap disabled"""

    pass


class ByeMarker:
    """Synthetic opponent for odd fields. Only ever equal to itself."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "BYE"

    def __reduce__(self):
        return (ByeMarker, ())


BYE = ByeMarker()


@dataclass(frozen=True)
class Real:
    """A real participant occupying a position in the circle."""

    id: ParticipantId


Slot = Union[Real, ByeMarker]


@dataclass(frozen=True)
class Pairing:
    round_number: int
    sequence_in_round: int
    player1: ParticipantId
    player2: Union[ParticipantId, ByeMarker]

    @property
    def is_bye(self) -> bool:
        return self.player2 is BYE

    def ids(self) -> FrozenSet[ParticipantId]:
        """Real participant ids in this pairing (one for a bye, two for a match)."""
        if self.is_bye:
            return frozenset((self.player1,))
        return frozenset((self.player1, self.player2))


def _check_count(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n < 2:
        raise InvalidInput(f"Round robin needs at least 2 participants, got {n!r}")


def effective_size(n: int) -> int:
    """Participant count rounded up to even (the BYE slot counts for odd n)."""
    _check_count(n)
    return n + 1 if n % 2 == 1 else n


def cycle_length(n: int) -> int:
    """Rounds in one full cycle: n-1 for even n, n for odd n."""
    return effective_size(n) - 1


def validate_participants(participants: Sequence[ParticipantId]) -> Tuple[ParticipantId, ...]:
    """
    Validate a participant list and return it as a tuple.

    Raises:
        InvalidInput: fewer than 2 participants, an id that is not an int or str,
            or a repeated id
    """
    ids = tuple(participants)
    if len(ids) < 2:
        raise InvalidInput(f"Pairing needs at least 2 participants, got {len(ids)}")

    for pid in ids:
        if isinstance(pid, bool) or not isinstance(pid, (int, str)):
            raise InvalidInput(f"Participant id must be an int or str, got {pid!r}")

    duplicates = [pid for pid, count in Counter(ids).items() if count > 1]
    if duplicates:
        raise InvalidInput(f"Duplicate participant ids: {duplicates}")

    return ids


def _check_round_number(round_number: int) -> None:
    if isinstance(round_number, bool) or not isinstance(round_number, int):
        raise InvalidInput(f"Round number must be an integer, got {round_number!r}")
    if round_number < 1:
        raise InvalidInput(f"Round number must be >= 1, got {round_number}")


def padded_order(ids: Sequence[ParticipantId]) -> Tuple[Slot, ...]:
    """Round 1 ordering: the ids as given, plus BYE at the end for odd counts."""
    slots: Tuple[Slot, ...] = tuple(Real(pid) for pid in ids)
    if len(slots) % 2 == 1:
        slots = slots + (BYE,)
    return slots


def rotate(order: Sequence[Slot]) -> Tuple[Slot, ...]:
    """
    One rotation step: anchor fixed, last element moves to index 1.

    Returns a new tuple; the argument is left untouched.
    """
    order = tuple(order)
    if len(order) < 3:
        return order
    return (order[0], order[-1]) + order[1:-1]


@lru_cache(maxsize=256)
def _rotated(slots: Tuple[Slot, ...], steps: int) -> Tuple[Slot, ...]:
    # k single-step rotations equal one right-rotation of the non-anchor positions by k
    if steps == 0:
        return slots
    anchor, rest = slots[0], slots[1:]
    return (anchor,) + rest[-steps:] + rest[:-steps]


def round_order(
    participants: Sequence[ParticipantId], round_number: int, wrap: bool = True
) -> Tuple[Slot, ...]:
    """
    Slot ordering for a round: round 1 ordering rotated round_number-1 times.

    With wrap=True, rounds past one cycle repeat the cycle (round N' is round 1
    again). With wrap=False they raise RoundOutOfRange.
    """
    ids = validate_participants(participants)
    _check_round_number(round_number)

    cycle = cycle_length(len(ids))
    if round_number > cycle and not wrap:
        raise RoundOutOfRange(
            f"Round {round_number} is past the {cycle}-round cycle for {len(ids)} participants"
        )

    steps = (round_number - 1) % cycle
    return _rotated(padded_order(ids), steps)


def generate_round(
    participants: Sequence[ParticipantId], round_number: int, wrap: bool = True
) -> List[Pairing]:
    """
    Pairings for one round.

    Returns N'/2 pairings in position order. A pairing against the BYE slot puts
    the real participant in player1 and BYE in player2.
    """
    order = round_order(participants, round_number, wrap=wrap)
    size = len(order)

    pairings: List[Pairing] = []
    for i in range(size // 2):
        a, b = order[i], order[size - 1 - i]
        if a is BYE:
            a, b = b, a
        player2 = BYE if b is BYE else b.id
        pairings.append(Pairing(round_number, i + 1, a.id, player2))

    logger.debug(
        "Round %d order %s -> %d pairings",
        round_number,
        [slot if slot is BYE else slot.id for slot in order],
        len(pairings),
    )
    return pairings


def generate_schedule(participants: Sequence[ParticipantId], cycles: int = 1) -> List[List[Pairing]]:
    """Rounds 1..cycles*(N'-1), in order."""
    ids = validate_participants(participants)
    if isinstance(cycles, bool) or not isinstance(cycles, int) or cycles < 1:
        raise InvalidInput(f"cycles must be a positive integer, got {cycles!r}")

    total = cycles * cycle_length(len(ids))
    logger.info("Generating %d-round schedule for %d participants", total, len(ids))
    return [generate_round(ids, r) for r in range(1, total + 1)]


def byes_for_round(pairings: Sequence[Pairing]) -> List[ParticipantId]:
    return [p.player1 for p in pairings if p.is_bye]


def matches_for_round(pairings: Sequence[Pairing]) -> List[Pairing]:
    return [p for p in pairings if not p.is_bye]
