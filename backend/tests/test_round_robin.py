"""
Tests for circle-method round robin pairing.
"""

from itertools import combinations

import pytest

from tourney.services.round_robin import (
    BYE,
    InvalidInput,
    Pairing,
    Real,
    RoundOutOfRange,
    byes_for_round,
    cycle_length,
    effective_size,
    generate_round,
    generate_schedule,
    matches_for_round,
    padded_order,
    rotate,
    round_order,
    validate_participants,
)


def _as_sets(pairings):
    """Order-free view of a round: {frozenset(ids)} with BYE kept as a member."""
    return {frozenset((p.player1, p.player2)) for p in pairings}


class TestConcreteScenario:
    """Three players: BYE pads to four, three rounds."""

    def test_round_1(self):
        pairings = generate_round([1, 2, 3], 1)
        assert pairings == [
            Pairing(1, 1, 1, BYE),
            Pairing(1, 2, 2, 3),
        ]

    def test_round_2(self):
        pairings = generate_round([1, 2, 3], 2)
        assert matches_for_round(pairings) == [Pairing(2, 1, 1, 3)]
        assert byes_for_round(pairings) == [2]

    def test_round_3(self):
        pairings = generate_round([1, 2, 3], 3)
        assert matches_for_round(pairings) == [Pairing(3, 1, 1, 2)]
        assert byes_for_round(pairings) == [3]

    def test_full_cycle(self):
        schedule = generate_schedule([1, 2, 3])
        assert len(schedule) == 3
        met = sorted(tuple(sorted(p.ids())) for rnd in schedule for p in matches_for_round(rnd))
        assert met == [(1, 2), (1, 3), (2, 3)]
        byes = sorted(pid for rnd in schedule for pid in byes_for_round(rnd))
        assert byes == [1, 2, 3]


class TestSizes:
    def test_effective_size(self):
        assert effective_size(2) == 2
        assert effective_size(3) == 4
        assert effective_size(8) == 8
        assert effective_size(9) == 10

    def test_cycle_length(self):
        assert cycle_length(2) == 1
        assert cycle_length(4) == 3
        assert cycle_length(5) == 5
        assert cycle_length(6) == 5

    def test_cycle_length_rejects_small(self):
        with pytest.raises(InvalidInput):
            cycle_length(1)


class TestRotation:
    def test_rotate_moves_last_after_anchor(self):
        assert rotate((0, 1, 2, 3, 4, 5)) == (0, 5, 1, 2, 3, 4)

    def test_rotate_does_not_mutate(self):
        order = [0, 1, 2, 3]
        rotate(order)
        assert order == [0, 1, 2, 3]

    def test_rotate_two_is_identity(self):
        assert rotate(("a", "b")) == ("a", "b")

    def test_padded_order_adds_bye_for_odd(self):
        assert padded_order([7, 8, 9]) == (Real(7), Real(8), Real(9), BYE)
        assert padded_order([7, 8]) == (Real(7), Real(8))

    @pytest.mark.parametrize("n", [2, 3, 4, 7, 10])
    def test_round_order_matches_step_by_step_replay(self, n):
        ids = list(range(1, n + 1))
        order = padded_order(ids)
        for r in range(1, cycle_length(n) + 1):
            assert round_order(ids, r) == order
            order = rotate(order)

    def test_anchor_never_moves(self):
        ids = ["a", "b", "c", "d", "e", "f"]
        for r in range(1, 6):
            assert round_order(ids, r)[0] == Real("a")


@pytest.mark.parametrize("n", [2, 3, 4, 5, 6, 7, 8, 11, 16, 21])
class TestRoundRobinProperties:
    def test_no_participant_twice_in_a_round(self, n):
        ids = list(range(1, n + 1))
        for r in range(1, cycle_length(n) + 1):
            seen = [pid for p in generate_round(ids, r) for pid in p.ids()]
            assert len(seen) == len(set(seen))

    def test_every_participant_appears_each_round(self, n):
        ids = list(range(1, n + 1))
        for r in range(1, cycle_length(n) + 1):
            pairings = generate_round(ids, r)
            assert len(pairings) == effective_size(n) // 2
            seen = {pid for p in pairings for pid in p.ids()}
            assert seen == set(ids)

    def test_each_pair_meets_exactly_once(self, n):
        ids = list(range(1, n + 1))
        met = [
            frozenset(p.ids())
            for rnd in generate_schedule(ids)
            for p in matches_for_round(rnd)
        ]
        assert len(met) == len(set(met))
        assert set(met) == {frozenset(pair) for pair in combinations(ids, 2)}

    def test_byes(self, n):
        ids = list(range(1, n + 1))
        byes = [pid for rnd in generate_schedule(ids) for pid in byes_for_round(rnd)]
        if n % 2 == 0:
            assert byes == []
        else:
            # one per round, nobody twice
            assert len(byes) == cycle_length(n)
            assert sorted(byes) == ids

    def test_deterministic(self, n):
        ids = list(range(1, n + 1))
        for r in range(1, cycle_length(n) + 1):
            assert generate_round(ids, r) == generate_round(ids, r)


class TestParticipantIds:
    def test_string_ids(self):
        pairings = generate_round(["alice", "bob", "carol", "dave"], 1)
        assert _as_sets(pairings) == {frozenset(("alice", "dave")), frozenset(("bob", "carol"))}

    def test_bye_never_collides_with_real_ids(self):
        # -1 was the old sentinel; it is an ordinary participant here
        schedule = generate_schedule([-1, 0, 1])
        byes = sorted(pid for rnd in schedule for pid in byes_for_round(rnd))
        assert byes == [-1, 0, 1]
        for rnd in schedule:
            for p in rnd:
                assert p.player1 is not BYE

    def test_bye_is_singleton(self):
        assert generate_round([1, 2, 3], 1)[0].player2 is BYE
        assert repr(BYE) == "BYE"

    def test_pairing_ids(self):
        assert Pairing(1, 1, 4, BYE).ids() == frozenset({4})
        assert Pairing(1, 1, 4, 5).ids() == frozenset({4, 5})
        assert Pairing(1, 1, 4, BYE).is_bye
        assert not Pairing(1, 1, 4, 5).is_bye


class TestInvalidInput:
    @pytest.mark.parametrize("participants", [[], [1]])
    def test_too_few_participants(self, participants):
        with pytest.raises(InvalidInput):
            generate_round(participants, 1)

    def test_duplicate_ids(self):
        with pytest.raises(InvalidInput, match="Duplicate"):
            generate_round([1, 2, 2, 3], 1)

    @pytest.mark.parametrize("round_number", [0, -3])
    def test_non_positive_round(self, round_number):
        with pytest.raises(InvalidInput):
            generate_round([1, 2, 3, 4], round_number)

    @pytest.mark.parametrize("bad", [None, 1.5, True])
    def test_bad_id_types(self, bad):
        with pytest.raises(InvalidInput):
            validate_participants([1, 2, bad])

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            generate_round([1], 1)

    def test_schedule_rejects_zero_cycles(self):
        with pytest.raises(InvalidInput):
            generate_schedule([1, 2, 3, 4], cycles=0)


class TestPastOneCycle:
    def test_wraps_by_default(self):
        ids = [1, 2, 3, 4]
        assert _as_sets(generate_round(ids, 4)) == _as_sets(generate_round(ids, 1))
        assert _as_sets(generate_round(ids, 6)) == _as_sets(generate_round(ids, 3))

    def test_round_number_kept_on_wrapped_rounds(self):
        assert all(p.round_number == 4 for p in generate_round([1, 2, 3, 4], 4))

    def test_strict_rejects(self):
        with pytest.raises(RoundOutOfRange):
            generate_round([1, 2, 3, 4], 4, wrap=False)

    def test_strict_allows_last_round(self):
        assert len(generate_round([1, 2, 3], 3, wrap=False)) == 2

    def test_two_cycles(self):
        schedule = generate_schedule([1, 2, 3, 4, 5], cycles=2)
        assert len(schedule) == 10
        met = [frozenset(p.ids()) for rnd in schedule for p in matches_for_round(rnd)]
        assert all(met.count(pair) == 2 for pair in set(met))
