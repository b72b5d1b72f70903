"""
Tests for recording results and moving competitors through the bracket.
"""
import random
from collections import Counter
from dataclasses import replace

import pytest

from brackets.advancement import assign_table, is_complete, record_result
from brackets.double_elimination import build_bracket
from brackets.errors import InvariantViolationError, ValidationError
from brackets.models import DOUBLE, LOSERS, READY, WINNERS, is_competitor
from brackets.simulation import have_previously_faced
from conftest import by_code, make_roster, play, play_all


def play_round_one(state):
    for match in state.rounds(WINNERS)[0]:
        if not match.is_bye:
            state = play(state, match.code)
    return state


def loss_counts(state):
    losses = Counter()
    for match in state.all_matches:
        if match.winner is not None and is_competitor(match.loser):
            losses[match.loser] += 1
    return losses


class TestValidation:
    """Rejected results leave the bracket untouched."""

    def test_tied_scores(self, double8):
        match = by_code(double8, "W1-M1")
        with pytest.raises(ValidationError) as excinfo:
            record_result(double8, match.id, "P1", 2, 2)
        assert excinfo.value.match_id == match.id
        assert by_code(double8, "W1-M1").winner is None

    def test_missing_score(self, double8):
        match = by_code(double8, "W1-M1")
        with pytest.raises(ValidationError):
            record_result(double8, match.id, "P1", 2, None)

    def test_unknown_match(self, double8):
        with pytest.raises(ValidationError) as excinfo:
            record_result(double8, 999, "P1", 2, 1)
        assert excinfo.value.match_id == 999

    def test_winner_not_in_match(self, double8):
        match = by_code(double8, "W1-M1")
        with pytest.raises(ValidationError):
            record_result(double8, match.id, "P3", 2, 1)

    def test_unready_match(self, double8):
        match = by_code(double8, "W2-M1")
        with pytest.raises(ValidationError):
            record_result(double8, match.id, "P1", 2, 1)

    def test_bye_match(self, five):
        match = by_code(five, "W1-M1")
        with pytest.raises(ValidationError):
            record_result(five, match.id, "P1", 2, 1)

    def test_state_returned_is_new(self, double8):
        """The input state is never modified."""
        before = by_code(double8, "W1-M1")
        after = play(double8, "W1-M1")
        assert by_code(double8, "W1-M1") is before
        assert by_code(after, "W1-M1").winner == "P1"
        assert after is not double8

    def test_rejection_is_logged(self, double8, caplog):
        match = by_code(double8, "W1-M1")
        with pytest.raises(ValidationError):
            record_result(double8, match.id, "P1", 1, 1)
        assert any(r.levelname == "WARNING" and "Rejected" in r.message for r in caplog.records)


class TestForwardPropagation:
    """Tests for winner and loser routing."""

    def test_round_one_results(self, double8):
        state = play_round_one(double8)
        assert by_code(state, "W2-M1").slots == ("P1", "P3")
        assert by_code(state, "W2-M2").slots == ("P5", "P7")
        assert by_code(state, "L1-M1").slots == ("P2", "P4")
        assert by_code(state, "L1-M2").slots == ("P6", "P8")

    def test_losers_round_one_avoids_rematches(self, double8):
        """Two L1 matches, each pairing losers of different W1 matches."""
        state = play_round_one(double8)
        losers_round_one = state.rounds(LOSERS)[0]
        assert len(losers_round_one) == 2
        for match in losers_round_one:
            assert match.status == READY
            a, b = match.slots
            assert not have_previously_faced(state, a, b)
            sources = {m.code for m in state.rounds(WINNERS)[0] if m.loser in (a, b)}
            assert len(sources) == 2

    def test_second_round_drops_swap(self, double8):
        state = play_round_one(double8)
        state = play(state, "W2-M1")
        state = play(state, "W2-M2")
        # loser of W2-M1 (P3) goes to L2-M2, loser of W2-M2 (P7) goes to L2-M1
        assert "P7" in by_code(state, "L2-M1").slots
        assert "P3" in by_code(state, "L2-M2").slots

    def test_losers_slots_fill_in_arrival_order(self, double8):
        state = play_round_one(double8)
        state = play(state, "W2-M2")
        assert by_code(state, "L2-M1").slots == ("P7", None)
        state = play(state, "L1-M1")
        assert by_code(state, "L2-M1").slots == ("P7", "P2")

    def test_finalists(self, double4):
        state = play_all(double4)
        gf = state.grand_final
        assert gf.slot1 == state.winners_champion == "P1"
        assert gf.slot2 == state.losers_champion

    def test_loser_of_losers_match_is_eliminated(self, double4):
        state = play(double4, "W1-M1")
        state = play(state, "W1-M2")
        state = play(state, "L1-M1")
        assert [m.code for m in state.all_matches if "P4" in m.slots] == ["W1-M2", "L1-M1"]


class TestGrandFinal:
    """Tests for the Grand Final and Bracket Reset."""

    def reach_grand_final(self, state):
        state = play(state, "W1-M1")
        state = play(state, "W1-M2")
        state = play(state, "W2-M1")
        state = play(state, "L1-M1")
        return play(state, "L2-M1")

    def test_winners_champion_wins(self, double4):
        state = self.reach_grand_final(double4)
        assert state.grand_final.slots == ("P1", "P3")
        state = play(state, "GF", winner="P1")
        assert state.is_complete
        assert is_complete(state)
        assert state.champion == "P1"
        assert not state.needs_reset
        assert state.bracket_reset.slots == (None, None)

    def test_losers_champion_forces_reset(self, double4):
        state = self.reach_grand_final(double4)
        state = play(state, "GF", winner="P3")
        assert state.needs_reset
        assert not state.is_complete
        assert state.champion is None
        reset = state.bracket_reset
        assert reset.slots == ("P1", "P3")
        assert reset.status == READY

        state = play(state, "BR", winner="P3")
        assert state.is_complete
        assert state.champion == "P3"

    def test_reset_can_go_either_way(self, double4):
        state = self.reach_grand_final(double4)
        state = play(state, "GF", winner="P3")
        state = play(state, "BR", winner="P1")
        assert state.champion == "P1"

    def test_two_competitors(self):
        state = build_bracket(["A", "B"], DOUBLE, random.Random(0))
        first = state.winners[0]
        state = record_result(state, first.id, first.slot1, 3, 0)
        assert state.winners_champion == first.slot1
        assert state.losers_champion == first.slot2
        assert state.grand_final.slots == (first.slot1, first.slot2)

    def test_mismatched_finalists_are_invariant_violation(self, double4):
        state = self.reach_grand_final(double4)
        gf = state.grand_final
        tampered = replace(state, finals=(replace(gf, slot1="P9"), state.bracket_reset))
        with pytest.raises(InvariantViolationError):
            record_result(tampered, gf.id, "P9", 2, 1)
        assert tampered.grand_final.winner is None


class TestFiveCompetitors:
    """5 competitors in an 8 bracket, played through to the Grand Final."""

    def test_walkover_through_void_losers_match(self, five):
        state = play(five, "W1-M4", winner="P4")
        l1 = by_code(state, "L1-M2")
        assert l1.slots == ("P5", None)
        assert l1.winner == "P5"
        assert l1.is_walkover
        assert by_code(state, "L2-M2").slots == ("P5", None)

    def test_full_run(self, five):
        state = play(five, "W1-M4", winner="P4")
        state = play(state, "W2-M1", winner="P1")
        state = play(state, "W2-M2", winner="P3")
        # P4 drops into L2-M1, whose other source is void, and walks through
        assert by_code(state, "L2-M1").winner == "P4"
        assert by_code(state, "L3-M1").slots == ("P4", None)

        state = play(state, "L2-M2", winner="P2")
        state = play(state, "L3-M1", winner="P4")
        state = play(state, "W3-M1", winner="P1")
        state = play(state, "L4-M1", winner="P3")

        assert state.winners_champion == "P1"
        assert state.losers_champion == "P3"
        assert state.champion is None
        assert state.grand_final.slots == ("P1", "P3")
        assert by_code(state, "L1-M1").slots == (None, None)

        state = play(state, "GF", winner="P1")
        assert state.champion == "P1"

    def test_unreachable_match_never_ready(self, five):
        state = play_all(five)
        assert by_code(state, "L1-M1").status != READY
        assert state.is_complete


class TestInvariants:
    """Routing problems are reported, not absorbed."""

    def test_full_losers_match(self, double4):
        l1 = by_code(double4, "L1-M1")
        tampered = replace(double4, losers=(replace(l1, slot1="X", slot2="Y"),) + double4.losers[1:])
        w1 = by_code(tampered, "W1-M1")
        with pytest.raises(InvariantViolationError) as excinfo:
            record_result(tampered, w1.id, "P1", 2, 1)
        assert excinfo.value.match_id == l1.id
        assert by_code(tampered, "W1-M1").winner is None
        assert by_code(tampered, "W2-M1").slots == (None, None)

    def test_taken_winners_slot(self, double4):
        w2 = by_code(double4, "W2-M1")
        tampered = replace(double4, winners=double4.winners[:2] + (replace(w2, slot1="X"),))
        with pytest.raises(InvariantViolationError):
            play(tampered, "W1-M1")

    def test_violation_is_logged(self, double4, caplog):
        w2 = by_code(double4, "W2-M1")
        tampered = replace(double4, winners=double4.winners[:2] + (replace(w2, slot1="X"),))
        with pytest.raises(InvariantViolationError):
            play(tampered, "W1-M1")
        assert any(r.levelname == "ERROR" for r in caplog.records)


class TestTables:
    """Tests for assign_table."""

    def test_assign_to_ready_match(self, double8):
        match = by_code(double8, "W1-M1")
        state = assign_table(double8, match.id, 3)
        assert by_code(state, "W1-M1").table == 3
        assert by_code(double8, "W1-M1").table is None

    def test_unready_match(self, double8):
        with pytest.raises(ValidationError):
            assign_table(double8, by_code(double8, "W2-M1").id, 1)

    def test_unknown_match(self, double8):
        with pytest.raises(ValidationError):
            assign_table(double8, 999, 1)

    def test_clear_table(self, double8):
        match = by_code(double8, "W1-M1")
        state = assign_table(double8, match.id, 3)
        state = assign_table(state, match.id, None)
        assert by_code(state, "W1-M1").table is None

    def test_result_frees_table(self, double8):
        match = by_code(double8, "W1-M1")
        state = assign_table(double8, match.id, 3)
        state = play(state, "W1-M1")
        assert by_code(state, "W1-M1").table is None


class TestCompleteTournaments:
    """Whole tournaments for many roster sizes."""

    @pytest.mark.parametrize("count", range(2, 18))
    @pytest.mark.parametrize("pick", ["slot1", "slot2"])
    def test_every_roster_finishes(self, count, pick):
        state = build_bracket(make_roster(count), DOUBLE, random.Random(count))
        state = play_all(state, pick=lambda m: getattr(m, pick))
        assert state.champion in make_roster(count)
        assert state.ready_matches() == []

        losses = loss_counts(state)
        for name in make_roster(count):
            if name == state.champion:
                assert losses[name] <= 1
            else:
                assert losses[name] == 2

    @pytest.mark.slow
    @pytest.mark.parametrize("count", [24, 33, 48, 64])
    def test_large_rosters(self, count):
        rng = random.Random(count)
        state = build_bracket(make_roster(count), DOUBLE, rng)
        state = play_all(state, pick=lambda m: rng.choice(m.slots))
        assert state.is_complete
        losses = loss_counts(state)
        assert sum(1 for n in make_roster(count) if losses[n] == 2) == count - 1
