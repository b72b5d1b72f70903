"""
Winners-to-losers routing for double elimination brackets.

The mapping is a pure function of the bracket size. For each losers round it
lists which two sources meet in every match, where a source is either the
loser of a winners match or the winner of an earlier losers match:

- Winners round r drops its losers into losers round max(1, 2r - 2).
- Within a losers round, the winners of the previous losers round are zipped
  against the fresh drops. Whatever is left on either side is paired among
  itself, and a single unpaired source carries into the next round.
- Drops into rounds after the first swap neighbouring winners matches: the
  loser of W<r>-M<2i+1> takes the place of W<r>-M<2i+2> and the other way
  round. A losers match then only ever holds competitors from one block of
  the winners bracket, and each drop comes from the sibling block, so
  nobody meets a former opponent again before the Losers Final.

For 8 teams:
- L Round 1: W1 losers pair off (W1-M1 v W1-M2, W1-M3 v W1-M4)
- L Round 2: L1 winners meet W2 losers swapped (L1-M1 v W2-M2, L1-M2 v W2-M1)
- L Round 3: L2 winners pair off
- L Round 4: L3 winner meets the W3 loser (Losers Final)
"""
import logging
from functools import lru_cache
from typing import Dict, List, NamedTuple, Optional, Tuple

from .elimination import calculate_winners_rounds
from .errors import InvariantViolationError
from .models import LOSERS, WINNERS, match_code

logger = logging.getLogger(__name__)

LOSER = 'loser'
WINNER = 'winner'


class Source(NamedTuple):
    """Symbolic origin of a losers-bracket slot."""
    outcome: str
    section: str
    round: int
    index: int

    @property
    def match_code(self) -> str:
        return match_code(self.section, self.round, self.index)

    def __str__(self):
        return f"{self.outcome.capitalize()} {self.match_code}"


class LosersMatchSpec(NamedTuple):
    round: int
    index: int
    source_a: Source
    source_b: Source

    @property
    def sources(self) -> Tuple[Source, Source]:
        return (self.source_a, self.source_b)


def get_losers_round_name(round_num: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (0-indexed)."""
    rounds_from_end = total_losers_rounds - round_num - 1
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num + 1}"


def get_winners_round_name(teams_in_round: int) -> str:
    """Get the name for a winners bracket round."""
    if teams_in_round == 2:
        return "Winners Final"
    elif teams_in_round == 4:
        return "Winners Semifinal"
    elif teams_in_round == 8:
        return "Winners Quarterfinal"
    else:
        return f"Winners Round of {teams_in_round}"


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For N teams in winners bracket (power of 2):
    - Winners bracket has log2(N) rounds
    - Losers bracket has 2 * (log2(N) - 1) rounds
    """
    if bracket_size < 2:
        return 0
    winners_rounds = calculate_winners_rounds(bracket_size)
    return 2 * (winners_rounds - 1)


def losers_round_for_winners_round(winners_round: int) -> int:
    return max(1, 2 * winners_round - 2)


class LosersMapping:
    """Routing tables for one bracket size."""

    def __init__(self, bracket_size: int, rounds: List[List[LosersMatchSpec]]):
        self.bracket_size = bracket_size
        self.rounds = rounds
        self.total_winners_rounds = calculate_winners_rounds(bracket_size)
        self.total_losers_rounds = len(rounds)
        # (round, index) of a winners match -> (round, index) of the losers match its loser enters
        self.winners_targets: Dict[Tuple[int, int], Tuple[int, int]] = {}
        # (round, index) of a losers match -> (round, index) of the losers match its winner enters
        self.losers_targets: Dict[Tuple[int, int], Tuple[int, int]] = {}

        for round_specs in rounds:
            for spec in round_specs:
                for source in spec.sources:
                    key = (source.round, source.index)
                    target = (spec.round, spec.index)
                    if source.outcome == LOSER:
                        self.winners_targets[key] = target
                    else:
                        self.losers_targets[key] = target

    def round_sizes(self) -> List[int]:
        return [len(r) for r in self.rounds]

    def spec(self, round_num: int, index: int) -> LosersMatchSpec:
        return self.rounds[round_num - 1][index]

    def target_for_winners_loser(self, round_num: int, index: int) -> Tuple[int, int]:
        try:
            return self.winners_targets[(round_num, index)]
        except KeyError:
            code = match_code(WINNERS, round_num, index)
            logger.error(f"No losers bracket target for {code} (bracket size {self.bracket_size})")
            raise InvariantViolationError(f"No losers bracket target for loser of {code}")

    def target_for_losers_winner(self, round_num: int, index: int) -> Tuple[int, int]:
        try:
            return self.losers_targets[(round_num, index)]
        except KeyError:
            code = match_code(LOSERS, round_num, index)
            logger.error(f"No next-round target for {code} (bracket size {self.bracket_size})")
            raise InvariantViolationError(f"No next-round target for winner of {code}")

    def source_for(self, round_num: int, index: int, position: int) -> Optional[Source]:
        """Source feeding slot position (1 or 2) of a losers match."""
        spec = self.spec(round_num, index)
        return spec.source_a if position == 1 else spec.source_b


def _drop_order(losers_round: int, count: int) -> List[int]:
    """Winners-match indices in the order their losers enter losers_round."""
    if losers_round == 1 or count == 1:
        return list(range(count))
    return [i ^ 1 for i in range(count)]


def _pair_off(sources: List[Source]) -> Tuple[List[Tuple[Source, Source]], List[Source]]:
    """Consecutive pairs plus the unpaired tail (at most one source)."""
    pairs = [(sources[i], sources[i + 1]) for i in range(0, len(sources) - 1, 2)]
    leftover = [sources[-1]] if len(sources) % 2 else []
    return pairs, leftover


def _build_round(round_num: int, previous_winners: List[Source],
                 incoming: List[Source]) -> Tuple[List[LosersMatchSpec], List[Source]]:
    zipped = list(zip(previous_winners, incoming))
    consumed = len(zipped)

    prev_pairs, prev_leftover = _pair_off(previous_winners[consumed:])
    incoming_pairs, incoming_leftover = _pair_off(incoming[consumed:])

    pairs = zipped + prev_pairs + incoming_pairs
    specs = [LosersMatchSpec(round_num, i, a, b) for i, (a, b) in enumerate(pairs)]
    return specs, prev_leftover + incoming_leftover


@lru_cache(maxsize=None)
def build_losers_mapping(bracket_size: int) -> LosersMapping:
    """
    Compute the losers bracket layout for a power-of-two bracket size.

    Returns:
        LosersMapping whose rounds hold one LosersMatchSpec per match
    """
    if bracket_size < 2 or bracket_size & (bracket_size - 1):
        raise ValueError(f"Bracket size {bracket_size} is not a power of 2")

    total_winners_rounds = calculate_winners_rounds(bracket_size)
    total_losers_rounds = calculate_losers_bracket_rounds(bracket_size)

    incoming_by_round: Dict[int, List[Source]] = {}
    if total_losers_rounds:
        for w_round in range(1, total_winners_rounds + 1):
            target = losers_round_for_winners_round(w_round)
            drops = [Source(LOSER, WINNERS, w_round, i)
                     for i in _drop_order(target, bracket_size >> w_round)]
            incoming_by_round.setdefault(target, []).extend(drops)

    rounds = []
    carried: List[Source] = []
    previous_specs: List[LosersMatchSpec] = []
    for round_num in range(1, total_losers_rounds + 1):
        previous_winners = [Source(WINNER, LOSERS, s.round, s.index) for s in previous_specs]
        specs, carried = _build_round(
            round_num, previous_winners + carried, incoming_by_round.get(round_num, [])
        )
        rounds.append(specs)
        previous_specs = specs

    if total_losers_rounds and (carried or len(rounds[-1]) != 1):
        logger.error(f"Losers bracket for size {bracket_size} does not converge: "
                     f"sizes={[len(r) for r in rounds]}, carried={carried}")
        raise InvariantViolationError(f"Losers bracket for size {bracket_size} does not converge")

    return LosersMapping(bracket_size, rounds)
