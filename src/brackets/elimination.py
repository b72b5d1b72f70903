"""
Single elimination bracket generation.

The winners section of a double elimination bracket is built by the same
code; a single elimination bracket is just that section on its own.
"""
import itertools
import math
from typing import Iterator, List, Sequence

from .models import BYE, SINGLE, WINNERS, BracketState, Match, is_competitor


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of competitors."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_teams)
    return bracket_size - num_teams


def calculate_winners_rounds(bracket_size: int) -> int:
    if bracket_size < 2:
        return 0
    return int(math.log2(bracket_size))


def generate_winners_bracket(slots: Sequence[str], ids: Iterator[int]) -> List[Match]:
    """
    Build every winners-section match from the seeded round-1 slots.

    Round 1 pairs slots (2i, 2i+1). A match with one BYE is completed on the
    spot and its competitor is seated in round 2 (slot i % 2 of match i // 2).
    Later rounds start empty.
    """
    bracket_size = len(slots)
    total_rounds = calculate_winners_rounds(bracket_size)
    matches = []

    round_one = []
    for i in range(0, bracket_size, 2):
        team1, team2 = slots[i], slots[i + 1]
        winner = None
        if team1 == BYE and is_competitor(team2):
            winner = team2
        elif team2 == BYE and is_competitor(team1):
            winner = team1
        round_one.append(Match(
            id=next(ids), section=WINNERS, round=1, index=i // 2,
            slot1=team1, slot2=team2, winner=winner,
        ))
    matches.extend(round_one)

    previous = round_one
    for round_num in range(2, total_rounds + 1):
        round_matches = []
        for i in range(len(previous) // 2):
            # Only round 1 can hold BYE winners, so only round 2 is pre-filled
            feeder1, feeder2 = previous[i * 2], previous[i * 2 + 1]
            round_matches.append(Match(
                id=next(ids), section=WINNERS, round=round_num, index=i,
                slot1=feeder1.winner if round_num == 2 and feeder1.is_bye else None,
                slot2=feeder2.winner if round_num == 2 and feeder2.is_bye else None,
            ))
        matches.extend(round_matches)
        previous = round_matches

    return matches


def build_single_elimination(competitors: Sequence[str], slots: Sequence[str],
                             ids: Iterator[int] = None) -> BracketState:
    """Single elimination bracket: the winners section only."""
    ids = ids or itertools.count(1)
    return BracketState(
        format=SINGLE,
        bracket_size=len(slots),
        competitors=tuple(competitors),
        winners=tuple(generate_winners_bracket(slots, ids)),
    )
