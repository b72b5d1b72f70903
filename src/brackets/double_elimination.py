"""
Double elimination bracket generation.

In double elimination:
- Competitors must lose twice to be eliminated
- Winners Bracket: competitors that haven't lost yet
- Losers Bracket: competitors that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion
- Bracket Reset: If losers bracket winner wins Grand Final, a final match decides the champion
"""
import itertools
import logging
import random
from typing import Iterator, List, Optional, Sequence

from .elimination import build_single_elimination, generate_winners_bracket
from .mapping import LOSER, LosersMapping, Source, build_losers_mapping
from .models import (
    BRACKET_FORMATS, DOUBLE, FINALS, LOSERS, SINGLE, BracketState, Match,
)
from .seeding import normalize_roster, seed_slots

logger = logging.getLogger(__name__)


def generate_losers_bracket(mapping: LosersMapping, winners_matches: Sequence[Match],
                            ids: Iterator[int]) -> List[Match]:
    """
    Create the empty losers bracket matches described by the mapping.

    A source is void when it can never produce a competitor: the loser of a
    round-1 BYE match, or the winner of a losers match whose sources are both
    void. Matches record how many of their sources are void so a lone
    arriving competitor can advance without playing.
    """
    bye_matches = {(m.round, m.index) for m in winners_matches if m.is_bye}
    void_winners = set()

    def is_void(source: Source) -> bool:
        if source.outcome == LOSER:
            return (source.round, source.index) in bye_matches
        return (source.round, source.index) in void_winners

    matches = []
    for round_specs in mapping.rounds:
        for spec in round_specs:
            void_slots = sum(1 for source in spec.sources if is_void(source))
            if void_slots == 2:
                void_winners.add((spec.round, spec.index))
            matches.append(Match(
                id=next(ids), section=LOSERS, round=spec.round, index=spec.index,
                void_slots=void_slots,
            ))
    return matches


def generate_finals(ids: Iterator[int]) -> List[Match]:
    """Grand Final plus the conditional Bracket Reset."""
    return [
        Match(id=next(ids), section=FINALS, round=1, index=0),
        Match(id=next(ids), section=FINALS, round=2, index=0),
    ]


def build_double_elimination(competitors: Sequence[str], slots: Sequence[str]) -> BracketState:
    ids = itertools.count(1)
    bracket_size = len(slots)
    winners = generate_winners_bracket(slots, ids)
    losers = generate_losers_bracket(build_losers_mapping(bracket_size), winners, ids)
    finals = generate_finals(ids)
    return BracketState(
        format=DOUBLE,
        bracket_size=bracket_size,
        competitors=tuple(competitors),
        winners=tuple(winners),
        losers=tuple(losers),
        finals=tuple(finals),
    )


def build_bracket(competitors: Sequence, bracket_format: str = DOUBLE,
                  rng: Optional[random.Random] = None) -> BracketState:
    """
    Build a complete bracket from an ordered (already randomized) roster.

    Args:
        competitors: Competitor names or Competitor objects
        bracket_format: 'single' or 'double'
        rng: Random source for BYE placement

    Returns:
        BracketState with round-1 BYE matches already resolved
    """
    if bracket_format not in BRACKET_FORMATS:
        raise ValueError(f"Unknown bracket format: {bracket_format}")

    names = normalize_roster(competitors)
    slots = seed_slots(names, rng)

    if bracket_format == SINGLE:
        state = build_single_elimination(names, slots)
    else:
        state = build_double_elimination(names, slots)

    logger.info(f"Built {bracket_format} elimination bracket: {len(names)} competitors, "
                f"bracket size {state.bracket_size}, {len(state.all_matches)} matches")
    return state
