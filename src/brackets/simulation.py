"""
Random play for demos and tests.
"""
import logging
import random
from typing import Dict, FrozenSet, List, Optional, Tuple

from .advancement import record_result
from .errors import InvariantViolationError
from .models import BracketState, Competitor, Match, is_competitor

logger = logging.getLogger(__name__)

DEMO_PLAYERS = [
    ('Alice Johnson', '555-0101'),
    ('Bob Smith', '555-0102'),
    ('Carol Davis', '555-0103'),
    ('David Wilson', '555-0104'),
    ('Emma Brown', '555-0105'),
    ('Frank Miller', '555-0106'),
    ('Grace Taylor', '555-0107'),
    ('Henry Clark', '555-0108'),
    ('Alsa Clark', '555-0109'),
]


def demo_competitors(count: Optional[int] = None) -> List[Competitor]:
    """Demo roster; rosters longer than the named list are padded with 'Player N'."""
    if count is None:
        count = len(DEMO_PLAYERS)
    competitors = [Competitor(name, {'phone': phone}) for name, phone in DEMO_PLAYERS[:count]]
    for i in range(len(competitors), count):
        competitors.append(Competitor(f"Player {i + 1}"))
    return competitors


def generate_random_scores(rng: Optional[random.Random] = None) -> Tuple[int, int]:
    """Two scores between 1 and 3 that are never equal."""
    rng = rng or random.Random()
    score1 = rng.randint(1, 3)
    score2 = rng.choice([s for s in (1, 2, 3) if s != score1])
    return score1, score2


def play_match(state: BracketState, match: Match, rng: random.Random) -> BracketState:
    score1, score2 = generate_random_scores(rng)
    winner = match.slot1 if score1 > score2 else match.slot2
    return record_result(state, match.id, winner, score1, score2)


def play_ready_matches(state: BracketState, rng: Optional[random.Random] = None) -> BracketState:
    """Play every match that is ready right now, in id order."""
    rng = rng or random.Random()
    for match in state.ready_matches():
        current = state.get_match(match.id)
        if current.winner is None:
            state = play_match(state, current, rng)
    return state


def simulate_tournament(state: BracketState, rng: Optional[random.Random] = None,
                        max_waves: int = 1000) -> BracketState:
    """Play random results until a champion is decided."""
    rng = rng or random.Random()
    waves = 0
    while not state.is_complete:
        if not state.ready_matches():
            logger.error("Bracket is stuck: no ready matches and no champion")
            raise InvariantViolationError("Bracket is stuck: no ready matches and no champion")
        if waves >= max_waves:
            logger.error(f"Bracket not finished after {max_waves} waves")
            raise InvariantViolationError(f"Bracket not finished after {max_waves} waves")
        state = play_ready_matches(state, rng)
        waves += 1
    logger.info(f"Simulated tournament finished in {waves} waves, champion: {state.champion}")
    return state


def encounters(state: BracketState) -> Dict[FrozenSet[str], List[str]]:
    """Match codes, in bracket order, for every pair of competitors who have met."""
    met: Dict[FrozenSet[str], List[str]] = {}
    for match in state.all_matches:
        if match.winner is None:
            continue
        if not (is_competitor(match.slot1) and is_competitor(match.slot2)):
            continue
        met.setdefault(frozenset((match.slot1, match.slot2)), []).append(match.code)
    return met


def have_previously_faced(state: BracketState, player1: str, player2: str) -> bool:
    return frozenset((player1, player2)) in encounters(state)


def rematches(state: BracketState) -> Dict[FrozenSet[str], List[str]]:
    """Pairs that met more than once."""
    return {pair: codes for pair, codes in encounters(state).items() if len(codes) > 1}
