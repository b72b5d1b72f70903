"""
Match advancement: applying results and moving competitors forward.

Every call works on a private copy of the bracket and returns a new
BracketState. If anything is rejected, the caller's state is untouched.
"""
import logging
from collections import deque
from dataclasses import replace
from typing import Dict, List, NamedTuple, Optional, Tuple

from .errors import InvariantViolationError, ValidationError
from .mapping import build_losers_mapping
from .models import (
    DOUBLE, FINALS, LOSERS, READY, WINNERS, BracketState, Match, is_competitor,
)

logger = logging.getLogger(__name__)


class Route(NamedTuple):
    """A competitor's next seat: target match and slot (None means first open slot)."""
    competitor: str
    target_id: int
    position: Optional[int]


class WorkingBracket:
    """Mutable scratch copy of a BracketState used while applying one change."""

    def __init__(self, state: BracketState):
        self.state = state
        self.matches: Dict[int, Match] = {m.id: m for m in state.all_matches}
        self.positions: Dict[Tuple[str, int, int], int] = {
            (m.section, m.round, m.index): m.id for m in state.all_matches
        }
        self.is_double = state.format == DOUBLE
        self.total_winners_rounds = state.total_winners_rounds
        self.total_losers_rounds = state.total_losers_rounds
        self.mapping = build_losers_mapping(state.bracket_size) if self.is_double else None

    def get(self, match_id: int) -> Match:
        return self.matches[match_id]

    def at(self, section: str, round_num: int, index: int) -> Match:
        try:
            return self.matches[self.positions[(section, round_num, index)]]
        except KeyError:
            logger.error(f"Bracket has no {section} match at round {round_num}, index {index}")
            raise InvariantViolationError(f"Missing {section} match at round {round_num}, index {index}")

    def put(self, match: Match):
        self.matches[match.id] = match

    @property
    def grand_final(self) -> Match:
        return self.at(FINALS, 1, 0)

    @property
    def bracket_reset(self) -> Match:
        return self.at(FINALS, 2, 0)

    def champions(self) -> Tuple[Optional[str], Optional[str]]:
        """(winners_champion, losers_champion) as implied by the current results."""
        winners_final = self.at(WINNERS, self.total_winners_rounds, 0)
        if not self.is_double:
            return winners_final.winner, None
        if self.total_losers_rounds:
            losers_champion = self.at(LOSERS, self.total_losers_rounds, 0).winner
        else:
            losers_champion = winners_final.loser
        return winners_final.winner, losers_champion

    def freeze(self) -> BracketState:
        winners_champion, losers_champion = self.champions()
        return replace(
            self.state,
            winners=tuple(self.matches[m.id] for m in self.state.winners),
            losers=tuple(self.matches[m.id] for m in self.state.losers),
            finals=tuple(self.matches[m.id] for m in self.state.finals),
            winners_champion=winners_champion,
            losers_champion=losers_champion,
        )


def routes(work: WorkingBracket, match: Match) -> List[Route]:
    """
    Where the winner and loser of a completed match go next.

    - Winners match i of round r: winner to slot (i % 2) + 1 of match i // 2 in
      round r + 1, or to Grand Final slot 1 from the final. Loser drops into
      its mapped losers match (or Grand Final slot 2 when there is no losers
      bracket).
    - Losers match: winner to its mapped next match, or Grand Final slot 2.
    - Grand Final won from slot 2: both finalists go to the Bracket Reset.
    """
    winner, loser = match.winner, match.loser
    if winner is None:
        return []

    if match.section == WINNERS:
        result = []
        if match.round < work.total_winners_rounds:
            target = work.at(WINNERS, match.round + 1, match.index // 2)
            result.append(Route(winner, target.id, match.index % 2 + 1))
        elif work.is_double:
            result.append(Route(winner, work.grand_final.id, 1))

        if work.is_double and is_competitor(loser):
            if work.total_losers_rounds:
                l_round, l_index = work.mapping.target_for_winners_loser(match.round, match.index)
                result.append(Route(loser, work.at(LOSERS, l_round, l_index).id, None))
            else:
                result.append(Route(loser, work.grand_final.id, 2))
        return result

    if match.section == LOSERS:
        if match.round < work.total_losers_rounds:
            l_round, l_index = work.mapping.target_for_losers_winner(match.round, match.index)
            return [Route(winner, work.at(LOSERS, l_round, l_index).id, None)]
        return [Route(winner, work.grand_final.id, 2)]

    if match.is_grand_final and winner == match.slot2:
        reset_id = work.bracket_reset.id
        return [Route(match.slot1, reset_id, 1), Route(match.slot2, reset_id, 2)]
    return []


def place(work: WorkingBracket, route: Route) -> Match:
    """Seat a competitor in its target slot and return the updated target."""
    target = work.get(route.target_id)
    position = route.position
    if position is None:
        if target.slot1 is None:
            position = 1
        elif target.slot2 is None:
            position = 2
        else:
            logger.error(f"Cannot seat {route.competitor} in {target.code}: "
                         f"already holds {target.slot1} and {target.slot2}")
            raise InvariantViolationError(f"{target.code} is already full", target.id)
    else:
        current = target.slots[position - 1]
        if current is not None and current != route.competitor:
            logger.error(f"Cannot seat {route.competitor} in {target.code} slot {position}: "
                         f"already holds {current}")
            raise InvariantViolationError(f"{target.code} slot {position} is already taken", target.id)

    updated = target.with_slot(position, route.competitor)
    work.put(updated)
    logger.debug(f"Seated {route.competitor} in {updated.code} slot {position}")
    return updated


def _is_walkover(match: Match) -> bool:
    return (match.section == LOSERS and match.winner is None
            and match.void_slots == 1 and len(match.occupants) == 1)


def propagate(work: WorkingBracket, match_id: int):
    """Move the winner and loser of a completed match forward, including walkovers."""
    pending = deque([match_id])
    while pending:
        match = work.get(pending.popleft())
        for route in routes(work, match):
            placed = place(work, route)
            if _is_walkover(placed):
                work.put(replace(placed, winner=route.competitor))
                logger.debug(f"{route.competitor} advances from {placed.code} by walkover")
                pending.append(placed.id)


def validate_result(match: Optional[Match], winner: str, score1, score2, match_id=None):
    """Raise ValidationError if a result cannot be recorded for this match."""
    if match is None:
        raise ValidationError(f"Unknown match: {match_id}", match_id)
    if score1 is None or score2 is None:
        raise ValidationError(f"Both scores are required for {match.code}", match.id)
    if score1 == score2:
        raise ValidationError(f"Scores for {match.code} cannot be tied ({score1}-{score2})", match.id)
    if match.is_bye:
        raise ValidationError(f"{match.code} is a BYE and is decided automatically", match.id)
    if not (is_competitor(match.slot1) and is_competitor(match.slot2)):
        raise ValidationError(f"{match.code} does not have two competitors yet", match.id)
    if winner not in (match.slot1, match.slot2):
        raise ValidationError(f"{winner} is not playing in {match.code}", match.id)


def apply_result(work: WorkingBracket, match: Match, winner: str, score1, score2):
    """Record a result on a match with no current winner and propagate it."""
    if match.is_grand_final:
        winners_champion, losers_champion = work.champions()
        if (match.slot1, match.slot2) != (winners_champion, losers_champion):
            logger.error(f"Grand Final holds ({match.slot1}, {match.slot2}) but champions are "
                         f"({winners_champion}, {losers_champion})")
            raise InvariantViolationError("Grand Final finalists do not match the bracket champions",
                                          match.id)

    work.put(replace(match, winner=winner, score1=score1, score2=score2, table=None))
    propagate(work, match.id)


def record_result(state: BracketState, match_id: int, winner: str, score1, score2) -> BracketState:
    """
    Record a final score and return the resulting bracket.

    Re-recording a completed match with a new winner first undoes everything
    the previous result caused downstream, then applies the new one. A new
    score with the same winner only updates the scores.

    Raises:
        ValidationError: tied scores, unknown match or winner, BYE or unready match
        InvariantViolationError: the bracket routing is inconsistent
    """
    from .cascade import undo_result

    match = state.get_match(match_id)
    try:
        validate_result(match, winner, score1, score2, match_id)
    except ValidationError as e:
        logger.warning(f"Rejected result for match {match_id}: {e}")
        raise

    work = WorkingBracket(state)
    if match.winner == winner:
        # Same winner and loser, so nothing downstream moves
        logger.info(f"Correcting score of {match.code} to {score1}-{score2}")
        work.put(replace(match, score1=score1, score2=score2))
        return work.freeze()
    if match.winner is not None:
        logger.info(f"Correcting {match.code}: {match.winner} -> {winner}")
        undo_result(work, match)

    apply_result(work, work.get(match_id), winner, score1, score2)
    new_state = work.freeze()

    if new_state.is_complete and not state.is_complete:
        logger.info(f"Tournament complete, champion: {new_state.champion}")
    elif state.is_complete and not new_state.is_complete:
        logger.info(f"Tournament reopened by correction to {match.code}")
    return new_state


def assign_table(state: BracketState, match_id: int, table: Optional[int]) -> BracketState:
    """Attach (or clear, with None) a physical table to a ready match."""
    match = state.get_match(match_id)
    if match is None:
        raise ValidationError(f"Unknown match: {match_id}", match_id)
    if table is not None and match.status != READY:
        raise ValidationError(f"{match.code} is not ready to be played", match_id)

    work = WorkingBracket(state)
    work.put(replace(match, table=table))
    return work.freeze()


def is_complete(state: BracketState) -> bool:
    return state.is_complete
