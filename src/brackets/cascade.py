"""
Result corrections.

When a completed match is re-scored, everything its old result caused has to
be taken back before the new result is applied. Only the path actually taken
by the old winner and loser is cleared; placements that came from other
matches stay where they are.
"""
import logging
from collections import deque
from dataclasses import replace

from .advancement import WorkingBracket, routes
from .models import Match

logger = logging.getLogger(__name__)


def _seat_of(match: Match, competitor: str, position) -> int:
    """Slot (1 or 2) holding the competitor, or 0 if not where expected."""
    if position is not None:
        return position if match.slots[position - 1] == competitor else 0
    if match.slot1 == competitor:
        return 1
    if match.slot2 == competitor:
        return 2
    return 0


def undo_result(work: WorkingBracket, match: Match):
    """
    Take back the downstream effects of a match's current result.

    The walk follows each route of the old result. Where the routed
    competitor is found, it is removed; if that target match had been
    decided, its result is cleared too and its own routes are walked next.
    A route whose competitor is not in the expected seat is left alone.
    The edited match itself keeps its slots; its result is overwritten by
    the caller.
    """
    pending = deque([match])
    while pending:
        current = pending.popleft()
        for route in routes(work, current):
            target = work.get(route.target_id)
            position = _seat_of(target, route.competitor, route.position)
            if not position:
                logger.debug(f"{route.competitor} not found in {target.code}, stopping this path")
                continue

            updated = replace(target.with_slot(position, None), table=None)
            if target.winner is not None:
                logger.debug(f"Clearing result of {target.code} ({target.winner})")
                updated = updated.cleared()
                pending.append(target)
            work.put(updated)
