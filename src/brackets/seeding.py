"""
Seeding and BYE placement.

Turns a randomized competitor list into a bracket-sized slot list where every
round-1 pairing (slots 2i and 2i+1) has at least one real competitor.
"""
import logging
import random
from typing import List, Optional, Sequence

from .elimination import calculate_bracket_size
from .errors import InvalidRosterError
from .models import BYE

logger = logging.getLogger(__name__)


def shuffle_competitors(competitors: Sequence, rng: Optional[random.Random] = None) -> list:
    """Return a shuffled copy of the competitor list (Fisher-Yates)."""
    rng = rng or random.Random()
    shuffled = list(competitors)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def normalize_roster(competitors: Sequence) -> List[str]:
    """Competitor names in roster order; accepts names or Competitor objects."""
    names = [getattr(c, 'name', c) for c in competitors]
    if len(names) < 2:
        raise InvalidRosterError(f"At least 2 competitors are required, got {len(names)}")

    seen = set()
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise InvalidRosterError(f"Invalid competitor name: {name!r}")
        if name.strip().upper() == BYE:
            raise InvalidRosterError(f"'{name}' is reserved for empty bracket slots")
        if name in seen:
            raise InvalidRosterError(f"Duplicate competitor: {name}")
        seen.add(name)
    return names


def _partner(position: int) -> int:
    """Slot index of the round-1 opponent for a slot."""
    return position ^ 1


def seed_slots(competitors: Sequence[str], rng: Optional[random.Random] = None) -> List[str]:
    """
    Build the round-1 slot list for a bracket.

    Real competitors are placed first, in the given order. The remaining
    positions are BYE candidates: they are visited in random order and a BYE
    goes in only when its round-1 partner is not already a BYE. When that
    greedy pass cannot seat every BYE, the slots are rebuilt so that exactly
    one BYE sits in each of ``num_byes`` randomly chosen round-1 matches.

    Args:
        competitors: Competitor names, already randomized by the caller
        rng: Random source for BYE positions (defaults to a fresh Random)

    Returns:
        List of length bracket_size holding competitor names and BYE markers
    """
    num_competitors = len(competitors)
    if num_competitors < 2:
        raise InvalidRosterError(f"At least 2 competitors are required, got {num_competitors}")

    rng = rng or random.Random()
    bracket_size = calculate_bracket_size(num_competitors)
    num_byes = bracket_size - num_competitors

    slots: List[Optional[str]] = list(competitors) + [None] * num_byes
    if num_byes == 0:
        return slots

    candidates = list(range(num_competitors, bracket_size))
    rng.shuffle(candidates)

    placed = 0
    for position in candidates:
        if placed == num_byes:
            break
        if slots[_partner(position)] == BYE:
            continue
        slots[position] = BYE
        placed += 1

    if placed < num_byes:
        logger.debug(f"Greedy BYE placement seated {placed}/{num_byes}, using constructive placement")
        slots = _constructive_slots(list(competitors), bracket_size, num_byes, rng)

    return slots


def _constructive_slots(competitors: List[str], bracket_size: int, num_byes: int,
                        rng: random.Random) -> List[str]:
    """Pick num_byes round-1 matches to be BYE matches and fill the rest with pairs."""
    num_matches = bracket_size // 2
    bye_matches = set(rng.sample(range(num_matches), num_byes))

    remaining = iter(competitors)
    slots = []
    for match_index in range(num_matches):
        if match_index in bye_matches:
            slots.extend([next(remaining), BYE])
        else:
            slots.extend([next(remaining), next(remaining)])
    return slots


def count_bye_pairs(slots: Sequence[str]) -> int:
    """Number of round-1 pairings where both slots are BYE (always 0 for seeded slots)."""
    return sum(
        1 for i in range(0, len(slots), 2)
        if slots[i] == BYE and slots[i + 1] == BYE
    )
