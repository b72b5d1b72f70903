from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

BYE = 'BYE'

WINNERS = 'winners'
LOSERS = 'losers'
FINALS = 'finals'
SECTIONS = (WINNERS, LOSERS, FINALS)

SINGLE = 'single'
DOUBLE = 'double'
BRACKET_FORMATS = (SINGLE, DOUBLE)

EMPTY = 'empty'
READY = 'ready'
COMPLETED = 'completed'


def is_bye(slot) -> bool:
    return slot == BYE


def is_competitor(slot) -> bool:
    return slot is not None and slot != BYE


def match_code(section: str, round_num: int, index: int) -> str:
    """Short code for a match position: W1-M3, L2-M1, GF or BR."""
    if section == FINALS:
        return 'GF' if round_num == 1 else 'BR'
    prefix = 'W' if section == WINNERS else 'L'
    return f"{prefix}{round_num}-M{index + 1}"


class Competitor:
    def __init__(self, name, attributes=None):
        self.name = name
        self.attributes = attributes if attributes else {}

    def __repr__(self):
        return f"Competitor(name={self.name}, attributes={self.attributes})"


@dataclass(frozen=True)
class Match:
    id: int
    section: str
    round: int
    index: int
    slot1: Optional[str] = None
    slot2: Optional[str] = None
    winner: Optional[str] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    table: Optional[int] = None
    void_slots: int = 0

    @property
    def code(self) -> str:
        return match_code(self.section, self.round, self.index)

    @property
    def slots(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.slot1, self.slot2)

    @property
    def occupants(self) -> List[str]:
        """Real competitors currently seated in this match."""
        return [s for s in self.slots if is_competitor(s)]

    @property
    def is_bye(self) -> bool:
        return is_bye(self.slot1) or is_bye(self.slot2)

    @property
    def is_grand_final(self) -> bool:
        return self.section == FINALS and self.round == 1

    @property
    def is_reset(self) -> bool:
        return self.section == FINALS and self.round == 2

    @property
    def is_walkover(self) -> bool:
        return self.winner is not None and self.void_slots > 0 and len(self.occupants) == 1

    @property
    def loser(self) -> Optional[str]:
        if self.winner is None:
            return None
        if self.winner == self.slot1:
            return self.slot2
        if self.winner == self.slot2:
            return self.slot1
        return None

    @property
    def status(self) -> str:
        if self.winner is not None:
            return COMPLETED
        if is_competitor(self.slot1) and is_competitor(self.slot2):
            return READY
        return EMPTY

    def with_slot(self, position: int, value: Optional[str]) -> 'Match':
        if position == 1:
            return replace(self, slot1=value)
        return replace(self, slot2=value)

    def cleared(self) -> 'Match':
        """Copy of this match with its result removed."""
        return replace(self, winner=None, score1=None, score2=None)

    def __repr__(self):
        return (f"Match(id={self.id}, code={self.code}, teams=({self.slot1}, {self.slot2}), "
                f"winner={self.winner})")


@dataclass(frozen=True)
class BracketState:
    """
    Complete bracket at one point in time.

    A state is never modified after construction: the engine returns a new
    state for every accepted result, so earlier states stay valid history.
    """
    format: str
    bracket_size: int
    competitors: Tuple[str, ...]
    winners: Tuple[Match, ...]
    losers: Tuple[Match, ...] = ()
    finals: Tuple[Match, ...] = ()
    winners_champion: Optional[str] = None
    losers_champion: Optional[str] = None
    _by_id: Dict[int, Match] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_by_id', {m.id: m for m in self.all_matches})

    @property
    def all_matches(self) -> Tuple[Match, ...]:
        return self.winners + self.losers + self.finals

    def get_match(self, match_id: int) -> Optional[Match]:
        return self._by_id.get(match_id)

    def find_matches(self, **filters) -> List[Match]:
        """Matches whose attributes equal every given filter value."""
        return [
            m for m in self.all_matches
            if all(getattr(m, key) == value for key, value in filters.items())
        ]

    def section(self, name: str) -> Tuple[Match, ...]:
        if name == WINNERS:
            return self.winners
        if name == LOSERS:
            return self.losers
        if name == FINALS:
            return self.finals
        raise KeyError(name)

    def rounds(self, section: str) -> List[List[Match]]:
        """Matches of a section grouped by round, in topology order."""
        grouped = {}
        for match in self.section(section):
            grouped.setdefault(match.round, []).append(match)
        return [sorted(grouped[r], key=lambda m: m.index) for r in sorted(grouped)]

    @property
    def total_winners_rounds(self) -> int:
        return max((m.round for m in self.winners), default=0)

    @property
    def total_losers_rounds(self) -> int:
        return max((m.round for m in self.losers), default=0)

    @property
    def winners_final(self) -> Optional[Match]:
        last = self.rounds(WINNERS)
        return last[-1][0] if last else None

    @property
    def losers_final(self) -> Optional[Match]:
        last = self.rounds(LOSERS)
        return last[-1][0] if last else None

    @property
    def grand_final(self) -> Optional[Match]:
        return next((m for m in self.finals if m.is_grand_final), None)

    @property
    def bracket_reset(self) -> Optional[Match]:
        return next((m for m in self.finals if m.is_reset), None)

    @property
    def needs_reset(self) -> bool:
        gf = self.grand_final
        return gf is not None and gf.winner is not None and gf.winner == gf.slot2

    @property
    def champion(self) -> Optional[str]:
        if self.format == SINGLE:
            final = self.winners_final
            return final.winner if final else None
        gf = self.grand_final
        if gf is None or gf.winner is None:
            return None
        if gf.winner == gf.slot1:
            return gf.winner
        return self.bracket_reset.winner

    @property
    def is_complete(self) -> bool:
        return self.champion is not None

    def ready_matches(self) -> List[Match]:
        return [m for m in self.all_matches if m.status == READY]
