"""
Presentation helpers: round names, slot labels and playing order.

Nothing here changes a bracket; these functions only describe a BracketState
for a UI, a printout or the CLI.
"""
from typing import Dict, List, Tuple

from .elimination import calculate_byes, get_round_name
from .mapping import LOSER, build_losers_mapping, get_losers_round_name, get_winners_round_name
from .models import BYE, DOUBLE, FINALS, LOSERS, WINNERS, BracketState, Match, match_code


def round_name(state: BracketState, match: Match) -> str:
    if match.section == FINALS:
        return 'Grand Final' if match.is_grand_final else 'Bracket Reset'
    if match.section == LOSERS:
        return get_losers_round_name(match.round - 1, state.total_losers_rounds)
    teams_in_round = state.bracket_size >> (match.round - 1)
    if state.format == DOUBLE:
        return get_winners_round_name(teams_in_round)
    return get_round_name(teams_in_round)


def _void_losers_sources(state: BracketState) -> set:
    """(section, round, index) of matches whose outcome can never reach the losers bracket."""
    void = {(WINNERS, m.round, m.index) for m in state.winners if m.round == 1 and m.is_bye}
    void.update((LOSERS, m.round, m.index) for m in state.losers if m.void_slots == 2)
    return void


def slot_labels(state: BracketState, match: Match) -> Tuple[str, str]:
    """What to show in each slot: the competitor, BYE, or where the competitor will come from."""
    placeholders = _placeholders(state, match)
    return tuple(
        slot if slot is not None else placeholders[i]
        for i, slot in enumerate(match.slots)
    )


def _placeholders(state: BracketState, match: Match) -> Tuple[str, str]:
    if match.section == WINNERS:
        if match.round == 1:
            return (BYE, BYE)
        return (
            f"Winner {match_code(WINNERS, match.round - 1, match.index * 2)}",
            f"Winner {match_code(WINNERS, match.round - 1, match.index * 2 + 1)}",
        )

    if match.section == LOSERS:
        spec = build_losers_mapping(state.bracket_size).spec(match.round, match.index)
        void = _void_losers_sources(state)
        positions = {(m.section, m.round, m.index): m for m in state.all_matches}
        labels, pending = [], []
        for source in spec.sources:
            origin = (WINNERS if source.outcome == LOSER else LOSERS, source.round, source.index)
            if origin in void:
                labels.append(BYE)
                continue
            labels.append(str(source))
            if positions[origin].winner is None:
                pending.append(str(source))
        if match.slot1 is None and match.slot2 is None:
            return tuple(labels)
        # Arrivals take the first open slot, so the open slot belongs to whichever source is still pending
        label = pending[0] if pending else BYE
        return (label, label)

    winners_final = match_code(WINNERS, state.total_winners_rounds, 0)
    if match.is_grand_final:
        if state.total_losers_rounds:
            challenger = f"Winner {match_code(LOSERS, state.total_losers_rounds, 0)}"
        else:
            challenger = f"Loser {winners_final}"
        return (f"Winner {winners_final}", challenger)
    return ('Grand Final slot 1', 'Grand Final slot 2 (if they win the Grand Final)')


def match_display(state: BracketState, match: Match) -> Dict:
    slot1, slot2 = slot_labels(state, match)
    return {
        'id': match.id,
        'match_code': match.code,
        'teams': [slot1, slot2],
        'round': round_name(state, match),
        'status': match.status,
        'winner': match.winner,
        'scores': [match.score1, match.score2],
        'table': match.table,
        'is_bye': match.is_bye,
        'is_walkover': match.is_walkover,
        'is_placeholder': match.slot1 is None or match.slot2 is None,
    }


def _by_round_name(state: BracketState, section: str) -> Dict[str, List[Dict]]:
    return {
        round_name(state, round_matches[0]): [match_display(state, m) for m in round_matches]
        for round_matches in state.rounds(section)
    }


def bracket_display(state: BracketState) -> Dict:
    """Bracket data keyed by round name, formatted for display."""
    gf, br = state.grand_final, state.bracket_reset
    return {
        'format': state.format,
        'winners_bracket': _by_round_name(state, WINNERS),
        'losers_bracket': _by_round_name(state, LOSERS),
        'grand_final': match_display(state, gf) if gf else None,
        'bracket_reset': match_display(state, br) if br else None,
        'bracket_size': state.bracket_size,
        'total_winners_rounds': state.total_winners_rounds,
        'total_losers_rounds': state.total_losers_rounds,
        'total_competitors': len(state.competitors),
        'byes': calculate_byes(len(state.competitors)),
        'champion': state.champion,
    }


def execution_order(state: BracketState) -> List[Dict]:
    """
    Matches in the order they can be played.

    For a double elimination bracket:
    - All Winners R1 matches first
    - Losers R1 (W1 losers pair up)
    - Winners R2
    - Losers R2 (W2 losers drop in), then W3, L3, L4 and so on
    - Grand Final
    - Bracket Reset (conditional)

    BYE matches and losers matches fed by a BYE are skipped. Each entry
    carries a time_slot: matches sharing a time slot can be played in
    parallel.
    """
    winners = state.rounds(WINNERS)
    losers = state.rounds(LOSERS)
    order = []
    time_slot = 0

    def add_round(matches: List[Match], is_conditional: bool = False):
        nonlocal time_slot
        playable = [m for m in matches if not m.is_bye and not m.void_slots]
        for match in playable:
            entry = match_display(state, match)
            entry['time_slot'] = time_slot
            if is_conditional:
                entry['is_conditional'] = True
            order.append(entry)
        if playable:
            time_slot += 1

    if winners:
        add_round(winners[0])

    w_round, l_round = 1, 0
    while w_round < len(winners) or l_round < len(losers):
        if l_round < len(losers):
            add_round(losers[l_round])
            l_round += 1
        if w_round < len(winners):
            add_round(winners[w_round])
            w_round += 1

    if state.grand_final:
        add_round([state.grand_final])
    if state.bracket_reset:
        add_round([state.bracket_reset], is_conditional=True)
    return order


def format_match_line(state: BracketState, match: Match) -> str:
    slot1, slot2 = slot_labels(state, match)
    line = f"[{match.id:>3}] {match.code:<7} {slot1} vs {slot2}"
    if match.winner is not None:
        if match.is_bye or match.is_walkover:
            line += f"  -> {match.winner} advances"
        else:
            line += f"  -> {match.winner} ({match.score1}-{match.score2})"
    elif match.table is not None:
        line += f"  @ table {match.table}"
    return line


def format_bracket(state: BracketState) -> str:
    """Plain-text rendering of a bracket, one line per match grouped by round."""
    lines = []
    sections = [('Winners Bracket' if state.format == DOUBLE else 'Bracket', WINNERS)]
    if state.format == DOUBLE:
        sections += [('Losers Bracket', LOSERS), ('Finals', FINALS)]
    for title, section in sections:
        lines.append(f"== {title} ==")
        for round_matches in state.rounds(section):
            lines.append(f"-- {round_name(state, round_matches[0])} --")
            lines.extend(format_match_line(state, m) for m in round_matches)
    champion = state.champion
    lines.append(f"Champion: {champion if champion else 'TBD'}")
    return '\n'.join(lines)
