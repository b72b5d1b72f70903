"""
Saving and loading brackets and rosters.

Brackets are stored as plain YAML: flat match records keyed by id. Every
read and write takes a FileLock next to the file so only one mutation per
tournament file is in flight at a time.
"""
import csv
import logging
import os
from typing import Dict, List

import yaml
from filelock import FileLock, Timeout

from .errors import StorageError
from .models import BRACKET_FORMATS, BracketState, Competitor, Match, SECTIONS

logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 10

MATCH_FIELDS = ('id', 'section', 'round', 'index', 'slot1', 'slot2',
                'winner', 'score1', 'score2', 'table', 'void_slots')


def match_to_dict(match: Match) -> Dict:
    return {name: getattr(match, name) for name in MATCH_FIELDS}


def state_to_dict(state: BracketState) -> Dict:
    """Plain-data form of a bracket, suitable for YAML or JSON."""
    return {
        'format': state.format,
        'bracket_size': state.bracket_size,
        'competitors': list(state.competitors),
        'winners_champion': state.winners_champion,
        'losers_champion': state.losers_champion,
        'matches': [match_to_dict(m) for m in state.all_matches],
    }


def state_from_dict(data: Dict) -> BracketState:
    """Rebuild a BracketState from state_to_dict output."""
    try:
        if data['format'] not in BRACKET_FORMATS:
            raise StorageError(f"Unknown bracket format: {data['format']}")
        by_section = {section: [] for section in SECTIONS}
        for record in sorted(data['matches'], key=lambda r: r['id']):
            match = Match(**{name: record.get(name) for name in MATCH_FIELDS if name in record})
            by_section[match.section].append(match)
        return BracketState(
            format=data['format'],
            bracket_size=int(data['bracket_size']),
            competitors=tuple(data['competitors']),
            winners=tuple(by_section['winners']),
            losers=tuple(by_section['losers']),
            finals=tuple(by_section['finals']),
            winners_champion=data.get('winners_champion'),
            losers_champion=data.get('losers_champion'),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError(f"Malformed bracket data: {e}") from e


def _lock_for(path: str) -> FileLock:
    return FileLock(f"{path}.lock", timeout=LOCK_TIMEOUT)


def save_bracket(path: str, state: BracketState):
    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        with _lock_for(path):
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(state_to_dict(state), f, default_flow_style=False, sort_keys=False)
    except Timeout as e:
        raise StorageError(f"Bracket file {path} is locked by another process") from e
    except OSError as e:
        raise StorageError(f"Cannot write bracket to {path}: {e}") from e
    logger.debug(f"Saved bracket to {path}")


def load_bracket(path: str) -> BracketState:
    if not os.path.exists(path):
        raise StorageError(f"No bracket saved at {path}")
    try:
        with _lock_for(path):
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
    except Timeout as e:
        raise StorageError(f"Bracket file {path} is locked by another process") from e
    except OSError as e:
        raise StorageError(f"Cannot read bracket from {path}: {e}") from e
    except yaml.YAMLError as e:
        raise StorageError(f"Failed to parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(f"Failed to parse {path}: expected a mapping")
    return state_from_dict(data)


def load_competitors(path: str) -> List[Competitor]:
    """
    Read a roster file.

    Supports:
    - .csv with a 'name' column and optional 'phone' column
    - .yaml/.yml holding a list of names or of {name, phone} mappings
    """
    ext = os.path.splitext(path)[1].lower()
    try:
        with open(path, mode='r', encoding='utf-8') as file:
            if ext == '.csv':
                return _competitors_from_csv(file)
            return _competitors_from_yaml(yaml.safe_load(file))
    except OSError as e:
        raise StorageError(f"Cannot read roster {path}: {e}") from e
    except yaml.YAMLError as e:
        raise StorageError(f"Failed to parse {path}: {e}") from e


def _competitors_from_csv(file) -> List[Competitor]:
    competitors = []
    reader = csv.DictReader(file)
    if not reader.fieldnames or 'name' not in [f.strip().lower() for f in reader.fieldnames]:
        raise StorageError("Roster CSV needs a 'name' column")
    for row in reader:
        row = {k.strip().lower(): (v or '').strip() for k, v in row.items() if k}
        if not row.get('name'):
            continue
        attributes = {'phone': row['phone']} if row.get('phone') else {}
        competitors.append(Competitor(name=row['name'], attributes=attributes))
    return competitors


def _competitors_from_yaml(data) -> List[Competitor]:
    if isinstance(data, dict):
        data = data.get('competitors', [])
    if not isinstance(data, list):
        raise StorageError("Roster YAML must be a list of competitors")
    competitors = []
    for entry in data:
        if isinstance(entry, dict):
            name = str(entry.get('name', '')).strip()
            attributes = {k: v for k, v in entry.items() if k != 'name'}
        else:
            name, attributes = str(entry).strip(), {}
        if name:
            competitors.append(Competitor(name=name, attributes=attributes))
    return competitors
