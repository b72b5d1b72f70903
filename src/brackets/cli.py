#!/usr/bin/env python3
"""
Command-line interface for running a bracket from a terminal.

Usage:
    brackets start --players players.csv [--type single|double] [--seed 42]
    brackets show
    brackets record 7 "Alice Johnson" 3 1
    brackets table 7 2
    brackets demo --players 9 --seed 1

Exit codes:
    0  success
    1  invalid input (bad roster, rejected result)
    2  bracket invariant violation
    3  storage failure
"""
import argparse
import logging
import random
import sys

from .advancement import assign_table, record_result
from .display import format_bracket, format_match_line
from .double_elimination import build_bracket
from .errors import InvalidRosterError, InvariantViolationError, StorageError, ValidationError
from .models import BRACKET_FORMATS
from .seeding import shuffle_competitors
from .settings import BRACKET_FILE, DATA_DIR, SETTINGS_FILE, data_path, load_settings
from .simulation import demo_competitors, simulate_tournament
from .storage import load_bracket, load_competitors, save_bracket

logger = logging.getLogger(__name__)


def cmd_start(args) -> int:
    settings = load_settings(data_path(SETTINGS_FILE, args.data_dir))
    bracket_type = args.type or settings['bracket_type']
    seed = args.seed if args.seed is not None else settings['seed']
    rng = random.Random(seed)

    competitors = shuffle_competitors(load_competitors(args.players), rng)
    state = build_bracket(competitors, bracket_type, rng)
    path = data_path(BRACKET_FILE, args.data_dir)
    save_bracket(path, state)

    print(f"Started {bracket_type} elimination bracket with {len(state.competitors)} competitors")
    print(f"Saved to {path}")
    return 0


def cmd_show(args) -> int:
    state = load_bracket(data_path(BRACKET_FILE, args.data_dir))
    print(format_bracket(state))
    ready = state.ready_matches()
    if ready and not state.is_complete:
        print("\nReady to play:")
        for match in ready:
            print(format_match_line(state, match))
    return 0


def cmd_record(args) -> int:
    path = data_path(BRACKET_FILE, args.data_dir)
    state = load_bracket(path)
    state = record_result(state, args.match_id, args.winner, args.score1, args.score2)
    save_bracket(path, state)

    print(format_match_line(state, state.get_match(args.match_id)))
    if state.is_complete:
        print(f"Champion: {state.champion}")
    return 0


def cmd_table(args) -> int:
    path = data_path(BRACKET_FILE, args.data_dir)
    state = load_bracket(path)
    table = args.table if args.table > 0 else None
    state = assign_table(state, args.match_id, table)
    save_bracket(path, state)
    print(format_match_line(state, state.get_match(args.match_id)))
    return 0


def cmd_demo(args) -> int:
    rng = random.Random(args.seed)
    competitors = shuffle_competitors(demo_competitors(args.players), rng)
    state = build_bracket(competitors, args.type, rng)
    state = simulate_tournament(state, rng)
    print(format_bracket(state))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='brackets',
        description='Run a single or double elimination bracket'
    )
    parser.add_argument(
        '--data-dir',
        default=DATA_DIR,
        help='Directory holding bracket.yaml and settings.yaml (default: $BRACKET_DATA_DIR or ./data)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show debug logging'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    start = subparsers.add_parser('start', help='Create a new bracket from a roster file')
    start.add_argument('--players', required=True, help='Roster file (.csv or .yaml)')
    start.add_argument('--type', choices=BRACKET_FORMATS, help='Bracket format (default from settings)')
    start.add_argument('--seed', type=int, help='Random seed for shuffling and BYE placement')
    start.set_defaults(func=cmd_start)

    show = subparsers.add_parser('show', help='Print the current bracket')
    show.set_defaults(func=cmd_show)

    record = subparsers.add_parser('record', help='Record or correct a match result')
    record.add_argument('match_id', type=int, help='Match id as shown by "show"')
    record.add_argument('winner', help='Winning competitor name')
    record.add_argument('score1', type=int, help='Score for slot 1')
    record.add_argument('score2', type=int, help='Score for slot 2')
    record.set_defaults(func=cmd_record)

    table = subparsers.add_parser('table', help='Assign a table to a ready match (0 clears it)')
    table.add_argument('match_id', type=int)
    table.add_argument('table', type=int)
    table.set_defaults(func=cmd_table)

    demo = subparsers.add_parser('demo', help='Simulate a full tournament with random scores')
    demo.add_argument('--players', type=int, default=9, help='Number of demo competitors (default: 9)')
    demo.add_argument('--type', choices=BRACKET_FORMATS, default='double')
    demo.add_argument('--seed', type=int, help='Random seed')
    demo.set_defaults(func=cmd_demo)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    try:
        return args.func(args)
    except (InvalidRosterError, ValidationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except InvariantViolationError as e:
        print(f"Error: bracket is inconsistent: {e}", file=sys.stderr)
        return 2
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3


if __name__ == '__main__':
    sys.exit(main())
