"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips large simulations)
"""
import os
import random
import sys

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.advancement import record_result
from brackets.double_elimination import build_bracket, build_double_elimination
from brackets.models import BYE, DOUBLE, SINGLE


def make_roster(count):
    return [f"P{i}" for i in range(1, count + 1)]


def play(state, code, winner=None, score1=None, score2=None):
    """Record a result by match code. Defaults to slot 1 winning 2-1."""
    match = next(m for m in state.all_matches if m.code == code)
    winner = winner or match.slot1
    if score1 is None:
        score1, score2 = (2, 1) if winner == match.slot1 else (1, 2)
    return record_result(state, match.id, winner, score1, score2)


def play_all(state, pick=lambda match: match.slot1):
    """Play every ready match repeatedly until a champion is decided."""
    while not state.is_complete:
        ready = state.ready_matches()
        assert ready, "bracket stuck without a champion"
        match = ready[0]
        winner = pick(match)
        score1, score2 = (2, 1) if winner == match.slot1 else (1, 2)
        state = record_result(state, match.id, winner, score1, score2)
    return state


def by_code(state, code):
    return next(m for m in state.all_matches if m.code == code)


@pytest.fixture
def rng():
    """Seeded random source so tests are repeatable."""
    return random.Random(42)


@pytest.fixture
def roster8():
    return make_roster(8)


@pytest.fixture
def double8(roster8, rng):
    """8 competitors, no BYEs; slots are the roster in order."""
    return build_bracket(roster8, DOUBLE, rng)


@pytest.fixture
def double4(rng):
    return build_bracket(make_roster(4), DOUBLE, rng)


@pytest.fixture
def double5(rng):
    """5 competitors in an 8 bracket: 3 BYE matches in round 1."""
    return build_bracket(make_roster(5), DOUBLE, rng)


@pytest.fixture
def single8(roster8, rng):
    return build_bracket(roster8, SINGLE, rng)


@pytest.fixture
def five():
    """5 competitors with BYEs in W1-M1..M3 and P4 v P5 in W1-M4."""
    slots = ["P1", BYE, "P2", BYE, "P3", BYE, "P4", "P5"]
    return build_double_elimination(make_roster(5), slots)
