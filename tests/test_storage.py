"""
Tests for saving and loading brackets and rosters.
"""
import pytest
import yaml

from brackets.errors import StorageError
from brackets.storage import (
    load_bracket, load_competitors, save_bracket, state_from_dict, state_to_dict,
)
from conftest import by_code, play


class TestStateDict:
    """Tests for state_to_dict and state_from_dict."""

    def test_round_trip(self, double5):
        data = state_to_dict(double5)
        assert state_from_dict(data) == double5

    def test_round_trip_mid_tournament(self, double8):
        state = play(double8, "W1-M1")
        state = play(state, "W1-M2", winner="P4")
        assert state_from_dict(state_to_dict(state)) == state

    def test_plain_data(self, double8):
        data = state_to_dict(double8)
        assert data['format'] == 'double'
        assert data['bracket_size'] == 8
        assert data['competitors'] == [f"P{i}" for i in range(1, 9)]
        first = data['matches'][0]
        assert first['id'] == 1
        assert first['slot1'] == 'P1'
        assert first['void_slots'] == 0

    def test_unknown_format(self, double8):
        data = state_to_dict(double8)
        data['format'] = 'round-robin'
        with pytest.raises(StorageError):
            state_from_dict(data)

    def test_missing_keys(self):
        with pytest.raises(StorageError):
            state_from_dict({'format': 'double'})


class TestBracketFiles:
    """Tests for save_bracket and load_bracket."""

    def test_save_and_load(self, tmp_path, double8):
        path = str(tmp_path / "bracket.yaml")
        state = play(double8, "W1-M1")
        save_bracket(path, state)
        assert load_bracket(path) == state

    def test_continue_after_load(self, tmp_path, double8):
        """A reloaded bracket plays on exactly like the one that was saved."""
        path = str(tmp_path / "bracket.yaml")
        state = play(double8, "W1-M1")
        state = play(state, "W1-M2")
        save_bracket(path, state)

        loaded = load_bracket(path)
        assert play(loaded, "L1-M1") == play(state, "L1-M1")

    def test_creates_directory(self, tmp_path, double4):
        path = str(tmp_path / "nested" / "dir" / "bracket.yaml")
        save_bracket(path, double4)
        assert load_bracket(path) == double4

    def test_file_is_yaml(self, tmp_path, double4):
        path = tmp_path / "bracket.yaml"
        save_bracket(str(path), double4)
        data = yaml.safe_load(path.read_text())
        assert data['format'] == 'double'
        assert len(data['matches']) == len(double4.all_matches)

    def test_missing_file(self, tmp_path):
        with pytest.raises(StorageError):
            load_bracket(str(tmp_path / "nope.yaml"))

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "bracket.yaml"
        path.write_text("just a string")
        with pytest.raises(StorageError):
            load_bracket(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bracket.yaml"
        path.write_text("format: [unclosed")
        with pytest.raises(StorageError):
            load_bracket(str(path))


class TestLoadCompetitors:
    """Tests for load_competitors."""

    def test_csv(self, tmp_path):
        path = tmp_path / "players.csv"
        path.write_text("name,phone\nAlice,555-0101\nBob,\n\n")
        competitors = load_competitors(str(path))
        assert [c.name for c in competitors] == ["Alice", "Bob"]
        assert competitors[0].attributes == {'phone': '555-0101'}
        assert competitors[1].attributes == {}

    def test_csv_header_case(self, tmp_path):
        path = tmp_path / "players.csv"
        path.write_text("Name\nAlice\nBob\n")
        assert [c.name for c in load_competitors(str(path))] == ["Alice", "Bob"]

    def test_csv_needs_name_column(self, tmp_path):
        path = tmp_path / "players.csv"
        path.write_text("player,phone\nAlice,1\n")
        with pytest.raises(StorageError):
            load_competitors(str(path))

    def test_yaml_names(self, tmp_path):
        path = tmp_path / "players.yaml"
        path.write_text("- Alice\n- Bob\n- Carol\n")
        assert [c.name for c in load_competitors(str(path))] == ["Alice", "Bob", "Carol"]

    def test_yaml_mappings(self, tmp_path):
        path = tmp_path / "players.yml"
        path.write_text(yaml.dump({'competitors': [{'name': 'Alice', 'phone': '1'}, {'name': 'Bob'}]}))
        competitors = load_competitors(str(path))
        assert [c.name for c in competitors] == ["Alice", "Bob"]
        assert competitors[0].attributes == {'phone': '1'}

    def test_missing_roster(self, tmp_path):
        with pytest.raises(StorageError):
            load_competitors(str(tmp_path / "missing.csv"))

    def test_roster_builds_bracket(self, tmp_path):
        from brackets.double_elimination import build_bracket
        path = tmp_path / "players.yaml"
        path.write_text("- Alice\n- Bob\n- Carol\n")
        state = build_bracket(load_competitors(str(path)))
        assert set(state.competitors) == {"Alice", "Bob", "Carol"}
        assert by_code(state, "W1-M1").slot1 == "Alice"
