"""Tests for the command-line interface."""

import json

import pytest

from dutyrota.cli import create_sample_participants, load_request, main
from dutyrota.domain.errors import InvalidInputError

REQUEST = {
    "roster": [
        {"id": "p1", "name": "Alice"},
        {"id": "p2", "name": "Bob"},
        {"id": "p3", "name": "Carol"},
    ],
    "start": "2024-06-03",
    "end": "2024-06-14",
    "overrides": [{"date": "2024-06-04", "kind": "duty", "label": "Inventory"}],
}


@pytest.fixture
def request_file(tmp_path):
    path = tmp_path / "request.json"
    path.write_text(json.dumps(REQUEST), encoding="utf-8")
    return path


class TestGenerateCommand:
    """Tests for `dutyrota generate`."""

    def test_json_output(self, request_file, capsys):
        assert main(["generate", str(request_file), "--json", "--seed", "5"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["balanced"] is True
        assert data["retriesUsed"] == 1
        assert len(data["schedule"]) == 10
        assert data["schedule"]["2024-06-04"]["label"] == "Inventory"
        assert data["stats"]["p1"] == {"name": "Alice", "count": 4}

    def test_text_output(self, request_file, capsys):
        assert main(["generate", str(request_file), "--seed", "5"]) == 0
        out = capsys.readouterr().out
        assert "Validation: PASSED" in out
        assert "Alice (p1): 4 (target 4)" in out

    def test_output_file(self, request_file, tmp_path, capsys):
        output = tmp_path / "result.json"
        assert main(["generate", str(request_file), "--json", "-o", str(output)]) == 0
        written = json.loads(output.read_text(encoding="utf-8"))
        assert written == json.loads(capsys.readouterr().out)

    def test_cpsat_solver(self, request_file, capsys):
        assert main(["generate", str(request_file), "--json", "--solver", "cpsat"]) == 0
        assert json.loads(capsys.readouterr().out)["balanced"] is True

    def test_empty_roster_exit_code(self, tmp_path, capsys):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({**REQUEST, "roster": []}), encoding="utf-8")
        assert main(["generate", str(path)]) == 2
        assert "Roster must not be empty" in capsys.readouterr().err

    def test_missing_file_exit_code(self, tmp_path, capsys):
        assert main(["generate", str(tmp_path / "nope.json")]) == 2
        assert "Cannot read" in capsys.readouterr().err


class TestDemoCommand:
    """Tests for `dutyrota demo`."""

    def test_demo(self, capsys):
        assert main(["demo", "--count", "4", "--days", "14", "--seed", "1"]) == 0
        out = capsys.readouterr().out
        assert "Generating demo rotation for 4 participants over 14 days" in out
        assert "Min/Max/Avg duties" in out

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestHelpers:
    """Tests for CLI helpers."""

    def test_sample_participants(self):
        participants = create_sample_participants(18)
        assert participants[0].id == "P001"
        assert participants[0].name == "Alice"
        assert participants[16].name == "Alice2"
        assert len({p.id for p in participants}) == 18

    def test_load_request_rejects_bad_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidInputError):
            load_request(str(path))

    def test_load_request_rejects_list(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(InvalidInputError):
            load_request(str(path))
