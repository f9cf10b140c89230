"""Tests for the command-line interface."""

import json

import pytest

from pathfinder.cli import build_parser, main

SAMPLE_NETWORK = {
    "profiles": [
        {"id": "alice", "name": "Alice"},
        {"id": "bob", "name": "Bob"},
        {"id": "carol", "name": "Carol"},
        {"id": "dave", "name": "Dave"},
    ],
    "connections": [["alice", "bob"], ["bob", "carol"]],
}


@pytest.fixture
def network_file(tmp_path, monkeypatch):
    for var in ("PATHFINDER_SEMANTIC_URL", "ANTHROPIC_API_KEY", "PATHFINDER_NETWORK_PATH"):
        monkeypatch.delenv(var, raising=False)
    path = tmp_path / "network.json"
    path.write_text(json.dumps(SAMPLE_NETWORK))
    return str(path)


class TestParser:
    def test_repeated_targets(self):
        args = build_parser().parse_args(["--from", "alice", "--to", "bob", "--to", "carol"])
        assert args.requester == "alice"
        assert args.targets == ["bob", "carol"]
        assert not args.output_json

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--from", "a", "--to", "b", "--compare", "--batch"])


class TestMain:
    def test_json_output(self, network_file, capsys):
        main(["-n", network_file, "--from", "alice", "--to", "carol", "--json"])
        data = json.loads(capsys.readouterr().out)
        [strategies] = data.values()
        assert strategies[0]["type"] == "mutual"
        assert [n["id"] for n in strategies[0]["path"]["nodes"]] == ["alice", "bob", "carol"]

    def test_report(self, network_file, capsys):
        main(["-n", network_file, "--from", "alice", "--to", "bob"])
        out = capsys.readouterr().out
        assert "Alice → Bob" in out
        assert "mutual" in out
        assert "Path: Alice -> Bob" in out

    def test_batch_keeps_confident_matches(self, network_file, capsys):
        main(["-n", network_file, "--from", "alice", "--to", "dave", "--to", "bob",
              "--batch", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert [s["type"] for s in data["Batch results"]] == ["mutual"]

    def test_compare(self, network_file, capsys):
        main(["-n", network_file, "--from", "alice", "--to", "dave", "--compare"])
        out = capsys.readouterr().out
        assert "Alice → Dave" in out
        assert "#1  intermediary  (low confidence)" in out

    def test_network_from_env(self, network_file, monkeypatch, capsys):
        monkeypatch.setenv("PATHFINDER_NETWORK_PATH", network_file)
        main(["--from", "alice", "--to", "bob", "--json"])
        assert "mutual" in capsys.readouterr().out

    def test_unknown_profile(self, network_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-n", network_file, "--from", "alice", "--to", "mallory"])
        assert exc_info.value.code == 2
        assert "mallory" in capsys.readouterr().err

    def test_missing_network(self, network_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["--from", "alice", "--to", "bob"])
        assert exc_info.value.code == 2
