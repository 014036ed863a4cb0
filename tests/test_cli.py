"""
Tests for the command-line entry point.
"""
import json
import logging
import os
import tempfile

import pytest

from chef_coach.cli import _load_config, build_parser, main
from chef_coach.config import get_preset


@pytest.fixture(autouse=True)
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestSimulateCommand:
    """Tests for `chef-coach simulate`."""

    def test_json_report(self, capsys):
        code = main(["simulate", "--rounds", "2", "--skill", "1.0", "--seed", "3",
                     "--preset", "deterministic", "--recipe", "Smoothie", "--json"])
        assert code == 0

        report = json.loads(capsys.readouterr().out)
        assert len(report["rounds"]) == 2
        assert report["completion_rate"] == 1.0
        assert {r["task_id"] for r in report["rounds"]} == {"Smoothie"}

    def test_text_report(self, capsys):
        code = main(["simulate", "--rounds", "1", "--skill", "1.0", "--seed", "3",
                     "--preset", "deterministic"])
        assert code == 0
        out = capsys.readouterr().out
        assert "Round   1" in out
        assert "Completion rate: 100%" in out

    def test_unknown_preset(self, capsys):
        assert main(["simulate", "--preset", "frantic"]) == 2
        assert "Unknown preset" in capsys.readouterr().err

    def test_learning_carries_over_between_runs(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            args = ["simulate", "--rounds", "1", "--skill", "1.0", "--seed", "3",
                    "--preset", "deterministic", "--save-dir", tmpdir, "--session", "kid"]
            main(args)
            assert os.path.exists(os.path.join(tmpdir, "kid_coach.json"))
            capsys.readouterr()

            main(args + ["--json"])
            captured = capsys.readouterr()
            assert "Restored learned state" in captured.err
            report = json.loads(captured.out)
            assert report["stats"]["profile"]["total_rounds"] == 2


class TestConfigSource:
    """Tests for picking the coach config from a preset or a file."""

    def test_seed_applies_to_config_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "coach.json")
            get_preset("default").save(path)

            args = build_parser().parse_args(["simulate", "--config", path, "--seed", "9"])
            config = _load_config(args)

        assert config.prng_seed == 9
        assert config.agent_config("timing").prng_seed == 10

    def test_seed_applies_to_preset(self):
        args = build_parser().parse_args(["simulate", "--preset", "patient", "--seed", "9"])
        assert _load_config(args).prng_seed == 9

    def test_missing_config_file(self, capsys):
        assert main(["simulate", "--config", "/nonexistent/coach.yaml"]) == 2
        assert "Could not load config" in capsys.readouterr().err


class TestParser:
    """Tests for argument parsing."""

    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])
        assert args.host == "127.0.0.1"
        assert args.port == 8000
        assert args.preset == "default"

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
