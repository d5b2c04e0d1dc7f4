"""Tests for CLI."""

import json
import logging

from chaoslab.chaos.config import FaultConfig, TripwireConfig
from chaoslab.chaos.export import to_chaos_yaml
from chaoslab.cli.main import cli


class TestCLI:
    def test_version(self, capsys):
        assert cli(["version"]) == 0
        assert "0.1.0" in capsys.readouterr().out

    def test_no_args(self):
        assert cli([]) == 1

    def test_config_prints_yaml(self, capsys):
        assert cli(["config", "--seed", "42", "--http-500-rate", "0.1", "--loop-n", "5"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("mode: chaos_monkey\nseed: 42\n")
        assert "loop_arrest_n: 5" in out
        assert "probability: 0.1" in out

    def test_run_baseline_markdown(self, capsys):
        assert cli(["run", "json", "--seed", "7", "--baseline"]) == 0
        out = capsys.readouterr().out
        assert "# Chaos Lab — REPORT" in out
        assert "**Baseline Score:** 100" in out

    def test_run_json_output(self, capsys):
        assert cli(["run", "fetch", "--seed", "1337", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["metrics"]["score"] == 100
        assert data["gate"]["passed"] is True

    def test_run_gate_failure(self, capsys):
        code = cli([
            "run", "fetch", "--http-500-rate", "1.0", "--max-retries", "0", "--fallback", "none",
            "--min-score", "90", "--json",
        ])
        assert code == 1
        assert "Check trace and retry." in capsys.readouterr().err

    def test_run_unknown_scenario(self, capsys):
        assert cli(["run", "bogus"]) == 1

    def test_run_from_config_file(self, tmp_path, capsys):
        path = tmp_path / "run.yml"
        path.write_text("scenario: rag\nseed: 2025\nfaults:\n  injSeed: benign-01\n")
        assert cli(["run", "--config", str(path), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["scenario"] == "rag"
        assert data["seed"] == "2025"

    def test_run_replays_repro_file(self, tmp_path, capsys):
        path = tmp_path / "chaos.yml"
        path.write_text(to_chaos_yaml("4242", FaultConfig(http_500_rate=1.0), 3, TripwireConfig(max_retries=0)))
        assert cli(["run", "fetch", "--repro", str(path), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["seed"] == "4242"
        assert data["rows"][0]["fault"] == "http_500"
        assert "max_retries: 0" in data["yaml"]

    def test_run_repro_missing_file(self, tmp_path, capsys):
        assert cli(["run", "fetch", "--repro", str(tmp_path / "missing.yml")]) == 1
        assert "Cannot replay" in capsys.readouterr().err

    def test_run_writes_trace_json(self, tmp_path, capsys):
        path = tmp_path / "trace.json"
        assert cli(["run", "json", "--seed", "7", "--trace-out", str(path)]) == 0
        doc = json.loads(path.read_text())
        assert doc["scenario"] == "json"
        assert doc["run_id"].endswith("-7")
        assert [step["tool"] for step in doc["steps"]] == ["web.fetch", "format_table"]
        assert doc["metrics"]["score"] == 100

    def test_run_without_faults_logs_notice(self, capsys, caplog):
        caplog.set_level(logging.INFO, logger="chaoslab.cli.main")
        assert cli(["run", "json", "--seed", "7"]) == 0
        assert "No faults configured" in caplog.text

    def test_eval_unknown_suite(self, capsys):
        assert cli(["eval", "no_such_suite"]) == 1
        assert "reliability_core" in capsys.readouterr().err

    def test_eval_suite_file_markdown(self, tmp_path, capsys):
        path = tmp_path / "suite.yml"
        path.write_text("suite: Tiny\ncases:\n  - scenario: json\n    seeds: [1]\ngate:\n  score_min: 50\n")
        assert cli(["eval", str(path), "--markdown"]) == 0
        assert "# Evals Report — Tiny" in capsys.readouterr().out
