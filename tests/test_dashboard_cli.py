# ABOUTME: Verifies the dashboard CLI exposes build and skills commands and runs on the fixture payload.
# ABOUTME: Ensures malformed or incomplete payloads exit with a non-zero code.

import json
from pathlib import Path

from typer.testing import CliRunner

from scripts import dashboard_report

FIXTURE = Path(__file__).parent / "fixtures" / "dashboard_payload.json"
runner = CliRunner()


def test_dashboard_cli_has_build_and_skills_commands():
    app = dashboard_report.app
    command_names = {cmd.name or cmd.callback.__name__ for cmd in app.registered_commands}
    assert "build" in command_names
    assert "skills" in command_names


def test_build_writes_report_json(tmp_path):
    output = tmp_path / "report.json"
    result = runner.invoke(dashboard_report.app, ["build", "--payload", str(FIXTURE), "--output", str(output)])

    assert result.exit_code == 0, result.output
    assert "jdoe" in result.output
    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["total_xp"] == 350
    assert report["skills"][0]["name"] == "Go"


def test_build_strict_mode_rejects_malformed_records():
    result = runner.invoke(dashboard_report.app, ["build", "--payload", str(FIXTURE), "--strict"])
    assert result.exit_code == 1
    assert "amount" in result.output


def test_build_uses_user_ratio_when_audit_block_missing(tmp_path):
    payload = json.loads(FIXTURE.read_text(encoding="utf-8"))
    del payload["audit_input"]
    payload["user"][0].update({"auditRatio": 0.5, "totalUp": 1000, "totalDown": 2000})
    path = tmp_path / "payload.json"
    path.write_text(json.dumps({"data": payload}), encoding="utf-8")
    output = tmp_path / "report.json"

    result = runner.invoke(dashboard_report.app, ["build", "--payload", str(path), "--output", str(output)])

    assert result.exit_code == 0, result.output
    audit = json.loads(output.read_text(encoding="utf-8"))["audit"]
    assert audit["ratio"] == 0.5
    assert audit["counts_approximate"] is True


def test_build_fails_on_missing_collection(tmp_path):
    payload = json.loads(FIXTURE.read_text(encoding="utf-8"))
    del payload["progress_records"]
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    result = runner.invoke(dashboard_report.app, ["build", "--payload", str(path)])
    assert result.exit_code == 1
    assert "progress_records" in result.output


def test_skills_command_prints_ranking():
    result = runner.invoke(dashboard_report.app, ["skills", "--payload", str(FIXTURE), "--top-n", "2"])
    assert result.exit_code == 0, result.output
    assert "Go" in result.output
    assert "JavaScript" in result.output
    assert "Docker" not in result.output


def test_build_rejects_non_finite_user_totals(tmp_path):
    payload = json.loads(FIXTURE.read_text(encoding="utf-8"))
    payload["user"][0]["totalUp"] = float("nan")
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    result = runner.invoke(dashboard_report.app, ["build", "--payload", str(path)])
    assert result.exit_code == 1
    assert "totalUp" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_skills_command_reads_top_n_from_config(tmp_path):
    config = tmp_path / "dashboard.yaml"
    config.write_text("dashboard:\n  top_skills: 1\n", encoding="utf-8")

    result = runner.invoke(dashboard_report.app, ["skills", "--payload", str(FIXTURE), "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert "Go" in result.output
    assert "JavaScript" not in result.output
