"""Tests for CLI commands: algorithms, init, review, migrate, due and config."""

import json

import pytest
from typer.testing import CliRunner

from cadence.interface.cli import app

runner = CliRunner()

NEW_SM2 = {
    "algorithmTag": "sm2",
    "nextReviewAt": "2023-01-02T00:00:00+00:00",
    "lastReviewAt": None,
    "algorithmData": {"easeFactor": 2.5, "repetitionCount": 0},
}


@pytest.fixture(autouse=True)
def quiet(mock_home, monkeypatch):
    monkeypatch.setenv("CADENCE_LOG_LEVEL", "ERROR")


@pytest.fixture
def state_file(tmp_path):
    path = tmp_path / "card.json"
    path.write_text(json.dumps(NEW_SM2))
    return path


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "spaced-repetition scheduling engine" in result.stdout
    assert "review" in result.stdout
    assert "migrate" in result.stdout


def test_algorithms():
    result = runner.invoke(app, ["algorithms"])
    assert result.exit_code == 0
    lines = result.stdout.split()
    assert "modified-sm2" in lines
    assert "sm2" in lines
    assert "(default)" in result.stdout


def test_init_default():
    result = runner.invoke(app, ["init", "--now", "2023-01-01T00:00:00Z"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == NEW_SM2


def test_init_modified():
    result = runner.invoke(
        app, ["init", "--algorithm", "modified-sm2", "--now", "2023-01-01T00:00:00+00:00"]
    )
    assert result.exit_code == 0
    record = json.loads(result.stdout)
    assert record["nextReviewAt"] == "2023-01-01T00:00:45+00:00"
    assert record["algorithmData"]["isFailed"] is False


def test_init_unknown_algorithm():
    result = runner.invoke(app, ["init", "--algorithm", "fsrs"])
    assert result.exit_code == 1
    assert "not supported" in result.output


def test_review(state_file):
    result = runner.invoke(app, ["review", str(state_file), "easy", "--at", "2023-01-02T00:00:00Z"])
    assert result.exit_code == 0

    output = json.loads(result.stdout)
    assert output["wasSuccessful"] is True
    assert output["state"]["nextReviewAt"] == "2023-01-03T00:00:00+00:00"
    assert output["state"]["algorithmData"]["repetitionCount"] == 1
    # not written back without --write
    assert json.loads(state_file.read_text()) == NEW_SM2


def test_review_write(state_file):
    result = runner.invoke(
        app, ["review", str(state_file), "good", "--at", "2023-01-02T00:00:00Z", "--write"]
    )
    assert result.exit_code == 0
    assert json.loads(state_file.read_text())["lastReviewAt"] == "2023-01-02T00:00:00+00:00"


def test_review_unknown_response(state_file):
    result = runner.invoke(app, ["review", str(state_file), "meh"])
    assert result.exit_code == 2
    assert "Unknown review response" in result.output


def test_review_incompatible_record(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({**NEW_SM2, "algorithmData": {"easeFactor": 0.1, "repetitionCount": 0}}))

    result = runner.invoke(app, ["review", str(path), "good"])

    assert result.exit_code == 1
    assert "Incompatible" in result.output


def test_review_missing_file(tmp_path):
    result = runner.invoke(app, ["review", str(tmp_path / "missing.json"), "good"])
    assert result.exit_code == 1


def test_review_recovery_threshold_override(tmp_path):
    path = tmp_path / "card.json"
    init = runner.invoke(app, ["init", "-a", "modified-sm2", "--now", "2023-01-01T00:00:00Z"])
    path.write_text(init.stdout)

    result = runner.invoke(
        app,
        ["review", str(path), "failed", "--at", "2023-01-01T00:00:01Z", "--recovery-threshold", "2"],
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)["state"]["algorithmData"]
    assert data["isFailed"] is True
    assert data["recallsRemaining"] == 2


def test_migrate(state_file):
    result = runner.invoke(app, ["migrate", str(state_file), "modified-sm2", "--write"])
    assert result.exit_code == 0

    record = json.loads(state_file.read_text())
    assert record["algorithmTag"] == "modified-sm2"
    assert record["algorithmData"]["repetitionCount"] == 1
    assert record["nextReviewAt"] == NEW_SM2["nextReviewAt"]


@pytest.fixture
def broken_modified_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(
        json.dumps(
            {
                "algorithmTag": "modified-sm2",
                "nextReviewAt": "2023-01-02T00:00:00+00:00",
                "lastReviewAt": None,
                "algorithmData": {"easeFactor": 0.5, "repetitionCount": 0},
            }
        )
    )
    return path


def test_migrate_not_possible(broken_modified_file):
    result = runner.invoke(app, ["migrate", str(broken_modified_file), "modified-sm2"])
    assert result.exit_code == 1
    assert "not possible" in result.output


def test_migrate_fallback_starts_fresh(broken_modified_file):
    result = runner.invoke(
        app, ["migrate", str(broken_modified_file), "modified-sm2", "--fallback", "--write"]
    )
    assert result.exit_code == 0

    record = json.loads(broken_modified_file.read_text())
    assert record["algorithmTag"] == "modified-sm2"
    assert record["lastReviewAt"] is None
    assert record["algorithmData"] == {
        "easeFactor": 2.5,
        "repetitionCount": 0,
        "isFailed": False,
        "recallsRemaining": 0,
    }


def test_review_interval_out_of_range(tmp_path):
    path = tmp_path / "card.json"
    path.write_text(
        json.dumps(
            {
                "algorithmTag": "sm2",
                "nextReviewAt": "2025-09-28T00:00:00+00:00",
                "lastReviewAt": "2023-01-01T00:00:00+00:00",
                "algorithmData": {"easeFactor": 5000.0, "repetitionCount": 3},
            }
        )
    )

    result = runner.invoke(app, ["review", str(path), "easy", "--at", "2025-09-28T00:00:00Z"])

    assert result.exit_code == 1
    assert "out of range" in result.output


def test_migrate_unknown_target(state_file):
    result = runner.invoke(app, ["migrate", str(state_file), "sm4"])
    assert result.exit_code == 1
    assert "not supported" in result.output


def test_due(state_file):
    result = runner.invoke(app, ["due", str(state_file), "--at", "2023-01-01T00:00:00Z"])
    assert result.exit_code == 0
    assert "Due in 1 day(s)" in result.stdout

    result = runner.invoke(app, ["due", str(state_file), "--at", "2023-01-05T00:00:00Z"])
    assert result.exit_code == 0
    assert "Due now." in result.stdout


def test_bad_timestamp(state_file):
    result = runner.invoke(app, ["due", str(state_file), "--at", "yesterday"])
    assert result.exit_code == 2


def test_config_show(monkeypatch):
    monkeypatch.setenv("CADENCE_RECOVERY_THRESHOLD", "5")
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["recovery_threshold"] == 5
    assert data["default_algorithm"] == "sm2"
