"""Tests for PRAMAAN CLI — proves CLI dispatches correctly."""

import json

import pytest
from pathlib import Path

from pramaan.cli import build_parser, main


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def _run(data_dir: Path, *argv: str) -> int:
    return main(["--config", str(CONFIG_DIR), "--data", str(data_dir), *argv])


class TestCLIParsing:
    def test_score_command(self) -> None:
        args = build_parser().parse_args(["score", "--identity-verified", "--content", "5"])
        assert args.command == "score"
        assert args.identity_verified is True
        assert args.profile_complete is False
        assert args.content == 5

    def test_register_user_command(self) -> None:
        args = build_parser().parse_args([
            "register-user", "--id", "alice", "--email", "alice@example.com",
            "--role", "BUSINESS",
        ])
        assert args.command == "register-user"
        assert args.id == "alice"
        assert args.role == "BUSINESS"

    def test_invalid_role_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([
                "register-user", "--id", "a", "--email", "a@example.com", "--role", "ADMIN",
            ])


class TestPureCommands:
    def test_score(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(tmp_path, "score", "--identity-verified", "--profile-complete") == 0
        out = json.loads(capsys.readouterr().out)
        assert out["score"] == 60
        assert out["level"] == "Verified"

    def test_level(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(tmp_path, "level", "--score", "95") == 0
        out = json.loads(capsys.readouterr().out)
        assert out["level"] == "Elite"
        assert out["next_level"]["next_level"] == "Max Level"

    def test_eligibility_exit_codes(self, tmp_path: Path) -> None:
        assert _run(tmp_path, "eligibility", "--score", "75", "--min", "70") == 0
        assert _run(tmp_path, "eligibility", "--score", "30", "--min", "50") == 2

    def test_check_policy(self, tmp_path: Path) -> None:
        assert _run(tmp_path, "check-policy") == 0

    def test_check_policy_missing_file(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path), "check-policy"]) == 1

    def test_no_command_prints_help(self) -> None:
        assert main([]) == 0


class TestStatefulCommands:
    def test_status_runs(self, tmp_path: Path) -> None:
        assert _run(tmp_path, "status") == 0

    def test_register_verify_and_recalculate(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(
            tmp_path, "register-user", "--id", "alice", "--email", "alice@example.com",
            "--name", "Alice", "--phone", "555", "--skills", "python, sql",
        ) == 0
        assert _run(tmp_path, "verify-identity", "--user", "alice") == 0
        capsys.readouterr()

        assert _run(tmp_path, "recalculate", "--user", "alice") == 0
        out = json.loads(capsys.readouterr().out)
        assert out["trust_score"] == 100
        assert out["persisted"] is False
        assert (tmp_path / "events.jsonl").exists()
        assert (tmp_path / "state.json").exists()

    def test_unknown_user_fails(self, tmp_path: Path) -> None:
        assert _run(tmp_path, "recalculate", "--user", "ghost") == 1

    def test_post_job_and_apply(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(tmp_path, "register-user", "--id", "acme", "--email", "hr@acme.example", "--role", "BUSINESS")
        _run(tmp_path, "register-user", "--id", "bob", "--email", "bob@example.com")
        assert _run(
            tmp_path, "post-job", "--company", "acme", "--title", "Analyst",
            "--description", "Numbers", "--min-score", "40", "--id", "job_1",
        ) == 0

        # bob scores 0 and is turned away
        assert _run(tmp_path, "apply", "--user", "bob", "--job", "job_1") == 1
        assert "Trust score requirement not met" in capsys.readouterr().err

        _run(tmp_path, "verify-identity", "--user", "bob")
        capsys.readouterr()
        assert _run(tmp_path, "apply", "--user", "bob", "--job", "job_1") == 0
        out = json.loads(capsys.readouterr().out)
        assert out["application_id"].startswith("app_")

    def test_tampered_event_log_reported(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(tmp_path, "register-user", "--id", "alice", "--email", "alice@example.com")
        log_path = tmp_path / "events.jsonl"
        record = json.loads(log_path.read_text(encoding="utf-8").splitlines()[0])
        record["payload"]["trust_score"] = 100
        log_path.write_text(json.dumps(record) + "\n", encoding="utf-8")
        capsys.readouterr()

        assert _run(tmp_path, "recalculate", "--user", "alice") == 1
        assert capsys.readouterr().err.startswith("Failed: Integrity check failed")

    def test_replayed_event_reported(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(tmp_path, "register-user", "--id", "alice", "--email", "alice@example.com")
        log_path = tmp_path / "events.jsonl"
        line = log_path.read_text(encoding="utf-8")
        log_path.write_text(line + line, encoding="utf-8")
        capsys.readouterr()

        assert _run(tmp_path, "status") == 1
        assert "Duplicate event ID on recovery" in capsys.readouterr().err

    def test_missing_resume_reported(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(tmp_path, "register-user", "--id", "acme", "--email", "hr@acme.example", "--role", "BUSINESS")
        _run(tmp_path, "register-user", "--id", "bob", "--email", "bob@example.com")
        _run(
            tmp_path, "post-job", "--company", "acme", "--title", "Analyst",
            "--description", "Numbers", "--id", "job_1",
        )
        capsys.readouterr()

        missing = tmp_path / "no-such-resume.txt"
        assert _run(tmp_path, "apply", "--user", "bob", "--job", "job_1", "--resume", str(missing)) == 1
        assert capsys.readouterr().err.startswith("Failed: ")
