"""Tests for the environment validation and drift detection script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "HUBSPOT_CLIENT_ID",
    "HUBSPOT_CLIENT_SECRET",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--hash-file", str(hash_file)])

    assert check_env.main(argv) == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_changed_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(env_file, HUBSPOT_CLIENT_ID="abc", HUBSPOT_CLIENT_SECRET="secret")

    argv = ["--env-file", str(env_file), "--hash-file", str(hash_file)]
    assert check_env.main(["record", *argv]) == check_env.EXIT_OK
    assert hash_file.read_text(encoding="utf-8").strip()

    _clear_required_env(monkeypatch)
    assert check_env.main(["verify", *argv]) == check_env.EXIT_OK

    _write_env(env_file, HUBSPOT_CLIENT_ID="abc", HUBSPOT_CLIENT_SECRET="rotated")
    _clear_required_env(monkeypatch)
    assert check_env.main(["verify", *argv]) == check_env.EXIT_CHECKSUM_ERROR


def test_verify_without_baseline_is_runtime_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, HUBSPOT_CLIENT_ID="abc", HUBSPOT_CLIENT_SECRET="secret")

    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(tmp_path / "nope")]
    )

    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_missing_client_secret_names_the_variable(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, HUBSPOT_CLIENT_ID="abc")

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_VALIDATION_ERROR
    assert "HUBSPOT_CLIENT_SECRET" in capsys.readouterr().err
