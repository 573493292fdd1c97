"""Tests for the environment validation and drift detection script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env

PROVIDER_ENV_KEYS = [
    "THINKIFIC_CLIENT_ID",
    "THINKIFIC_CLIENT_SECRET",
    "THINKIFIC_REDIRECT_URI",
    "SESSION_STORE_BACKEND",
    "DYNAMODB_TABLE_NAME",
]

VALID_ENV = {
    "THINKIFIC_CLIENT_ID": "abc",
    "THINKIFIC_CLIENT_SECRET": "secret",
    "THINKIFIC_REDIRECT_URI": "https://connector.example.com/api/auth/callback",
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_provider_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # check_env writes straight into os.environ; setenv first so teardown
    # also removes keys that were absent before the test.
    for key in PROVIDER_ENV_KEYS:
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    argv = [command, "--env-file", str(tmp_path / ".missing-env")]
    if command != "check":
        argv.extend(["--hash-file", str(tmp_path / ".env.sha256")])

    assert check_env.main(argv) == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"
    _write_env(env_file, **VALID_ENV)

    argv = ["--env-file", str(env_file), "--hash-file", str(hash_file)]
    assert check_env.main(["record", *argv]) == check_env.EXIT_OK
    assert hash_file.read_text(encoding="utf-8").strip()

    assert check_env.main(["verify", *argv]) == check_env.EXIT_OK

    _write_env(env_file, **{**VALID_ENV, "THINKIFIC_CLIENT_SECRET": "different"})
    for key in PROVIDER_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    assert check_env.main(["verify", *argv]) == check_env.EXIT_CHECKSUM_ERROR


def test_missing_client_secret_fails_validation(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        THINKIFIC_CLIENT_ID="abc",
        THINKIFIC_REDIRECT_URI="https://connector.example.com/api/auth/callback",
    )

    assert (
        check_env.main(["check", "--env-file", str(env_file)])
        == check_env.EXIT_VALIDATION_ERROR
    )


def test_malformed_redirect_uri_fails_validation(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, **{**VALID_ENV, "THINKIFIC_REDIRECT_URI": "not a url"})

    assert (
        check_env.main(["check", "--env-file", str(env_file)])
        == check_env.EXIT_VALIDATION_ERROR
    )


def test_dynamodb_backend_needs_table_name(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, **VALID_ENV, SESSION_STORE_BACKEND="dynamodb")

    assert (
        check_env.main(["check", "--env-file", str(env_file)])
        == check_env.EXIT_VALIDATION_ERROR
    )
