"""Tests for the administrative command line."""

import asyncio

import pytest

from earmark import cli
from earmark.core import logging as earmark_logging
from earmark.core.config import settings
from earmark.core.security import get_password_hash, validate_password
from earmark.db.session import Database
from earmark.services.lockout import MAX_FAILED_ATTEMPTS, record_attempt
from tests.helpers import write_audio


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a temporary database and audio directory."""
    audio_dir = tmp_path / "audio"
    audio_dir.mkdir()
    db_path = tmp_path / "data" / "cli.db"
    monkeypatch.setattr(settings, "DB_PATH", str(db_path))
    monkeypatch.setattr(settings, "AUDIO_PATH", str(audio_dir))
    monkeypatch.setattr(earmark_logging, "setup_logging", lambda: None)
    return audio_dir, db_path


def _seed_failures(db_path, count: int) -> None:
    async def seed():
        database = Database.for_path(str(db_path))
        await database.create_all()
        async with database.session_maker() as session:
            for _ in range(count):
                await record_attempt(session, "10.0.0.1", success=False)
        await database.dispose()

    asyncio.run(seed())


def test_hash_password(capsys):
    assert cli.main(["hash-password", "--password", "s3cret", "--rounds", "4"]) == 0

    hashed = capsys.readouterr().out.strip()
    assert hashed.startswith("$2b$04$")
    assert validate_password("s3cret", hashed)


def test_hash_password_prompts(monkeypatch, capsys):
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "prompted")

    assert cli.main(["hash-password", "--rounds", "4"]) == 0
    assert validate_password("prompted", capsys.readouterr().out.strip())


def test_hash_password_confirmation_mismatch(monkeypatch):
    answers = iter(["first", "second"])
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": next(answers))

    with pytest.raises(SystemExit):
        cli.main(["hash-password", "--rounds", "4"])


def test_verify_password_with_explicit_hash(capsys):
    hashed = get_password_hash("s3cret", rounds=4)

    assert cli.main(["verify-password", "--password", "s3cret", "--hash", hashed]) == 0
    assert "matches" in capsys.readouterr().out
    assert cli.main(["verify-password", "--password", "nope", "--hash", hashed]) == 1


def test_verify_password_uses_configured_hash(monkeypatch):
    monkeypatch.setattr(settings, "PASSWORD_HASH", get_password_hash("s3cret", rounds=4))

    assert cli.main(["verify-password", "--password", "s3cret"]) == 0


def test_verify_password_without_any_hash(monkeypatch, capsys):
    monkeypatch.setattr(settings, "PASSWORD_HASH", "")

    assert cli.main(["verify-password", "--password", "s3cret"]) == 1
    assert "PASSWORD_HASH" in capsys.readouterr().err


def test_scan(cli_env, capsys):
    audio_dir, db_path = cli_env
    write_audio(audio_dir, "one.mp3")
    write_audio(audio_dir, "nested/two.mp3")

    assert cli.main(["scan"]) == 0

    out = capsys.readouterr().out
    assert "New files:      2" in out
    assert "Total files:    2" in out
    assert db_path.exists()


def test_scan_reports_restored(cli_env, capsys):
    audio_dir, _ = cli_env
    path = write_audio(audio_dir, "one.mp3")
    cli.main(["scan"])
    path.unlink()
    cli.main(["scan"])
    write_audio(audio_dir, "one.mp3")
    capsys.readouterr()

    cli.main(["scan"])

    assert "Restored files: 1" in capsys.readouterr().out


def test_attempts_and_unlock(cli_env, capsys):
    _, db_path = cli_env
    _seed_failures(db_path, MAX_FAILED_ATTEMPTS)

    assert cli.main(["attempts", "--limit", "2"]) == 0
    out = capsys.readouterr().out
    assert f"Failed attempts: {MAX_FAILED_ATTEMPTS}/{MAX_FAILED_ATTEMPTS} (LOCKED)" in out
    assert out.count("FAILED") == 2

    assert cli.main(["unlock"]) == 0
    assert f"Cleared {MAX_FAILED_ATTEMPTS} auth attempt(s)" in capsys.readouterr().out

    cli.main(["attempts"])
    out = capsys.readouterr().out
    assert "(unlocked)" in out
    assert "No auth attempts recorded" in out


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.main([])
