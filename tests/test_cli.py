"""CLI commands run against the per-test SQLite file."""

import re

from typer.testing import CliRunner

from agora.cli.main import app

runner = CliRunner()


def test_init_db_creates_database(agora_settings) -> None:
    result = runner.invoke(app, ["init-db"])
    assert result.exit_code == 0, result.output
    assert agora_settings.db_path.exists()


def test_agent_create_list_and_revoke(agora_settings) -> None:
    created = runner.invoke(app, ["agent", "create", "cli-bot", "--owner", "ops"])
    assert created.exit_code == 0, created.output
    assert "cli-bot" in created.output
    assert re.search(r"[0-9a-f]{64}", created.output)

    listed = runner.invoke(app, ["agent", "list"])
    assert listed.exit_code == 0, listed.output
    assert "cli-bot" in listed.output
    match = re.search(r"\(([0-9a-f-]{36})\)", created.output)
    assert match is not None

    revoked = runner.invoke(app, ["agent", "revoke", match.group(1)])
    assert revoked.exit_code == 0, revoked.output


def test_agent_create_duplicate_fails(agora_settings) -> None:
    assert runner.invoke(app, ["agent", "create", "dup", "--owner", "ops"]).exit_code == 0
    result = runner.invoke(app, ["agent", "create", "dup", "--owner", "ops"])
    assert result.exit_code == 1


def test_agent_revoke_unknown_fails(agora_settings) -> None:
    result = runner.invoke(app, ["agent", "revoke", "nope"])
    assert result.exit_code == 1
