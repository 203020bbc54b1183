"""Tests for CLI commands, run against a temporary SQLite file and a mock source."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from greport.cli import main
from greport.domain import Issue, IssueState, Label, Repository, User
from greport.engines.source import ClientRegistry, MockClient, MockData

NOW = datetime.now(timezone.utc)
DAY = timedelta(days=1)


def _data():
    repo = Repository(
        id=42,
        owner="octo",
        name="widgets",
        full_name="octo/widgets",
        created_at=NOW - DAY * 50,
        updated_at=NOW,
    )
    issue = Issue(
        101,
        1,
        "crash on start",
        IssueState.CLOSED,
        User(id=1, login="alice"),
        NOW - DAY * 5,
        NOW - DAY,
        labels=(Label(id=1, name="bug"),),
        closed_at=NOW - DAY,
    )
    return MockData().with_repository(repo).with_issues("octo/widgets", [issue])


@pytest.fixture
def env(tmp_path):
    return {
        "GREPORT_CONFIG": str(tmp_path / "config.toml"),
        "GREPORT_DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'greport.db'}",
    }


@pytest.fixture
def mock_registry():
    registry = ClientRegistry(default=MockClient(_data()))
    with patch("greport.cli.ClientRegistry.from_config", return_value=registry):
        yield registry


# ── TestConfigErrors ──


class TestConfigErrors:
    def test_missing_config_file(self, tmp_path):
        result = CliRunner().invoke(main, ["-c", str(tmp_path / "nope.toml"), "sync-all"])
        assert result.exit_code == 2
        assert "config file not found" in result.output

    def test_bad_repository_argument(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("")
        result = CliRunner().invoke(main, ["-c", str(path), "sync", "not-a-repo"])
        assert result.exit_code == 2


# ── TestSync ──


class TestSync:
    def test_sync_repository(self, env, tmp_path, mock_registry):
        (tmp_path / "config.toml").write_text("")
        result = CliRunner().invoke(main, ["sync", "octo/widgets"], env=env)
        assert result.exit_code == 0, result.output
        assert "Synced octo/widgets:" in result.stdout
        assert "Issues: 1" in result.stdout

    def test_sync_unknown_repository_fails(self, env, tmp_path, mock_registry):
        (tmp_path / "config.toml").write_text("")
        result = CliRunner().invoke(main, ["sync", "octo/missing"], env=env)
        assert result.exit_code == 1
        assert "sync of octo/missing failed" in result.output

    def test_sync_all_reports_failures(self, env, tmp_path, mock_registry):
        (tmp_path / "config.toml").write_text(
            '[[organizations]]\nname = "octo"\nrepos = ["octo/widgets", "octo/missing"]\n'
        )
        result = CliRunner().invoke(main, ["sync-all"], env=env)
        assert result.exit_code == 1
        assert "[+] octo/widgets" in result.stdout
        assert "[!] octo/missing" in result.stdout
        assert "1/2 repositories synced" in result.stdout


# ── TestNotes ──


class TestNotes:
    def test_notes_markdown(self, env, tmp_path, mock_registry):
        (tmp_path / "config.toml").write_text("")
        result = CliRunner().invoke(main, ["notes", "octo/widgets", "--version", "v1.0"], env=env)
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("# v1.0 (")
        assert "crash on start (#1) @alice" in result.stdout
