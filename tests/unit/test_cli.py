"""Unit tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from collectiondesk import __version__
from collectiondesk.cli import cli

CURRENT = {
    "slug": "orders",
    "version": 3,
    "fields": [
        {"name": "amount", "type": "text"},
        {"name": "note", "type": "text"},
    ],
}

DESIRED = {
    "fields": [
        {"name": "total", "type": "number", "default_value": 0},
        {"name": "status", "type": "text", "default": "pending"},
    ]
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def schema_files(tmp_path):
    current = tmp_path / "current.json"
    desired = tmp_path / "desired.json"
    current.write_text(json.dumps(CURRENT))
    desired.write_text(json.dumps(DESIRED))
    return str(current), str(desired)


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_plan_migration(runner, schema_files):
    result = runner.invoke(
        cli, ["plan-migration", *schema_files, "--rename", "amount=total", "--policy", "coerce"]
    )

    assert result.exit_code == 0, result.output
    plan = json.loads(result.output)
    assert plan["from_version"] == 3
    assert plan["to_version"] == 4
    assert plan["conflict_policy"] == "coerce"
    assert [s["kind"] for s in plan["steps"]] == ["renameField", "retypeField", "dropField", "addField"]


def test_plan_migration_accepts_field_list(runner, tmp_path, schema_files):
    desired = tmp_path / "fields.json"
    desired.write_text(json.dumps(CURRENT["fields"]))

    result = runner.invoke(cli, ["plan-migration", schema_files[0], str(desired)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["steps"] == []


def test_plan_migration_reports_invalid_schema(runner, tmp_path, schema_files):
    desired = tmp_path / "bad.json"
    desired.write_text(json.dumps([{"name": "status", "type": "text", "required": True}]))

    result = runner.invoke(cli, ["plan-migration", schema_files[0], str(desired)])

    assert result.exit_code == 1
    assert "needs a default value" in result.output


def test_plan_migration_rejects_bad_rename(runner, schema_files):
    result = runner.invoke(cli, ["plan-migration", *schema_files, "--rename", "amount"])

    assert result.exit_code == 2
    assert "old=new" in result.output


def test_plan_migration_rejects_invalid_json(runner, tmp_path, schema_files):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")

    result = runner.invoke(cli, ["plan-migration", str(broken), schema_files[1]])

    assert result.exit_code == 2
    assert "not valid JSON" in result.output


def test_serve_runs_uvicorn_factory(runner):
    with patch("uvicorn.run") as run:
        result = runner.invoke(cli, ["serve", "--port", "9001"])

    assert result.exit_code == 0, result.output
    args, kwargs = run.call_args
    assert args == ("collectiondesk.infrastructure.api.app:create_app",)
    assert kwargs["factory"] is True
    assert kwargs["port"] == 9001
