"""Tests for the click command line interface."""

from unittest.mock import patch

from click.testing import CliRunner

from schoolhub.cli import cli
from schoolhub.store.base import EntityKind
from schoolhub.store.memory import MemoryEntityGateway


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "schoolhub" in result.output


def test_create_admin():
    gateway = MemoryEntityGateway()
    with patch("schoolhub.store.factory.create_gateway", return_value=gateway):
        result = CliRunner().invoke(
            cli,
            [
                "create-admin",
                "--first-name",
                "ada",
                "--last-name",
                "lovelace",
                "--email",
                "ada@example.com",
                "--password",
                "Secret123",
            ],
        )

    assert result.exit_code == 0, result.output
    assert "Admin created" in result.output
    (user,) = gateway._collections[EntityKind.USER].values()
    assert user["roles"] == ["user", "admin"]
    assert user["first_name"] == "Ada"


def test_create_admin_rejects_weak_password():
    gateway = MemoryEntityGateway()
    with patch("schoolhub.store.factory.create_gateway", return_value=gateway):
        result = CliRunner().invoke(
            cli,
            [
                "create-admin",
                "--first-name",
                "Ada",
                "--last-name",
                "Lovelace",
                "--email",
                "ada@example.com",
                "--password",
                "weak",
            ],
        )

    assert result.exit_code == 1
    assert "password must be at least 8 characters" in result.output


def test_reconcile_schools():
    gateway = MemoryEntityGateway()
    with patch("schoolhub.store.factory.create_gateway", return_value=gateway):
        result = CliRunner().invoke(cli, ["reconcile-schools"])

    assert result.exit_code == 0, result.output
    assert "0 repaired" in result.output
