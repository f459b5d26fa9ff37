"""CLI commands against the in-process backend."""

import json

import httpx
import pytest
from click.testing import CliRunner

from conference_checkout import AsyncCheckout
from conference_checkout.cli import main as cli_main


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    monkeypatch.setattr("conference_checkout.config.CONFIG_FILE", path)
    return path


@pytest.fixture
def runner(config_file, backend, settings, monkeypatch):
    monkeypatch.setattr(
        cli_main, "_get_client",
        lambda: AsyncCheckout(settings=settings, transport=httpx.MockTransport(backend.handle)),
    )
    return CliRunner()


def _login(runner):
    return runner.invoke(cli_main.main, [
        "session", "login", "--user-id", "user-1", "--email", "attendee@example.com",
        "--first-name", "Ana", "--last-name", "Reyes",
    ])


def test_plans_json(runner):
    result = runner.invoke(cli_main.main, ["plans", "--json"])
    assert result.exit_code == 0
    plans = json.loads(result.output)
    assert [p["installments"] for p in plans] == [1, 2, 3, 4]


def test_session_login_show_logout(runner, config_file):
    assert _login(runner).exit_code == 0
    saved = json.loads(config_file.read_text())["session"]
    assert saved == {"id": "user-1", "email": "attendee@example.com", "firstName": "Ana", "lastName": "Reyes"}

    result = runner.invoke(cli_main.main, ["session", "show"])
    assert "attendee@example.com" in result.output

    runner.invoke(cli_main.main, ["session", "logout"])
    assert "session" not in json.loads(config_file.read_text())


def test_rooms_json(runner):
    result = runner.invoke(cli_main.main, ["rooms", "--json"])
    assert result.exit_code == 0
    rooms = json.loads(result.output)
    assert {r["id"] for r in rooms} == {"1", "2", "3"}


def test_pay_requires_session(runner):
    result = runner.invoke(cli_main.main, ["pay", "--room", "1", "--plan", "1"])
    assert result.exit_code == 1
    assert "No session" in result.output


def test_pay_with_promo(runner, backend):
    _login(runner)
    result = runner.invoke(cli_main.main, ["pay", "--room", "1", "--plan", "3", "--promo", "save10"])
    assert result.exit_code == 0, result.output
    assert "Continue to payment" in result.output
    (row,) = backend.ledger.values()
    assert row["amount"] == 36000


def test_pay_reports_gateway_error(runner, backend):
    backend.gateway_error = {"errorCode": "5", "errorMessage": "Access denied"}
    _login(runner)
    result = runner.invoke(cli_main.main, ["pay", "--room", "3", "--plan", "1"])
    assert result.exit_code == 1
    assert "Access denied" in result.output


def test_status_pending(runner, backend):
    result = runner.invoke(cli_main.main, ["status", "md-missing", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["status"] == "not_found"
