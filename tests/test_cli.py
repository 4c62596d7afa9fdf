import ast
from pathlib import Path

import pytest
from typer.testing import CliRunner

from solana_trader.cli import app

runner = CliRunner()


def test_budget_reports_minimum() -> None:
    result = runner.invoke(app, ["budget", "--wallets", "10", "--total", "5"])
    assert result.exit_code == 0
    out = ast.literal_eval(result.stdout.strip().splitlines()[-1])
    assert out["min_required"] == "€12.00"
    assert out["per_wallet"] == "€0.50"
    assert out["sufficient"] is False


def test_wallets_create_then_count(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("solana_trader.cli.configure_logging", lambda *args: None)
    path = tmp_path / "wallets.json"
    result = runner.invoke(app, ["wallets-create", "--count", "3", "--out", str(path)])
    assert result.exit_code == 0, result.stdout
    assert path.exists()

    result = runner.invoke(app, ["wallets-count", "--path", str(path)])
    assert result.exit_code == 0
    assert ast.literal_eval(result.stdout.strip().splitlines()[-1])["wallets"] == 3


def test_wallets_create_rejects_bad_count(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("solana_trader.cli.configure_logging", lambda *args: None)
    result = runner.invoke(
        app, ["wallets-create", "--count", "0", "--out", str(tmp_path / "w.json")]
    )
    assert result.exit_code != 0
    assert not (tmp_path / "w.json").exists()
