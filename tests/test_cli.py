from pathlib import Path

import pytest

from ledger_statements import __version__
from ledger_statements.cli import main

SAMPLE_JOURNAL = (
    Path(__file__).resolve().parents[1] / "data" / "examples" / "journal_sample.csv"
)


@pytest.fixture
def config_path(tmp_path) -> str:
    path = tmp_path / "ledger_statements_config.toml"
    path.write_text(
        '[ledger]\nowner_id = "demo"\n\n'
        '[database]\npath = "ledger.sqlite"\n\n'
        '[display]\nmode = "table"\noutput_dir = "out"\n',
        encoding="utf-8",
    )
    return str(path)


def test_version(capsys):
    main(["--version"])

    assert __version__ in capsys.readouterr().out


def test_import_and_render_balance_sheet(config_path, capsys):
    main(
        [
            "--config",
            config_path,
            "--import",
            str(SAMPLE_JOURNAL),
            "--period",
            "2025-12",
            "--statement",
            "balance",
        ]
    )
    out = capsys.readouterr().out

    assert "Imported 9 entries" in out
    assert "=== Balance Sheet ===" in out
    assert "Total current assets" in out
    assert "=== Income Statement ===" not in out


def test_comparison_and_csv_export(config_path, tmp_path, capsys):
    main(["--config", config_path, "--import", str(SAMPLE_JOURNAL), "--period", "2026-01"])
    capsys.readouterr()

    main(
        [
            "--config",
            config_path,
            "--period",
            "2026-01",
            "--compare-period",
            "2025-12",
            "--display-mode",
            "csv",
        ]
    )
    out = capsys.readouterr().out

    assert "Comparison period: 2025-12-01 → 2025-12-31" in out
    written = sorted(p.name.split("_20")[0] for p in (tmp_path / "out").glob("*.csv"))
    assert written == ["balance_sheet", "cash_flow", "cost_of_sales", "income_statement"]


def test_period_before_cutover_warns(config_path, capsys):
    main(["--config", config_path, "--period", "2025-10", "--statement", "income"])

    out = capsys.readouterr().out
    assert "period activity is zero" in out
    assert "all statements are zero" not in out


def test_invalid_period_exits(config_path):
    with pytest.raises(SystemExit):
        main(["--config", config_path, "--period", "2025-13"])


def test_statements_and_inventory_subcommands(config_path, capsys):
    main(
        [
            "--config",
            config_path,
            "statements",
            "create",
            "--type",
            "cash_flow",
            "--period",
            "2025-12",
        ]
    )
    main(["--config", config_path, "statements", "list"])
    main(["--config", config_path, "inventory", "list"])
    main(["--config", config_path, "inventory", "add", "1201"])
    main(["--config", config_path, "inventory", "list"])
    out = capsys.readouterr().out

    assert "Created statement record #1: Cash Flow Statement 2025-12 (final)" in out
    assert "Total records: 1" in out
    assert "No inventory account registered" in out
    assert "Registered inventory account 1201 (default)." in out
