import logging

import pytest

import smb_pulse
from smb_pulse.cli import main


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "smb_pulse_config.toml"
    path.write_text(
        """
[business]
name = "Test Shop"
currency = "EUR"

[database]
engine = "sqlite"
path = "db/test.sqlite"

[logging]
level = "WARNING"
""",
        encoding="utf-8",
    )
    yield path
    # Leave the package logger as the library default for other tests.
    logger = logging.getLogger("smb_pulse")
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _write_csv(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_version(capsys) -> None:
    main(["--version"])
    assert smb_pulse.__version__ in capsys.readouterr().out


def test_command_is_required(config_file) -> None:
    with pytest.raises(SystemExit):
        main(["--config", str(config_file)])


def test_init_db_creates_database(config_file, capsys) -> None:
    main(["--config", str(config_file), "init-db"])

    assert (config_file.parent / "db" / "test.sqlite").exists()
    assert "Database ready" in capsys.readouterr().out


def test_import_then_dashboard(config_file, tmp_path, capsys) -> None:
    sales = _write_csv(tmp_path, "sales.csv", "date,total_amount,total_cost\n2026-01-05,100,40\n")
    expenses = _write_csv(tmp_path, "expenses.csv", "date,amount,supplier\n2026-01-10,20,ACME\n")

    main(["--config", str(config_file), "import", "sales", sales])
    main(["--config", str(config_file), "import", "expenses", expenses])
    capsys.readouterr()

    main(["--config", str(config_file), "--as-of", "2026-01-20", "dashboard"])
    out = capsys.readouterr().out

    assert "Test Shop - dashboard as of 2026-01-20" in out
    assert "=== Current month ===" in out
    assert "Profit margin" in out
    assert "ACME" in out


def test_import_rejects_missing_file(config_file, tmp_path) -> None:
    with pytest.raises(SystemExit):
        main(["--config", str(config_file), "import", "sales", str(tmp_path / "no.csv")])


def test_import_rejects_bad_structure(config_file, tmp_path) -> None:
    bad = _write_csv(tmp_path, "bad.csv", "when,how_much\n2026-01-01,1\n")
    with pytest.raises(SystemExit):
        main(["--config", str(config_file), "import", "expenses", bad])


def test_import_failure_exits_cleanly(config_file, tmp_path, capsys) -> None:
    items = _write_csv(
        tmp_path, "items.csv", "sale_id,product_id,quantity,unit_price\nNOPE,P1,1,2\n"
    )

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(config_file), "import", "sale_items", items])
    assert excinfo.value.code == 1

    bad_type = _write_csv(tmp_path, "categories.csv", "name,type\nRent,asset\n")
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(config_file), "import", "categories", bad_type])
    assert excinfo.value.code == 2
    assert "asset" in capsys.readouterr().err


def test_report_section_writes_csv(config_file, tmp_path, capsys) -> None:
    out_dir = tmp_path / "out"

    main(
        [
            "--config",
            str(config_file),
            "--as-of",
            "2026-03-15",
            "--display-mode",
            "csv",
            "--output",
            str(out_dir),
            "report",
            "--section",
            "cashflow",
        ]
    )

    written = sorted(p.name for p in out_dir.glob("*.csv"))
    assert len(written) == 2
    assert written[0].startswith("report_cash_flow_")
    assert written[1].startswith("report_monthly_")
    assert "=== " not in capsys.readouterr().out


def test_invalid_as_of_date(config_file) -> None:
    with pytest.raises(SystemExit):
        main(["--config", str(config_file), "--as-of", "yesterday", "dashboard"])
