from pathlib import Path

import pytest

from smb_pulse.config import AppConfig, load_app_config


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "smb_pulse_config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_minimal_config_uses_defaults(tmp_path) -> None:
    path = _write(tmp_path, "")

    cfg = load_app_config(str(path))

    assert isinstance(cfg, AppConfig)
    assert cfg.currency == "USD"
    assert cfg.dashboard.months == 6
    assert cfg.dashboard.top_products == 5
    assert cfg.dashboard.recent_transactions == 5
    assert cfg.report.months == 12
    assert cfg.report.chart_top_products == 10
    assert cfg.labels.uncategorized == "Uncategorized"
    assert cfg.labels.fallback_color == "#888888"
    assert cfg.fetch.max_workers == 5
    assert cfg.display_mode == "table"
    assert cfg.log_file is None


def test_paths_are_resolved_relative_to_config_file(tmp_path) -> None:
    path = _write(
        tmp_path,
        """
[database]
engine = "sqlite"
path = "db/shop.sqlite"

[logging]
level = "debug"
file = "logs/app.log"
""",
    )

    cfg = load_app_config(str(path))

    assert cfg.database.path == (tmp_path / "db" / "shop.sqlite").resolve()
    assert cfg.log_file == (tmp_path / "logs" / "app.log").resolve()
    assert cfg.log_level == "DEBUG"


def test_custom_sections_are_read(tmp_path) -> None:
    path = _write(
        tmp_path,
        """
[business]
name = "Corner Bakery"
currency = "EUR"

[dashboard]
months = 3
top_products = 10

[labels]
uncategorized = "Sin categoría"
sale = "Venta"

[display]
mode = "both"
percent_decimals = 2
""",
    )

    cfg = load_app_config(str(path))

    assert cfg.business_name == "Corner Bakery"
    assert cfg.currency == "EUR"
    assert cfg.dashboard.months == 3
    assert cfg.dashboard.top_products == 10
    assert cfg.labels.uncategorized == "Sin categoría"
    assert cfg.labels.sale == "Venta"
    assert cfg.labels.expense == "Expense"
    assert cfg.display_mode == "both"
    assert cfg.percent_decimals == 2


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


def test_invalid_toml_raises_value_error(tmp_path) -> None:
    path = _write(tmp_path, "[dashboard\nmonths = ")
    with pytest.raises(ValueError):
        load_app_config(str(path))


@pytest.mark.parametrize(
    "body",
    [
        "[dashboard]\nmonths = 0",
        "[report]\nmonths = 'twelve'",
        "[fetch]\ntimeout_seconds = -1",
        "[display]\nmode = 'pdf'",
        "[display]\npercent_decimals = 'one'",
        "[display]\npercent_decimals = -1",
    ],
)
def test_invalid_values_raise_value_error(tmp_path, body: str) -> None:
    path = _write(tmp_path, body)
    with pytest.raises(ValueError):
        load_app_config(str(path))


def test_default_location_is_current_directory(tmp_path, monkeypatch) -> None:
    _write(tmp_path, "[business]\nname = 'Here'\n")
    monkeypatch.chdir(tmp_path)

    assert load_app_config().business_name == "Here"


def test_zero_percent_decimals_is_allowed(tmp_path) -> None:
    path = _write(tmp_path, "[display]\npercent_decimals = 0")
    assert load_app_config(str(path)).percent_decimals == 0
