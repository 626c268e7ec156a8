# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Pulse.

This module is responsible for:
- loading the application configuration from a TOML file,
- applying defaults for every optional section,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .store import DatabaseConfig

DEFAULT_CONFIG_FILE = "smb_pulse_config.toml"


@dataclass(frozen=True)
class Labels:
    """Sentinel display values substituted when a relation or field is absent."""

    uncategorized: str = "Uncategorized"
    fallback_color: str = "#888888"
    sale: str = "Sale"
    expense: str = "Expense"


@dataclass(frozen=True)
class DashboardOptions:
    """Window and truncation sizes for the dashboard view-model."""

    months: int = 6
    top_products: int = 5
    recent_transactions: int = 5


@dataclass(frozen=True)
class ReportOptions:
    """Window and truncation sizes for the report view-model."""

    months: int = 12
    chart_top_products: int = 10


@dataclass(frozen=True)
class FetchOptions:
    """Concurrency settings for the batch of read queries issued per render."""

    max_workers: int = 5
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Pulse.

    This aggregates:
    - business identity (name, currency),
    - the database configuration (where records are stored),
    - dashboard and report window sizes,
    - sentinel labels,
    - fetch concurrency options,
    - display and logging options.
    """

    business_name: str
    currency: str
    database: DatabaseConfig
    dashboard: DashboardOptions = field(default_factory=DashboardOptions)
    report: ReportOptions = field(default_factory=ReportOptions)
    labels: Labels = field(default_factory=Labels)
    fetch: FetchOptions = field(default_factory=FetchOptions)
    display_mode: str = "table"
    percent_decimals: int = 1
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a top-level table, or an empty mapping if absent or malformed."""
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _int_at_least(
    section: Mapping[str, Any], key: str, default: int, where: str, minimum: int = 1
) -> int:
    """Read an integer >= ``minimum`` from a section, falling back to ``default``."""
    raw_value = section.get(key, default)
    try:
        value = int(raw_value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{where}.{key}' in the configuration. "
            "Expected an integer."
        ) from exc
    if value < minimum:
        raise ValueError(
            f"'{where}.{key}' must be at least {minimum} (got {value})."
        )
    return value


def _positive_float(
    section: Mapping[str, Any], key: str, default: float, where: str
) -> float:
    raw_value = section.get(key, default)
    try:
        value = float(raw_value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{where}.{key}' in the configuration. "
            "Expected a number."
        ) from exc
    if value <= 0:
        raise ValueError(f"'{where}.{key}' must be positive (got {value}).")
    return value


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Pulse application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [business]
        Business name and presentation currency.

    [database]
        Database engine and SQLite file path.

    [dashboard]
        Trend window (months), top-products size, recent feed size.

    [report]
        Report window (months) and size of the product chart panel.

    [labels]
        Sentinel labels ("Uncategorized", fallback colour, "Sale",
        "Expense").

    [fetch]
        Worker count and per-render timeout for concurrent store reads.

    [display]
        Output mode for the CLI ("table", "csv", "both") and the number of
        decimals used for percentages.

    [logging]
        Log level and optional log file.

    Every section is optional; missing keys fall back to the defaults of the
    corresponding dataclass. All file paths are resolved relative to the
    directory of the TOML file itself.

    Parameters
    ----------
    config_path :
        Path to the TOML configuration file. Defaults to
        ``smb_pulse_config.toml`` in the current working directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Business identity
    business = _section(raw, "business")
    business_name = str(business.get("name") or "")
    currency = str(business.get("currency") or "USD")

    # 2) Database
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/smb_pulse.sqlite"
    database = DatabaseConfig(
        engine=db_engine,
        path=(base_dir / str(db_path_raw)).resolve(),
    )

    # 3) Windows and truncation sizes
    dashboard_section = _section(raw, "dashboard")
    dashboard = DashboardOptions(
        months=_int_at_least(dashboard_section, "months", 6, "dashboard"),
        top_products=_int_at_least(dashboard_section, "top_products", 5, "dashboard"),
        recent_transactions=_int_at_least(
            dashboard_section, "recent_transactions", 5, "dashboard"
        ),
    )

    report_section = _section(raw, "report")
    report = ReportOptions(
        months=_int_at_least(report_section, "months", 12, "report"),
        chart_top_products=_int_at_least(
            report_section, "chart_top_products", 10, "report"
        ),
    )

    # 4) Sentinel labels
    labels_section = _section(raw, "labels")
    defaults = Labels()
    labels = Labels(
        uncategorized=str(labels_section.get("uncategorized") or defaults.uncategorized),
        fallback_color=str(
            labels_section.get("fallback_color") or defaults.fallback_color
        ),
        sale=str(labels_section.get("sale") or defaults.sale),
        expense=str(labels_section.get("expense") or defaults.expense),
    )

    # 5) Fetch options
    fetch_section = _section(raw, "fetch")
    fetch = FetchOptions(
        max_workers=_int_at_least(fetch_section, "max_workers", 5, "fetch"),
        timeout_seconds=_positive_float(
            fetch_section, "timeout_seconds", 10.0, "fetch"
        ),
    )

    # 6) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in {"table", "csv", "both"}:
        raise ValueError(
            f"Invalid display.mode {display_mode!r}; expected table, csv or both."
        )
    percent_decimals = _int_at_least(
        display_section, "percent_decimals", 1, "display", minimum=0
    )

    # 7) Logging options
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level") or "INFO").upper()
    log_file_raw = logging_section.get("file")
    log_file = (base_dir / str(log_file_raw)).resolve() if log_file_raw else None

    return AppConfig(
        business_name=business_name,
        currency=currency,
        database=database,
        dashboard=dashboard,
        report=report,
        labels=labels,
        fetch=fetch,
        display_mode=display_mode,
        percent_decimals=percent_decimals,
        log_level=log_level,
        log_file=log_file,
    )
