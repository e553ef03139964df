# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Ledger Statements.

This module is responsible for:
- loading the application configuration from a TOML file,
- building the engine settings (cutover date, classification rules,
  inventory accounts),
- exposing typed dataclasses used by the rest of the application.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional

from .db import DatabaseConfig
from .mapping import ClassificationRules, SubgroupTable
from .periods import INCEPTION_DATE, SYSTEM_START_DATE


@dataclass(frozen=True)
class InventorySettings:
    """
    Inventory configuration used by the Cost-of-Sales calculator.

    Attributes
    ----------
    default_account :
        Default inventory account (code or ledger identifier).
    item_accounts :
        Per-item inventory account overrides.
    warehouse_accounts :
        Per-warehouse inventory account overrides.
    fallback_prefix :
        When no inventory account is configured anywhere, accounts whose
        normalized code starts with this prefix are treated as inventory.
    purchases_local_prefixes / purchases_import_prefixes :
        Legacy code prefixes of cost/expense accounts used to estimate
        purchases when no debit posting reached the inventory accounts.
    """

    default_account: Optional[str] = None
    item_accounts: tuple[str, ...] = ()
    warehouse_accounts: tuple[str, ...] = ()
    fallback_prefix: str = "12"
    purchases_local_prefixes: tuple[str, ...] = ("5001",)
    purchases_import_prefixes: tuple[str, ...] = ("5002",)

    def configured_accounts(self) -> frozenset[str]:
        accounts = set(self.item_accounts) | set(self.warehouse_accounts)
        if self.default_account:
            accounts.add(self.default_account)
        return frozenset(a.strip() for a in accounts if a and a.strip())


@dataclass(frozen=True)
class EngineSettings:
    """Everything the statement pipeline needs besides its collaborators."""

    cutover: date = SYSTEM_START_DATE
    inception: date = INCEPTION_DATE
    rules: ClassificationRules = field(default_factory=ClassificationRules)
    inventory: InventorySettings = field(default_factory=InventorySettings)


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Ledger Statements.

    This aggregates:
    - the ledger owner whose books are reported,
    - the engine settings (cutover, classification, inventory),
    - the database configuration (where the ledger is stored),
    - display options for tables and CSV exports.
    """

    owner_id: str
    engine: EngineSettings
    database: DatabaseConfig
    display_mode: str
    output_dir: Path


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
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        return {}
    return value


def _parse_date(value: Any, key: str, default: date) -> date:
    if value is None or value == "":
        return default
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"Invalid date for '{key}', expected YYYY-MM-DD.") from exc


def _str_tuple(value: Any, key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Invalid value for '{key}', expected a list of strings.")
    return tuple(str(v).strip() for v in value if str(v).strip())


def parse_classification_rules(
    section: Mapping[str, Any], base_dir: Path
) -> ClassificationRules:
    """
    Build ClassificationRules from the [classification] table.

    Every key is optional; missing keys keep the defaults.
    """
    defaults = ClassificationRules()

    subgroups_file = section.get("subgroups_file")
    if subgroups_file:
        subgroups = SubgroupTable.from_csv((base_dir / str(subgroups_file)).resolve())
    else:
        subgroups = defaults.subgroups

    try:
        zero_threshold = float(section.get("zero_threshold", defaults.zero_threshold))
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'classification.zero_threshold', expected a number."
        ) from exc

    return ClassificationRules(
        current_asset_prefixes=_str_tuple(
            section.get("current_asset_prefixes"),
            "classification.current_asset_prefixes",
            defaults.current_asset_prefixes,
        ),
        current_liability_prefixes=_str_tuple(
            section.get("current_liability_prefixes"),
            "classification.current_liability_prefixes",
            defaults.current_liability_prefixes,
        ),
        cost_reclass_prefixes=_str_tuple(
            section.get("cost_reclass_prefixes"),
            "classification.cost_reclass_prefixes",
            defaults.cost_reclass_prefixes,
        ),
        contra_revenue_keywords=tuple(
            k.lower()
            for k in _str_tuple(
                section.get("contra_revenue_keywords"),
                "classification.contra_revenue_keywords",
                defaults.contra_revenue_keywords,
            )
        ),
        contra_asset_keywords=tuple(
            k.lower()
            for k in _str_tuple(
                section.get("contra_asset_keywords"),
                "classification.contra_asset_keywords",
                defaults.contra_asset_keywords,
            )
        ),
        zero_threshold=zero_threshold,
        subgroups=subgroups,
    )


def parse_inventory_settings(section: Mapping[str, Any]) -> InventorySettings:
    """Build InventorySettings from the [inventory] table."""
    defaults = InventorySettings()
    default_account = section.get("default_account")
    return InventorySettings(
        default_account=str(default_account).strip() if default_account else None,
        item_accounts=_str_tuple(
            section.get("item_accounts"), "inventory.item_accounts", ()
        ),
        warehouse_accounts=_str_tuple(
            section.get("warehouse_accounts"), "inventory.warehouse_accounts", ()
        ),
        fallback_prefix=str(section.get("fallback_prefix") or defaults.fallback_prefix),
        purchases_local_prefixes=_str_tuple(
            section.get("purchases_local_prefixes"),
            "inventory.purchases_local_prefixes",
            defaults.purchases_local_prefixes,
        ),
        purchases_import_prefixes=_str_tuple(
            section.get("purchases_import_prefixes"),
            "inventory.purchases_import_prefixes",
            defaults.purchases_import_prefixes,
        ),
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Ledger Statements configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [ledger]
        owner_id and system_start_date (the opening-balance cutover,
        defaults to 2025-12-01). inception_date may override the lower
        bound of cumulative cash queries.

    [database]
        Database engine and SQLite file path.

    [classification]
        Optional overrides of the classification prefix lists, contra
        keywords, zero threshold, and an optional sub-group CSV file
        (subgroups_file).

    [inventory]
        Inventory accounts (default_account, item_accounts,
        warehouse_accounts), the prefix fallback and the legacy purchases
        prefixes.

    [display]
        Output mode ("table", "csv" or "both") and CSV output directory.

    All file paths in the TOML are resolved relative to the directory of
    the TOML file itself.

    Parameters
    ----------
    config_path :
        Path to the TOML configuration file. Defaults to
        ``ledger_statements_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path("ledger_statements_config.toml").resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Ledger section
    ledger_section = _section(raw, "ledger")
    owner_id = str(ledger_section.get("owner_id") or "default")
    cutover = _parse_date(
        ledger_section.get("system_start_date"),
        "ledger.system_start_date",
        SYSTEM_START_DATE,
    )
    inception = _parse_date(
        ledger_section.get("inception_date"), "ledger.inception_date", INCEPTION_DATE
    )
    if cutover < inception:
        raise ValueError("ledger.system_start_date cannot be before inception_date.")

    # 2) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/ledger_statements.sqlite"
    database = DatabaseConfig(
        engine=db_engine, path=(base_dir / str(db_path_raw)).resolve()
    )

    # 3) Classification and inventory
    rules = parse_classification_rules(_section(raw, "classification"), base_dir)
    inventory = parse_inventory_settings(_section(raw, "inventory"))

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in {"table", "csv", "both"}:
        raise ValueError(
            f"Invalid display.mode {display_mode!r}, expected table, csv or both."
        )
    output_dir = (base_dir / str(display_section.get("output_dir", "data/output"))).resolve()

    return AppConfig(
        owner_id=owner_id,
        engine=EngineSettings(
            cutover=cutover,
            inception=inception,
            rules=rules,
            inventory=inventory,
        ),
        database=database,
        display_mode=display_mode,
        output_dir=output_dir,
    )
