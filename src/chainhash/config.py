"""Typed configuration loader for chainhash."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.table import (
    DEFAULT_SIZE,
    LARGE_TABLE_WARN_THRESHOLD,
    LOAD_FACTOR_THRESHOLD,
    RESIZE_FACTOR,
    ChainedHashTable,
)

CONFIG_ENV = "CHAINHASH_CONFIG"
CHAIN_WARN_ENV = "CHAINHASH_CHAIN_WARN"
TABLE_ENV_OVERRIDES: dict[str, str] = {
    "CHAINHASH_INITIAL_CAPACITY": "initial_capacity",
    "CHAINHASH_LOAD_FACTOR_THRESHOLD": "load_factor_threshold",
    "CHAINHASH_RESIZE_FACTOR": "resize_factor",
    "CHAINHASH_LARGE_WARN_THRESHOLD": "large_table_warn_threshold",
}
ENV_KEYS: tuple[str, ...] = (CONFIG_ENV, CHAIN_WARN_ENV, *TABLE_ENV_OVERRIDES)


def _coerce_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise BadInputError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise BadInputError(f"{name} must be an integer, got {value!r}") from exc
    raise BadInputError(f"{name} must be an integer, got {value!r}")


def _coerce_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise BadInputError(f"{name} must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise BadInputError(f"{name} must be a number, got {value!r}") from exc
    raise BadInputError(f"{name} must be a number, got {value!r}")


_TABLE_COERCERS: dict[str, Callable[[str, Any], Any]] = {
    "initial_capacity": _coerce_int,
    "load_factor_threshold": _coerce_float,
    "resize_factor": _coerce_int,
    "large_table_warn_threshold": _coerce_int,
}


@dataclass
class TablePolicy:
    initial_capacity: int = DEFAULT_SIZE
    load_factor_threshold: float = LOAD_FACTOR_THRESHOLD
    resize_factor: int = RESIZE_FACTOR
    large_table_warn_threshold: int = LARGE_TABLE_WARN_THRESHOLD

    def validate(self) -> None:
        for attr, coerce in _TABLE_COERCERS.items():
            setattr(self, attr, coerce(f"table.{attr}", getattr(self, attr)))
        # Non-positive capacities are accepted; the table falls back to its default.
        if not 0.0 < self.load_factor_threshold <= 1.0:
            raise BadInputError("table.load_factor_threshold must be in (0, 1]")
        if self.resize_factor < 2:
            raise BadInputError("table.resize_factor must be >= 2")
        if self.large_table_warn_threshold < 0:
            raise BadInputError("table.large_table_warn_threshold must be >= 0")


@dataclass
class DiagnosticsPolicy:
    chain_length_warn: int | None = 8
    heatmap_cols: int = 32
    heatmap_max_cells: int = 512

    def validate(self) -> None:
        if self.chain_length_warn is not None and self.chain_length_warn <= 0:
            raise BadInputError("diagnostics.chain_length_warn must be > 0 when set")
        if self.heatmap_cols <= 0:
            raise BadInputError("diagnostics.heatmap_cols must be > 0")
        if self.heatmap_max_cells <= 0:
            raise BadInputError("diagnostics.heatmap_max_cells must be > 0")


@dataclass
class AppConfig:
    table: TablePolicy = field(default_factory=TablePolicy)
    diagnostics: DiagnosticsPolicy = field(default_factory=DiagnosticsPolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        table_data = data.get("table", {})
        if not isinstance(table_data, dict):
            raise BadInputError("[table] section must be a table")
        table_kwargs: dict[str, Any] = {}
        for key, value in table_data.items():
            coerce = _TABLE_COERCERS.get(key)
            if coerce is None:
                raise BadInputError(f"Unknown key in [table]: {key}")
            table_kwargs[key] = coerce(f"table.{key}", value)
        table = TablePolicy(**table_kwargs)

        diag_data = data.get("diagnostics", {})
        if not isinstance(diag_data, dict):
            raise BadInputError("[diagnostics] section must be a table")
        diag_kwargs: dict[str, Any] = {}
        for key, value in diag_data.items():
            if key == "chain_length_warn":
                if isinstance(value, str) and value.strip().lower() in {"none", "null", "disabled", "off"}:
                    diag_kwargs[key] = None
                    continue
                if value is None:
                    diag_kwargs[key] = None
                    continue
            diag_kwargs[key] = _coerce_int(f"diagnostics.{key}", value)
        try:
            diagnostics = DiagnosticsPolicy(**diag_kwargs)
        except TypeError as exc:
            raise BadInputError(f"Unknown key in [diagnostics]: {exc}") from exc
        return cls(table=table, diagnostics=diagnostics)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        for key, attr in TABLE_ENV_OVERRIDES.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = _TABLE_COERCERS[attr](f"table.{attr}", raw_value)
            except BadInputError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.table, attr, value)

        raw_warn = env.get(CHAIN_WARN_ENV)
        if raw_warn is not None:
            if raw_warn.strip().lower() in {"none", "off", "disabled"}:
                self.diagnostics.chain_length_warn = None
            else:
                try:
                    self.diagnostics.chain_length_warn = int(raw_warn)
                except ValueError as exc:
                    raise BadInputError(
                        f"Invalid env override {CHAIN_WARN_ENV}={raw_warn!r}"
                    ) from exc

    def validate(self) -> None:
        self.table.validate()
        self.diagnostics.validate()


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)


def build_table(policy: TablePolicy, capacity: int | None = None) -> ChainedHashTable:
    """Construct a table from ``policy``; ``capacity`` overrides the configured size."""

    return ChainedHashTable(
        policy.initial_capacity if capacity is None else capacity,
        load_factor_threshold=policy.load_factor_threshold,
        resize_factor=policy.resize_factor,
        large_table_warn_threshold=policy.large_table_warn_threshold,
    )


__all__ = [
    "CHAIN_WARN_ENV",
    "CONFIG_ENV",
    "ENV_KEYS",
    "TABLE_ENV_OVERRIDES",
    "AppConfig",
    "DEFAULT_CONFIG",
    "DiagnosticsPolicy",
    "TablePolicy",
    "build_table",
    "load_app_config",
]
