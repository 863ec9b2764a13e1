from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

ALIGNMENTS = {"start", "center", "end"}
BEHAVIORS = {"auto", "smooth"}


@dataclass
class SegmenterConfig:
    html_table_merge_gap: int = 2
    balance_formula_fences: bool = False
    chunk_size: int = 200


@dataclass
class SyncConfig:
    debounce_ms: int = 50
    guard_ms: int = 100
    align: str = "start"
    behavior: str = "auto"

    @property
    def debounce_delay(self) -> float:
        return self.debounce_ms / 1000

    @property
    def guard_delay(self) -> float:
        return self.guard_ms / 1000


@dataclass
class AppConfig:
    segmenter: SegmenterConfig = field(default_factory=SegmenterConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Read a YAML config file; defaults apply when no path is given."""
    if path is None:
        return AppConfig()
    return parse_config(Path(path).read_text(encoding="utf-8"))


def parse_config(text: str) -> AppConfig:
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping.")

    segmenter_data = _section(data, "segmenter")
    sync_data = _section(data, "sync")

    segmenter = SegmenterConfig(
        html_table_merge_gap=_int(segmenter_data, "html_table_merge_gap", 2, minimum=0),
        balance_formula_fences=_bool(segmenter_data, "balance_formula_fences", False),
        chunk_size=_int(segmenter_data, "chunk_size", 200, minimum=1),
    )
    sync = SyncConfig(
        debounce_ms=_int(sync_data, "debounce_ms", 50, minimum=0),
        guard_ms=_int(sync_data, "guard_ms", 100, minimum=0),
        align=_choice(sync_data, "align", "start", ALIGNMENTS),
        behavior=_choice(sync_data, "behavior", "auto", BEHAVIORS),
    )
    return AppConfig(segmenter=segmenter, sync=sync)


def _section(data: dict, name: str) -> dict:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping.")
    return value


def _int(data: dict, key: str, default: int, minimum: int) -> int:
    value: Any = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' must be an integer, got {value!r}.")
    if value < minimum:
        raise ValueError(f"'{key}' must be at least {minimum}, got {value}.")
    return value


def _bool(data: dict, key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}.")
    return value


def _choice(data: dict, key: str, default: str, choices: set[str]) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or value not in choices:
        raise ValueError(f"'{key}' must be one of {sorted(choices)}, got {value!r}.")
    return value
