"""Generation job configuration loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from sdg.histogram.model import DEFAULT_MAX_TEXT_LEN

STATS_FORMATS = ("yaml", "json")


@dataclass
class GenerationConfig:
    """
    Settings for one ``sdg gen`` run.

    ``schema`` is only needed for JSON statistics dumps, which do not record
    column types themselves.
    """

    stats: Optional[Path] = None
    format: str = "yaml"
    schema: Dict[str, str] = field(default_factory=dict)
    rows: int = 1000
    seed: Optional[int] = None
    max_text_len: int = DEFAULT_MAX_TEXT_LEN
    columns: Optional[List[str]] = None
    skip_malformed: bool = False

    def validate(self) -> None:
        if self.format not in STATS_FORMATS:
            raise ValueError(f"format must be one of {', '.join(STATS_FORMATS)}, got {self.format!r}")
        if self.rows < 0:
            raise ValueError("rows must be non-negative")
        if self.max_text_len < 1:
            raise ValueError("max_text_len must be at least 1")
        if self.format == "json" and not self.schema:
            raise ValueError("json statistics need a schema mapping column names to types")


def load_config(path: str | Path) -> GenerationConfig:
    """Read a YAML job file; relative ``stats`` paths resolve against it."""

    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a mapping")

    known = {f.name for f in fields(GenerationConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError(f"unknown config keys in {path}: {', '.join(unknown)}")

    cfg = GenerationConfig(**payload)
    if cfg.stats is not None:
        stats = Path(cfg.stats)
        cfg.stats = stats if stats.is_absolute() else path.parent / stats
    cfg.schema = {str(k): str(v) for k, v in (cfg.schema or {}).items()}
    if cfg.columns is not None:
        cfg.columns = [str(c) for c in cfg.columns]
    cfg.rows = int(cfg.rows)
    cfg.max_text_len = int(cfg.max_text_len)
    cfg.validate()
    return cfg
