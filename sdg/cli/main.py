"""Typer-based CLI entry points for histogram profiling and data generation."""

from __future__ import annotations

import bisect
import logging
import random
import re
from pathlib import Path
from typing import Dict, List, Optional

import typer
import yaml

import matplotlib
matplotlib.use("Agg")                     # headless backend for servers/CI
import matplotlib.pyplot as plt

# ---- project imports ----
from sdg.config import STATS_FORMATS, GenerationConfig, load_config
from sdg.datasource.csv import CSVDataSource
from sdg.datasource.parquet import ParquetDataSource
from sdg.emit.csv_emit import write_csv
from sdg.emit.postgres_emit import insert_postgres
from sdg.emit.sql_emit import write_insert_sql
from sdg.errors import MalformedStatisticsError
from sdg.histogram.model import DEFAULT_MAX_TEXT_LEN, Histogram, ValueKind
from sdg.histogram.store import HistogramSource, JSONStatsSource, YAMLStatsSource, save_yaml
from sdg.profiler.builder import Profiler
from sdg.sampler.rows import generate_rows, sample_column

# -----------------------------------------------------------------------------
# Typer app
# -----------------------------------------------------------------------------
app = typer.Typer(help="Synthetic data generator driven by column histograms.")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level (DEBUG/INFO/WARNING/ERROR)."),
) -> None:
    """Configure logging shared by every command."""
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# -----------------------------------------------------------------------------
# Utility helpers (shared by commands)
# -----------------------------------------------------------------------------
def _create_source(
    fmt: str,
    input_ref: str,
    columns: Optional[List[str]],
    sample_rows: Optional[int],
):
    """Factory for data sources."""
    fmt_lower = fmt.lower()
    if fmt_lower == "parquet":
        return ParquetDataSource(path=input_ref, columns=columns, sample_rows=sample_rows)
    if fmt_lower == "csv":
        return CSVDataSource(path=input_ref, columns=columns, sample_rows=sample_rows)
    raise typer.BadParameter(f"Unsupported format: {fmt}")


def _ensure_parent_dir(path: Path) -> None:
    """Create the parent directory for `path` if needed."""
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def _split_list(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


def _parse_schema(value: str) -> Dict[str, str]:
    """Parse ``name:type,name:type``; commas inside parentheses are kept."""
    schema: Dict[str, str] = {}
    for item in re.split(r",(?![^(]*\))", value):
        item = item.strip()
        if not item:
            continue
        name, sep, type_name = item.partition(":")
        if not sep or not name.strip() or not type_name.strip():
            raise typer.BadParameter(f"Schema entries must look like name:type, got {item!r}")
        schema[name.strip()] = type_name.strip()
    return schema


def _open_stats(cfg: GenerationConfig) -> HistogramSource:
    if cfg.stats is None:
        raise typer.BadParameter("A statistics file is required (--stats or config 'stats').")
    if cfg.format == "json":
        return JSONStatsSource(cfg.stats, schema=cfg.schema, max_text_len=cfg.max_text_len)
    return YAMLStatsSource(cfg.stats)


def _load_histograms(cfg: GenerationConfig) -> Dict[str, Histogram]:
    source = _open_stats(cfg)
    available = source.columns()
    names = cfg.columns if cfg.columns is not None else available
    missing = [name for name in names if name not in available]
    if missing:
        raise typer.BadParameter(f"No usable statistics for: {', '.join(missing)}")
    histograms: Dict[str, Histogram] = {}
    for name in names:
        try:
            histograms[name] = source.load(name)
        except MalformedStatisticsError as exc:
            if not cfg.skip_malformed:
                raise
            typer.echo(f"Skipped column {name}: {exc}", err=True)
    return histograms


def _resolve_config(
    config: Optional[Path],
    stats: Optional[Path],
    stats_format: Optional[str],
    schema: Optional[str],
    rows: Optional[int],
    seed: Optional[int],
    max_text_len: Optional[int],
    columns: Optional[str],
    skip_malformed: bool,
) -> GenerationConfig:
    """Merge a YAML job file with command line overrides."""
    try:
        cfg = load_config(config) if config is not None else GenerationConfig()
    except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Cannot read config {config}: {exc}") from exc
    if stats is not None:
        cfg.stats = stats
    if stats_format is not None:
        cfg.format = stats_format.lower()
    if schema is not None:
        cfg.schema = _parse_schema(schema)
    if rows is not None:
        cfg.rows = rows
    if seed is not None:
        cfg.seed = seed
    if max_text_len is not None:
        cfg.max_text_len = max_text_len
    if columns is not None:
        cfg.columns = _split_list(columns)
    if skip_malformed:
        cfg.skip_malformed = True
    try:
        cfg.validate()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return cfg


# -----------------------------------------------------------------------------
# PROFILE: build stats.yaml from a data source
# -----------------------------------------------------------------------------
@app.command(name="profile")
def profile(
    input: str = typer.Option(..., help="Source path (file or directory)."),
    format: str = typer.Option(..., help="Source format (csv/parquet)."),
    out: Path = typer.Option(Path("stats.yaml"), help="Output YAML path."),
    num_buckets: int = typer.Option(256, help="Number of equi-depth buckets per column."),
    sample_rows: Optional[int] = typer.Option(None, help="Maximum number of rows to read."),
    max_text_len: int = typer.Option(DEFAULT_MAX_TEXT_LEN, help="Upper bound on generated string length."),
    columns: Optional[str] = typer.Option(None, help="Comma-separated subset of columns to profile."),
) -> None:
    """Profile the input dataset and emit per-column histograms."""

    if num_buckets < 1:
        raise typer.BadParameter("num_buckets must be at least 1")
    if max_text_len < 1:
        raise typer.BadParameter("max_text_len must be at least 1")
    selected = _split_list(columns)
    source = _create_source(format, input, columns=selected, sample_rows=sample_rows)

    profiler = Profiler(num_buckets=num_buckets, max_text_len=max_text_len, columns=selected)
    for batch in source.scan_batches():
        profiler.update(batch)

    histograms = profiler.finalize()
    if not histograms:
        typer.echo("No integer or text columns with data found.", err=True)
        raise typer.Exit(code=1)
    metadata = {
        "schema": source.schema(),
        "columns": profiler.summary(),
    }
    _ensure_parent_dir(out)
    save_yaml(histograms, out, metadata=metadata)
    typer.echo(f"Saved {len(histograms)} histograms to {out}")


# -----------------------------------------------------------------------------
# GEN: histogram-driven row generation
# -----------------------------------------------------------------------------
@app.command(name="gen")
def gen(
    config: Optional[Path] = typer.Option(None, help="YAML job file; command line options override it."),
    stats: Optional[Path] = typer.Option(None, help="Statistics file (YAML from `profile` or JSON dump)."),
    stats_format: Optional[str] = typer.Option(None, help=f"Statistics format ({'/'.join(STATS_FORMATS)})."),
    schema: Optional[str] = typer.Option(None, help="name:type pairs for JSON stats, e.g. 'id:bigint,name:varchar(20)'."),
    rows: Optional[int] = typer.Option(None, help="Number of rows to generate."),
    seed: Optional[int] = typer.Option(None, help="Sampling seed."),
    max_text_len: Optional[int] = typer.Option(None, help="Upper bound on generated string length (JSON stats)."),
    columns: Optional[str] = typer.Option(None, help="Comma-separated subset of columns."),
    skip_malformed: bool = typer.Option(False, help="Drop columns with inconsistent statistics instead of failing."),
    out: Path = typer.Option(Path("rows.csv"), help="Output CSV path."),
    sql_out: Optional[Path] = typer.Option(None, help="Optional file for INSERT statements."),
    table: Optional[str] = typer.Option(None, help="Target table for --sql-out / --dsn."),
    dsn: Optional[str] = typer.Option(None, help="PostgreSQL DSN to insert rows into."),
) -> None:
    """Generate synthetic rows whose columns follow the stored histograms."""

    cfg = _resolve_config(
        config, stats, stats_format, schema, rows, seed, max_text_len, columns, skip_malformed
    )
    if (sql_out is not None or dsn is not None) and not table:
        raise typer.BadParameter("--table is required with --sql-out or --dsn.")

    try:
        histograms = _load_histograms(cfg)
    except (OSError, KeyError, ValueError) as exc:
        typer.echo(f"[gen] cannot load statistics: {exc}", err=True)
        raise typer.Exit(code=1)
    if not histograms:
        typer.echo("[gen] no columns to generate", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[gen] loaded histograms: {len(histograms)}")

    rng = random.Random(cfg.seed)
    try:
        frame = generate_rows(histograms, cfg.rows, rng=rng, skip_malformed=cfg.skip_malformed)
    except MalformedStatisticsError as exc:
        typer.echo(f"[gen] malformed statistics: {exc}", err=True)
        raise typer.Exit(code=1)
    if frame.columns.empty:
        typer.echo("[gen] every column was skipped", err=True)
        raise typer.Exit(code=1)

    _ensure_parent_dir(out)
    write_csv(out, frame)
    typer.echo(f"[gen] Wrote {len(frame)} rows to {out}")
    if sql_out is not None:
        _ensure_parent_dir(sql_out)
        statements = write_insert_sql(sql_out, table, frame)
        typer.echo(f"[gen] Wrote {statements} INSERT statements to {sql_out}")
    if dsn is not None:
        inserted = insert_postgres(dsn, table, frame)
        typer.echo(f"[gen] Inserted {inserted} rows into {table}")


# -----------------------------------------------------------------------------
# VIZ: compare sampled values against bucket mass
# -----------------------------------------------------------------------------
@app.command(name="viz")
def viz(
    stats: Path = typer.Option(..., help="stats.yaml produced by `profile`."),
    out_dir: Path = typer.Option(Path("viz_out"), help="Output folder for PNGs and index.html."),
    samples: int = typer.Option(10_000, help="Values to draw per column."),
    seed: Optional[int] = typer.Option(None, help="Sampling seed."),
) -> None:
    """Plot expected bucket shares next to the shares of sampled values."""

    if samples < 1:
        raise typer.BadParameter("samples must be at least 1")
    source = YAMLStatsSource(stats)
    out_dir.mkdir(parents=True, exist_ok=True)
    rng = random.Random(seed)

    pages: List[str] = []
    for name in source.columns():
        hist = source.load(name)
        try:
            values = sample_column(hist, samples, rng)
        except MalformedStatisticsError as exc:
            typer.echo(f"[viz] skip {name}: {exc}", err=True)
            continue
        expected = _expected_shares(hist)
        observed = _bucket_shares(hist, values)

        positions = list(range(len(expected)))
        fig, ax = plt.subplots(figsize=(max(6.0, 0.25 * len(positions)), 4.0))
        ax.bar([p - 0.2 for p in positions], expected, width=0.4, label="histogram")
        ax.bar([p + 0.2 for p in positions], observed, width=0.4, label=f"sampled (n={samples})")
        ax.set_xlabel("bucket")
        ax.set_ylabel("share of rows")
        ax.set_title(f"{name} ({hist.kind.value})")
        ax.legend()
        fig.tight_layout()
        filename = f"{re.sub(r'[^A-Za-z0-9_.-]', '_', name)}.png"
        fig.savefig(out_dir / filename, dpi=120)
        plt.close(fig)
        pages.append(filename)

    index = ["<html><body>"]
    index.extend(f'<div><img src="{page}"/></div>' for page in pages)
    index.append("</body></html>")
    (out_dir / "index.html").write_text("\n".join(index), encoding="utf-8")
    typer.echo(f"[viz] wrote {len(pages)} plots → {out_dir} (and index.html)")


def _expected_shares(hist: Histogram) -> List[float]:
    shares: List[float] = []
    previous = 0
    for bucket in hist.buckets:
        shares.append((bucket.count - previous) / hist.total_count)
        previous = bucket.count
    return shares


def _bucket_shares(hist: Histogram, values: List[object]) -> List[float]:
    """Share of ``values`` falling into each bucket, keyed by upper bound."""
    if hist.kind is ValueKind.INTEGER:
        uppers = [hist.int_bound(2 * i + 1) for i in range(len(hist.buckets))]
    else:
        uppers = [hist.text_bound(2 * i + 1) for i in range(len(hist.buckets))]
    counts = [0] * len(uppers)
    for value in values:
        pos = min(bisect.bisect_left(uppers, value), len(uppers) - 1)
        counts[pos] += 1
    total = len(values) or 1
    return [c / total for c in counts]


# Allow `python -m sdg.cli.main` direct execution (and `python -m sdg.cli` via __main__.py)
if __name__ == "__main__":
    app()
