"""Emit generated rows as SQL ``INSERT`` statements."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, List

import pandas as pd


def quote_identifier(name: str) -> str:
    """Double-quote an identifier, qualifying ``schema.table`` parts separately."""

    return ".".join('"' + part.replace('"', '""') + '"' for part in name.split("."))


def sql_literal(value: object) -> str:
    if value is None or value is pd.NA:
        return "NULL"
    if isinstance(value, float) and math.isnan(value):
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def insert_statements(
    table: str,
    frame: pd.DataFrame,
    batch_size: int = 100,
) -> Iterable[str]:
    """Yield multi-row ``INSERT`` statements, ``batch_size`` rows each."""

    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    columns = ", ".join(quote_identifier(str(col)) for col in frame.columns)
    head = f"INSERT INTO {quote_identifier(table)} ({columns}) VALUES"
    rows: List[str] = []
    for record in frame.itertuples(index=False, name=None):
        rows.append("(" + ", ".join(sql_literal(_native(v)) for v in record) + ")")
        if len(rows) >= batch_size:
            yield head + "\n  " + ",\n  ".join(rows) + ";"
            rows = []
    if rows:
        yield head + "\n  " + ",\n  ".join(rows) + ";"


def write_insert_sql(
    path: str | Path,
    table: str,
    frame: pd.DataFrame,
    batch_size: int = 100,
) -> int:
    """Write ``INSERT`` statements to ``path``; returns the statement count."""

    written = 0
    with Path(path).open("w", encoding="utf-8") as handle:
        for statement in insert_statements(table, frame, batch_size=batch_size):
            handle.write(statement)
            handle.write("\n")
            written += 1
    return written


def _native(value: object) -> object:
    # numpy scalars expose .item(); plain Python values pass through.
    item = getattr(value, "item", None)
    if callable(item):
        return item()
    return value
