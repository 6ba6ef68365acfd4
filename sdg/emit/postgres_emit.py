"""Load generated rows into PostgreSQL."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd
import psycopg2
from psycopg2 import sql
from psycopg2.extras import execute_values

logger = logging.getLogger(__name__)


@dataclass
class _QualifiedTable:
    schema: str
    name: str


def _parse_table(identifier: str) -> _QualifiedTable:
    if "." in identifier:
        schema, name = identifier.split(".", 1)
    else:
        schema, name = "public", identifier
    return _QualifiedTable(schema=schema, name=name)


def insert_postgres(
    dsn: str,
    table: str,
    frame: pd.DataFrame,
    batch_size: int = 1000,
) -> int:
    """Insert ``frame`` into ``table`` in batches; returns the row count."""

    if frame.empty:
        return 0
    target = _parse_table(table)
    query = sql.SQL("INSERT INTO {table} ({cols}) VALUES %s").format(
        table=sql.Identifier(target.schema, target.name),
        cols=sql.SQL(", ").join(sql.Identifier(str(col)) for col in frame.columns),
    )
    records = [
        tuple(v.item() if hasattr(v, "item") else v for v in row)
        for row in frame.itertuples(index=False, name=None)
    ]
    with psycopg2.connect(dsn) as conn:
        with conn.cursor() as cursor:
            execute_values(cursor, query.as_string(conn), records, page_size=batch_size)
    logger.info("inserted %d rows into %s.%s", len(records), target.schema, target.name)
    return len(records)
