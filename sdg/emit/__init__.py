"""Emit generated rows to external representations."""

from .csv_emit import write_csv
from .postgres_emit import insert_postgres
from .sql_emit import write_insert_sql

__all__ = ["insert_postgres", "write_csv", "write_insert_sql"]
