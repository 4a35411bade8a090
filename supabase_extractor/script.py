"""Reconstruction script and snapshot generation."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping

from .formatting import format_value, quote_identifier, quote_table
from .models import ColumnTypeMap, ExtractedRow, TableDataset, TableDescriptor

SCHEMA_PLACEHOLDER = (
    "-- Note: Schema extraction requires DATABASE_URL to be set.\n"
    "-- Only data INSERT statements are included below.\n"
)


class ScriptGenerator:
    """Renders extracted datasets as a SQL document for ``psql``.

    ``column_types`` is the per-table declared type map used to format array
    values; without it every structured value is written as JSON.
    """

    def __init__(self, column_types: ColumnTypeMap | None = None, generated_at: datetime | None = None) -> None:
        self.column_types = column_types or {}
        self.generated_at = generated_at

    def _timestamp(self) -> str:
        return (self.generated_at or datetime.now(timezone.utc)).isoformat()

    def header(self) -> str:
        return (
            "-- Database Reconstruction Script\n"
            f"-- Generated: {self._timestamp()}\n\n"
            "-- Note: The following session_replication_role commands require superuser privileges\n"
            "-- and have been commented out. Uncomment if you have appropriate permissions.\n"
            "-- SET session_replication_role = replica;\n\n"
        )

    @staticmethod
    def footer() -> str:
        return "\n-- Re-enable triggers and constraints\n-- SET session_replication_role = DEFAULT;\n"

    def render_insert(self, table: TableDescriptor, row: ExtractedRow) -> str:
        """One INSERT for one row, using the row's own columns."""
        types = self.column_types.get(table.name, {})
        columns = list(row.keys())
        column_sql = ", ".join(quote_identifier(c) for c in columns)
        values_sql = ", ".join(format_value(row[c], types.get(c)) for c in columns)
        return f"INSERT INTO {quote_table(table.schema, table.name)} ({column_sql}) VALUES ({values_sql});"

    def generate_inserts(
        self,
        tables: list[TableDescriptor],
        datasets: TableDataset,
        include_drops: bool = False,
        table_ddl: Mapping[str, str] | None = None,
    ) -> str:
        """INSERT statements for every table, in discovery order.

        With ``include_drops`` each non-empty table is preceded by a
        ``DROP TABLE IF EXISTS ... CASCADE`` and, when ``table_ddl`` has an
        entry for it, the table's CREATE TABLE statement.
        """
        parts: list[str] = []
        for table in tables:
            rows = datasets.get(table.name) or []
            if not rows:
                parts.append(f"-- No data for table: {table.name}\n\n")
                continue

            if include_drops:
                parts.append(f"DROP TABLE IF EXISTS {quote_table(table.schema, table.name)} CASCADE;\n")
                if table_ddl and table.name in table_ddl:
                    parts.append(f"{table_ddl[table.name]}\n")
                parts.append("\n")

            parts.append(f"-- Data for table: {table.name}\n")
            parts.append(f"-- Rows: {len(rows)}\n\n")
            for row in rows:
                parts.append(self.render_insert(table, row) + "\n")
            parts.append("\n")
        return "".join(parts)

    def generate(
        self,
        tables: list[TableDescriptor],
        datasets: TableDataset,
        schema_ddl: str | None = None,
        schema_note: str | None = None,
    ) -> str:
        """Full reconstruction document.

        ``schema_ddl`` comes from the schema introspector; when it is absent the
        document carries ``schema_note`` (or the default placeholder) instead.
        """
        sql = self.header()
        if schema_ddl:
            sql += schema_ddl
            if not schema_ddl.endswith("\n\n"):
                sql += "\n"
        else:
            sql += (schema_note or SCHEMA_PLACEHOLDER) + "\n"
        sql += self.generate_inserts(tables, datasets, include_drops=False)
        sql += self.footer()
        return sql

    @staticmethod
    def snapshot(datasets: TableDataset) -> dict[str, list[ExtractedRow]]:
        """Structured table -> rows snapshot for JSON consumers."""
        return {name: [dict(row) for row in rows] for name, rows in datasets.items()}
