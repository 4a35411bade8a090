"""Schema DDL synthesis from the PostgreSQL catalog.

Requires a privileged connection. Produces, in order:

1. ``DROP TYPE`` / ``CREATE TYPE ... AS ENUM`` for every enum in the schema
2. ``CREATE TABLE IF NOT EXISTS`` for every requested table
3. every index definition in the schema, verbatim
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import IntrospectionError
from .formatting import quote_identifier, quote_literal, quote_table
from .models import DEFAULT_SCHEMA, ColumnDefinition, ColumnTypeMap, EnumType, TableDescriptor

logger = logging.getLogger(__name__)

ENUM_QUERY = text("""
    SELECT n.nspname AS schema_name,
           t.typname AS type_name,
           array_agg(e.enumlabel ORDER BY e.enumsortorder) AS labels
    FROM pg_type t
    JOIN pg_enum e ON e.enumtypid = t.oid
    JOIN pg_catalog.pg_namespace n ON n.oid = t.typnamespace
    WHERE n.nspname = :schema
    GROUP BY n.nspname, t.typname, t.oid
    ORDER BY t.typname
""")

COLUMNS_QUERY = text("""
    SELECT column_name, data_type, udt_schema, udt_name,
           character_maximum_length, is_nullable, column_default
    FROM information_schema.columns
    WHERE table_schema = :schema AND table_name = :table
    ORDER BY ordinal_position
""")

INDEX_QUERY = text("""
    SELECT tablename, indexname, indexdef
    FROM pg_indexes
    WHERE schemaname = :schema
    ORDER BY tablename, indexname
""")

LEGACY_UUID_DEFAULT = "uuid_generate_v4()"
UUID_DEFAULT = "gen_random_uuid()"


def _array_type_from_udt(udt_name: str | None) -> str:
    # information_schema reports array element types as _int4, _text, ...
    if udt_name and udt_name.startswith("_"):
        return f"{udt_name[1:]}[]"
    return "text[]"


def render_enum(enum: EnumType) -> str:
    """Render DROP + CREATE TYPE for one enum, keeping label order."""
    name = quote_table(enum.schema, enum.name)
    labels = ", ".join(quote_literal(label) for label in enum.labels)
    return f"DROP TYPE IF EXISTS {name} CASCADE;\nCREATE TYPE {name} AS ENUM ({labels});"


def render_column_type(column: ColumnDefinition) -> str:
    data_type = column.data_type or "text"
    if data_type.upper() == "ARRAY":
        return "text[]"
    if data_type.upper() == "USER-DEFINED":
        if column.udt_name:
            return quote_table(column.udt_schema or "", column.udt_name)
        return "text"
    if column.character_maximum_length is not None:
        return f"{data_type}({column.character_maximum_length})"
    return data_type


def render_column(column: ColumnDefinition) -> str:
    parts = [quote_identifier(column.name), render_column_type(column)]
    if not column.is_nullable:
        parts.append("NOT NULL")
    if column.column_default is not None:
        if LEGACY_UUID_DEFAULT in column.column_default:
            parts.append(f"DEFAULT {UUID_DEFAULT}")
        else:
            parts.append(f"DEFAULT {column.column_default}")
    return " ".join(parts)


def render_create_table(table: TableDescriptor, columns: list[ColumnDefinition]) -> str:
    column_defs = ", ".join(render_column(c) for c in columns)
    return f"CREATE TABLE IF NOT EXISTS {quote_table(table.schema, table.name)} ({column_defs});"


def _column_from_row(row: Any) -> ColumnDefinition:
    max_length = row["character_maximum_length"]
    return ColumnDefinition(
        name=row["column_name"],
        data_type=row["data_type"],
        udt_schema=row["udt_schema"],
        udt_name=row["udt_name"],
        character_maximum_length=int(max_length) if max_length is not None else None,
        is_nullable=str(row["is_nullable"]).upper() != "NO",
        column_default=row["column_default"],
    )


class SchemaIntrospector:
    """Reads enums, columns and indexes of one schema through a privileged engine.

    Every public method opens its own connection and releases it before
    returning, including on errors.
    """

    def __init__(self, engine: Engine, schema: str = DEFAULT_SCHEMA) -> None:
        self.engine = engine
        self.schema = schema or DEFAULT_SCHEMA

    def fetch_enum_types(self, conn: Connection) -> list[EnumType]:
        rows = conn.execute(ENUM_QUERY, {"schema": self.schema}).mappings().all()
        return [
            EnumType(schema=row["schema_name"], name=row["type_name"], labels=list(row["labels"] or []))
            for row in rows
        ]

    def fetch_columns(self, conn: Connection, table: TableDescriptor) -> list[ColumnDefinition]:
        rows = conn.execute(COLUMNS_QUERY, {"schema": table.schema, "table": table.name}).mappings().all()
        return [_column_from_row(row) for row in rows]

    def fetch_indexes(self, conn: Connection) -> list[str]:
        rows = conn.execute(INDEX_QUERY, {"schema": self.schema}).mappings().all()
        return [row["indexdef"] for row in rows]

    def _table_definitions(self, conn: Connection, tables: Iterable[TableDescriptor]) -> dict[str, str]:
        definitions: dict[str, str] = {}
        for table in tables:
            columns = self.fetch_columns(conn, table)
            if not columns:
                logger.warning(f"No columns found for {table.schema}.{table.name}; skipping CREATE TABLE")
                continue
            definitions[table.name] = render_create_table(table, columns)
        return definitions

    def table_definitions(self, tables: Iterable[TableDescriptor]) -> dict[str, str]:
        """Return CREATE TABLE statements keyed by table name."""
        try:
            with self.engine.connect() as conn:
                return self._table_definitions(conn, tables)
        except SQLAlchemyError as e:
            raise IntrospectionError(f"Could not read column definitions: {e}") from e

    def extract_schema(self, tables: list[TableDescriptor]) -> str:
        """Render enum, table and index DDL for the given tables."""
        return self.render_schema(tables)[0]

    def render_schema(self, tables: list[TableDescriptor]) -> tuple[str, dict[str, str]]:
        """Like ``extract_schema``, also returning the CREATE TABLE statements by table name."""
        lines = ["-- Database Schema", ""]
        try:
            with self.engine.connect() as conn:
                enums = self.fetch_enum_types(conn)
                if enums:
                    lines.append("-- Enum Types")
                    lines.append("")
                    lines.extend(render_enum(e) for e in enums)
                    lines.append("")

                definitions = self._table_definitions(conn, tables)
                for table in tables:
                    if table.name in definitions:
                        lines.append(f"-- Table: {table.schema}.{table.name}")
                        lines.append(definitions[table.name])
                        lines.append("")

                indexes = self.fetch_indexes(conn)
                if indexes:
                    lines.append("-- Indexes")
                    lines.append("")
                    lines.extend(f"{d.rstrip().rstrip(';')};" for d in indexes)
                    lines.append("")
        except SQLAlchemyError as e:
            raise IntrospectionError(f"Schema extraction failed: {e}") from e

        logger.info(f"Schema DDL: {len(enums)} enum type(s), {len(definitions)} table(s), {len(indexes)} index(es)")
        return "\n".join(lines) + "\n", definitions

    def fetch_column_types(self, tables: Iterable[TableDescriptor]) -> ColumnTypeMap:
        """Map table -> column -> declared type, one connection per table.

        Array columns map to their element-qualified type (``text[]``,
        ``int4[]``) so values can be cast correctly.
        """
        result: ColumnTypeMap = {}
        for table in tables:
            try:
                with self.engine.connect() as conn:
                    columns = self.fetch_columns(conn, table)
            except SQLAlchemyError as e:
                logger.warning(f"Could not fetch column types for '{table.name}': {e}")
                continue
            result[table.name] = {
                c.name: _array_type_from_udt(c.udt_name) if c.data_type.upper() == "ARRAY" else c.data_type
                for c in columns
            }
        return result
