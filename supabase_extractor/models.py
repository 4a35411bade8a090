"""Data structures shared across discovery, extraction and script generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_SCHEMA = "public"

# One row as decoded from the data API: column name -> value.
ExtractedRow = dict[str, Any]
# Table name -> rows in fetch order.
TableDataset = dict[str, list[ExtractedRow]]
# Table name -> column name -> declared type.
ColumnTypeMap = dict[str, dict[str, str]]


@dataclass(frozen=True)
class TableDescriptor:
    """A base table in the extracted schema."""

    name: str
    schema: str = DEFAULT_SCHEMA

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Table name must not be empty")


@dataclass(frozen=True)
class DiscoveryResult:
    """Tables found by a discovery strategy.

    ``degraded`` is set when discovery could not use the catalog, either because
    only the restricted API is configured or because the catalog query failed.
    """

    tables: list[TableDescriptor]
    degraded: bool = False
    source: str = "catalog"


@dataclass(frozen=True)
class EnumType:
    schema: str
    name: str
    labels: list[str]


@dataclass(frozen=True)
class ColumnDefinition:
    """A column as reported by information_schema.columns."""

    name: str
    data_type: str
    udt_schema: str | None = None
    udt_name: str | None = None
    character_maximum_length: int | None = None
    is_nullable: bool = True
    column_default: str | None = None


@dataclass
class ExtractionRun:
    """Everything produced by one extraction run."""

    tables: list[TableDescriptor] = field(default_factory=list)
    discovery_degraded: bool = False
    datasets: TableDataset = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    column_types: ColumnTypeMap = field(default_factory=dict)
    reconstruction_sql: str = ""
    inserts_sql: str = ""
    snapshot: dict[str, list[ExtractedRow]] = field(default_factory=dict)

    @property
    def has_tables(self) -> bool:
        return bool(self.tables)

    @property
    def total_rows(self) -> int:
        return sum(len(rows) for rows in self.datasets.values())
