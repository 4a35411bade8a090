"""Top-level sequencing of one extraction run and writing of its outputs."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from .config import ExtractorConfig
from .discovery import get_discoverer
from .errors import IntrospectionError
from .extractor import extract_all_data
from .introspection import SchemaIntrospector
from .models import ExtractionRun
from .rest import SupabaseRestClient
from .script import ScriptGenerator

logger = logging.getLogger(__name__)

RECONSTRUCTION_FILE = "database_reconstruction.sql"
INSERTS_FILE = "database_inserts.sql"
SNAPSHOT_FILE = "database_snapshot.json"


def get_engine(database_url: str) -> Engine:
    """Create an unpooled SQLAlchemy engine: each connect() opens a fresh connection."""
    return create_engine(database_url, poolclass=NullPool, connect_args={"connect_timeout": 10})


class DatabaseExtractor:
    """Discovers, extracts and renders one schema.

    ``client`` and ``engine`` are built from ``config`` unless given; the
    engine only exists when DATABASE_URL is configured.
    """

    def __init__(
        self,
        config: ExtractorConfig,
        client: SupabaseRestClient | None = None,
        engine: Engine | None = None,
    ) -> None:
        self.config = config
        self.client = client or SupabaseRestClient(config.supabase_url, config.supabase_key, timeout=config.timeout)
        if engine is None and config.database_url:
            engine = get_engine(config.database_url)
        self.engine = engine
        self.introspector = SchemaIntrospector(engine, config.schema) if engine is not None else None

    def run(self) -> ExtractionRun:
        run = ExtractionRun()

        logger.info("Discovering tables...")
        discovery = get_discoverer(self.config.schema, engine=self.engine, client=self.client).discover()
        run.tables = discovery.tables
        run.discovery_degraded = discovery.degraded
        logger.info(f"Found {len(run.tables)} tables (via {discovery.source})")
        if not run.tables:
            logger.warning("No tables found in the database.")
            return run

        if self.introspector is not None:
            run.column_types = self.introspector.fetch_column_types(run.tables)

        logger.info("Extracting data from tables...")
        run.datasets, run.failures = extract_all_data(self.client, run.tables, page_size=self.config.page_size)
        logger.info(f"Extracted {run.total_rows} rows from {len(run.datasets)} tables")
        if run.failures:
            logger.warning(f"{len(run.failures)} table(s) failed and were written without data: {', '.join(run.failures)}")

        logger.info("Generating SQL reconstruction script...")
        self._render(run)
        return run

    def _render(self, run: ExtractionRun) -> None:
        generator = ScriptGenerator(column_types=run.column_types)
        schema_ddl = None
        schema_note = None
        table_ddl: dict[str, str] = {}
        if self.introspector is not None:
            try:
                schema_ddl, table_ddl = self.introspector.render_schema(run.tables)
            except IntrospectionError as e:
                logger.error(f"Schema extraction failed, writing data only: {e}")
                schema_note = (
                    "-- Note: Schema extraction failed; see the extraction log.\n"
                    "-- Only data INSERT statements are included below.\n"
                )

        run.reconstruction_sql = generator.generate(run.tables, run.datasets, schema_ddl=schema_ddl, schema_note=schema_note)
        run.inserts_sql = generator.generate_inserts(run.tables, run.datasets, include_drops=True, table_ddl=table_ddl)
        run.snapshot = generator.snapshot(run.datasets)


def write_outputs(run: ExtractionRun, output_dir: Path, include_snapshot: bool = True) -> dict[str, Path]:
    """Write the SQL documents and JSON snapshot; returns the written paths by kind."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}

    reconstruction_path = output_dir / RECONSTRUCTION_FILE
    reconstruction_path.write_text(run.reconstruction_sql, encoding="utf-8")
    written["reconstruction"] = reconstruction_path
    logger.info(f"SQL script saved to: {reconstruction_path}")

    inserts_path = output_dir / INSERTS_FILE
    inserts_path.write_text(run.inserts_sql, encoding="utf-8")
    written["inserts"] = inserts_path
    logger.info(f"SQL INSERT statements with DROP TABLE saved to: {inserts_path}")

    if include_snapshot:
        snapshot_path = output_dir / SNAPSHOT_FILE
        with open(snapshot_path, "w", encoding="utf-8") as f:
            json.dump(run.snapshot, f, indent=2, default=str, ensure_ascii=False)
        written["snapshot"] = snapshot_path
        logger.info(f"Data snapshot saved to: {snapshot_path}")

    return written
