"""Table discovery through information_schema over a privileged connection."""

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..models import DiscoveryResult, TableDescriptor
from .base import TableDiscoverer

logger = logging.getLogger(__name__)

TABLES_QUERY = text("""
    SELECT table_name, table_schema
    FROM information_schema.tables
    WHERE table_schema = :schema
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
""")


class CatalogDiscoverer(TableDiscoverer):
    """Authoritative discovery using the database catalog."""

    source = "catalog"

    def __init__(self, engine: Engine, schema: str = "public") -> None:
        super().__init__(schema)
        self.engine = engine

    def discover(self) -> DiscoveryResult:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(TABLES_QUERY, {"schema": self.schema}).mappings().all()
        except SQLAlchemyError as e:
            logger.error(f"Could not list tables in schema '{self.schema}': {e}")
            return self.degraded()
        tables = [TableDescriptor(name=row["table_name"], schema=row["table_schema"]) for row in rows]
        return DiscoveryResult(tables=tables, degraded=False, source=self.source)
