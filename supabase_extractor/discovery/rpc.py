"""Fallback table discovery through the ``get_all_tables`` remote procedure."""

import logging

from ..errors import RestApiError
from ..models import DEFAULT_SCHEMA, DiscoveryResult, TableDescriptor
from ..rest import SupabaseRestClient
from .base import TableDiscoverer

logger = logging.getLogger(__name__)

DISCOVERY_FUNCTION = "get_all_tables"


class RpcDiscoverer(TableDiscoverer):
    """Discovery over the restricted data API.

    Depends on a ``get_all_tables`` function being installed in the database.
    The result is always flagged as degraded since it is only as complete as
    that function.
    """

    source = "rpc"

    def __init__(self, client: SupabaseRestClient, schema: str = DEFAULT_SCHEMA) -> None:
        super().__init__(schema)
        self.client = client

    def discover(self) -> DiscoveryResult:
        logger.warning("Using the REST API for table discovery. For better results, set DATABASE_URL.")
        try:
            rows = self.client.rpc(DISCOVERY_FUNCTION)
        except RestApiError as e:
            logger.error(
                f"Cannot discover tables automatically ({e}). "
                "Set DATABASE_URL or install a get_all_tables() function."
            )
            return self.degraded()

        tables = []
        for row in rows:
            name = row.get("table_name") if isinstance(row, dict) else None
            if not name:
                continue
            schema = row.get("table_schema") or DEFAULT_SCHEMA
            if schema != self.schema:
                continue
            tables.append(TableDescriptor(name=name, schema=schema))
        tables.sort(key=lambda t: t.name)
        return DiscoveryResult(tables=tables, degraded=True, source=self.source)
