"""Table discovery strategies, selected once from the available credentials."""

from typing import Optional

from sqlalchemy.engine import Engine

from ..rest import SupabaseRestClient
from .base import TableDiscoverer
from .catalog import CatalogDiscoverer
from .rpc import RpcDiscoverer

_STRATEGIES = {
    "catalog": CatalogDiscoverer,
    "rpc": RpcDiscoverer,
}


def get_discoverer(
    schema: str,
    engine: Optional[Engine] = None,
    client: Optional[SupabaseRestClient] = None,
) -> TableDiscoverer:
    """Pick the discovery strategy for this run.

    The catalog is used whenever a privileged engine is available; otherwise
    the remote procedure over the REST client.
    """
    if engine is not None:
        return _STRATEGIES["catalog"](engine, schema)
    if client is None:
        raise ValueError(
            "Either a database engine or a REST client is required for discovery "
            f"(sources: {', '.join(supported_sources())})"
        )
    return _STRATEGIES["rpc"](client, schema)


def supported_sources() -> tuple:
    """Return tuple of discovery source names."""
    return tuple(_STRATEGIES.keys())


__all__ = [
    "CatalogDiscoverer",
    "RpcDiscoverer",
    "TableDiscoverer",
    "get_discoverer",
    "supported_sources",
]
