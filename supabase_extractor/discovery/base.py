"""Table discovery strategy base class.

Each access path (catalog over a privileged connection, remote procedure over
the data API) implements this interface and returns a ``DiscoveryResult``.
"""

from abc import ABC, abstractmethod

from ..models import DEFAULT_SCHEMA, DiscoveryResult


class TableDiscoverer(ABC):
    """Abstract base for table discovery strategies."""

    source = ""

    def __init__(self, schema: str = DEFAULT_SCHEMA) -> None:
        self.schema = schema or DEFAULT_SCHEMA

    @abstractmethod
    def discover(self) -> DiscoveryResult:
        """Return the base tables of the schema. Must not raise."""
        pass

    def degraded(self) -> DiscoveryResult:
        """Empty result signalling that discovery found nothing usable."""
        return DiscoveryResult(tables=[], degraded=True, source=self.source)
