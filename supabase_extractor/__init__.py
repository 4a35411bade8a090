"""Extract a Supabase/PostgreSQL schema into a reconstruction SQL script."""

from .config import ExtractorConfig, load_env
from .errors import ConfigError, ExtractionError, ExtractorError, IntrospectionError, RestApiError
from .formatting import format_value, quote_identifier
from .models import DiscoveryResult, ExtractionRun, TableDescriptor
from .orchestrator import DatabaseExtractor, write_outputs

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DatabaseExtractor",
    "DiscoveryResult",
    "ExtractionError",
    "ExtractionRun",
    "ExtractorConfig",
    "ExtractorError",
    "IntrospectionError",
    "RestApiError",
    "TableDescriptor",
    "format_value",
    "load_env",
    "quote_identifier",
    "write_outputs",
]
