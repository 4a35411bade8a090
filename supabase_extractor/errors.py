"""Exception types raised by the extractor."""

from __future__ import annotations


class ExtractorError(Exception):
    """Base class for extractor failures."""


class ConfigError(ExtractorError):
    """Required configuration is missing or invalid."""


class RestApiError(ExtractorError):
    """The data API answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class ExtractionError(ExtractorError):
    """Fetching rows for one table failed."""

    def __init__(self, table: str, cause: Exception) -> None:
        super().__init__(f"Error fetching data from {table}: {cause}")
        self.table = table
        self.cause = cause


class IntrospectionError(ExtractorError):
    """A catalog query failed while building schema DDL."""
