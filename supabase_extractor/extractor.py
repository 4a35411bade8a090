"""Paginated row extraction through the data API."""

from __future__ import annotations

import logging
from typing import Iterable

from .errors import ExtractionError, RestApiError
from .models import ExtractedRow, TableDataset, TableDescriptor
from .rest import SupabaseRestClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000
# PostgREST caps every response at its max-rows setting (1000 on Supabase)
MAX_PAGE_SIZE = 1000


def extract_table(client: SupabaseRestClient, table: str, page_size: int = PAGE_SIZE) -> list[ExtractedRow]:
    """Fetch every row of ``table`` in pages of ``page_size``.

    Stops at the first page shorter than ``page_size``. Page sizes above
    ``MAX_PAGE_SIZE`` are lowered to it, otherwise a response truncated by the
    server would look like the last page. There is no snapshot isolation
    between pages: rows inserted or deleted during extraction may be missed
    or shift between pages.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")
    if page_size > MAX_PAGE_SIZE:
        logger.warning(f"page_size {page_size} exceeds the API row limit, using {MAX_PAGE_SIZE}")
        page_size = MAX_PAGE_SIZE

    rows: list[ExtractedRow] = []
    offset = 0
    while True:
        try:
            page = client.select_range(table, offset, offset + page_size - 1)
        except RestApiError as e:
            raise ExtractionError(table, e) from e
        rows.extend(page)
        if len(page) < page_size:
            break
        offset += page_size
        logger.debug(f"{table}: {len(rows)} rows so far")
    return rows


def extract_all_data(
    client: SupabaseRestClient,
    tables: Iterable[TableDescriptor],
    page_size: int = PAGE_SIZE,
) -> tuple[TableDataset, dict[str, str]]:
    """Extract all tables one after another.

    A table that fails is recorded with an empty dataset and reported in the
    returned failures mapping; the remaining tables are still extracted.
    """
    datasets: TableDataset = {}
    failures: dict[str, str] = {}
    for table in tables:
        logger.info(f"Extracting: {table.name}")
        try:
            rows = extract_table(client, table.name, page_size=page_size)
        except ExtractionError as e:
            logger.error(f"Error extracting {table.name}: {e.cause}")
            datasets[table.name] = []
            failures[table.name] = str(e.cause)
            continue
        datasets[table.name] = rows
        logger.info(f"  {table.name}: {len(rows)} rows")
    return datasets, failures
