"""
Supabase Database Extractor

Discovers the tables of one schema, extracts every row through the Supabase
REST API and writes:
- database_reconstruction.sql (schema DDL when DATABASE_URL is set + INSERTs)
- database_inserts.sql (DROP TABLE guards + INSERTs)
- database_snapshot.json (table -> rows)

Usage:
    supabase-extract [--output-dir DIR] [--schema NAME] [--page-size N] [--no-snapshot] [-v]
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from .config import ExtractorConfig, load_env
from .errors import ConfigError
from .extractor import MAX_PAGE_SIZE
from .orchestrator import DatabaseExtractor, write_outputs

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract a Supabase database into a SQL reconstruction script")
    parser.add_argument("--output-dir", default=None, help="Directory for output files (default: EXTRACT_OUTPUT_DIR or ./output)")
    parser.add_argument("--schema", default=None, help="Schema to extract (default: SCHEMA env or 'public')")
    parser.add_argument("--page-size", type=int, default=None, help=f"Rows fetched per request (default and maximum: {MAX_PAGE_SIZE})")
    parser.add_argument("--no-snapshot", action="store_true", help="Do not write the JSON data snapshot")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _apply_overrides(config: ExtractorConfig, args: argparse.Namespace) -> ExtractorConfig:
    overrides = {}
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir)
    if args.schema:
        overrides["schema"] = args.schema
    if args.page_size is not None:
        if not 1 <= args.page_size <= MAX_PAGE_SIZE:
            raise ConfigError(f"--page-size must be between 1 and {MAX_PAGE_SIZE}")
        overrides["page_size"] = args.page_size
    return dataclasses.replace(config, **overrides) if overrides else config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s")

    load_env()
    try:
        config = _apply_overrides(ExtractorConfig.from_env(), args)
    except ConfigError as e:
        logger.error(str(e))
        logger.error("Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY in your .env file or Key Vault.")
        logger.error("Note: SUPABASE_SERVICE_ROLE_KEY (not the anon key) is required for full database access.")
        return 1

    if not config.has_privileged_access:
        logger.warning("DATABASE_URL not set. Schema extraction will be skipped.")
    else:
        logger.info(f"Using privileged connection to {config.database_host}")

    try:
        run = DatabaseExtractor(config).run()
        if not run.has_tables:
            logger.info("Nothing to write.")
            return 0
        written = write_outputs(run, config.output_dir, include_snapshot=not args.no_snapshot)
    except Exception as e:
        logger.error(f"Error during extraction: {e}")
        return 1

    logger.info("Database extraction complete!")
    logger.info(f"To reconstruct the database offline: psql your_database < {written['reconstruction']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
