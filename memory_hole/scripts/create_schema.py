"""Create the support issue tables in an empty database."""

from __future__ import annotations

import argparse
import logging
import sys

from memory_hole.config import configure_logging
from memory_hole.db import database, schema

logger = logging.getLogger("memory_hole.scripts.create_schema")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create missing memory-hole tables")
    parser.add_argument(
        "--drop-first",
        action="store_true",
        help="Drop existing tables before creating them (destroys data)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)
    if args.drop_first:
        logger.warning("Dropping existing tables on %s", database.engine.url.render_as_string(hide_password=True))
        schema.drop_schema(database.engine)
    schema.create_schema(database.engine)
    logger.info("Schema ready", extra={"tables": sorted(schema.metadata.tables)})
    return 0


if __name__ == "__main__":
    sys.exit(main())
