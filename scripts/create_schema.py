#!/usr/bin/env python
"""Create the payroll tables in the configured database.

Usage:
    python scripts/create_schema.py
    python scripts/create_schema.py --database-url postgresql+asyncpg://...
    python scripts/create_schema.py --dry-run
"""

import argparse
import asyncio
import sys

from cohesio_payroll.config import get_settings
from cohesio_payroll.database import create_schema, get_engine
from cohesio_payroll.models import Base


async def run(database_url: str) -> None:
    engine = get_engine(database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create payroll tables")
    parser.add_argument(
        "--database-url",
        default=get_settings().database_url,
        help="Database URL",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the tables without creating them",
    )
    args = parser.parse_args()

    print(f"Database: {args.database_url.split('@')[-1]}")
    for table in Base.metadata.sorted_tables:
        print(f"  {table.name}")

    if args.dry_run:
        print("[DRY RUN] Nothing created")
        return 0

    asyncio.run(run(args.database_url))
    print("OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
