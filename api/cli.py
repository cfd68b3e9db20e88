#!/usr/bin/env python3
"""CLI for Storefront API management tasks.

Usage:
    python -m cli <command>

Commands:
    migrate          Run database migrations
    seed-categories  Create catalog categories by name
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def cmd_migrate(target: str) -> int:
    """Run database migrations."""
    from alembic import command
    from scripts.migrate import get_alembic_config

    logger.info("Running database migrations to %s...", target)
    command.upgrade(get_alembic_config(), target)
    logger.info("Migrations complete")
    return 0


def cmd_seed_categories(names: Sequence[str]) -> int:
    """Create any of the named categories that are missing."""
    from scripts.seed_categories import seed_categories

    names = [name for name in names if name.strip()]
    if not names:
        logger.warning("No category names given")
        return 1

    seeded = asyncio.run(seed_categories(names))
    logger.info("Categories ready: %s", ", ".join(seeded))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Storefront API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    migrate = subparsers.add_parser("migrate", help="Run database migrations")
    migrate.add_argument("target", nargs="?", default="head")

    seed = subparsers.add_parser(
        "seed-categories",
        help="Create catalog categories by name",
    )
    seed.add_argument("names", nargs="+", metavar="NAME")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "migrate":
        return cmd_migrate(args.target)
    elif args.command == "seed-categories":
        return cmd_seed_categories(args.names)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
