#!/usr/bin/env python3
"""Apply or inspect the catalog schema with Alembic.

Usage:
    cd api
    python -m scripts.migrate upgrade
    python -m scripts.migrate downgrade base
    python -m scripts.migrate current
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from alembic import command
from alembic.config import Config

API_DIR = Path(__file__).resolve().parents[1]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the catalog schema")
    sub = parser.add_subparsers(dest="cmd", required=True)

    for name, default, help_text in (
        ("upgrade", "head", "Apply migrations up to a revision"),
        ("downgrade", "-1", "Revert migrations down to a revision"),
        ("stamp", "head", "Record a revision without running it"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument(
            "target",
            nargs="?",
            default=default,
            help=f"Target revision (default: {default})",
        )

    sub.add_parser("current", help="Show the applied revision")
    sub.add_parser("history", help="List known revisions")
    return parser


def get_alembic_config() -> Config:
    """Alembic config that resolves the same way from any working directory."""
    if str(API_DIR) not in sys.path:
        sys.path.insert(0, str(API_DIR))

    cfg = Config(str(API_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(API_DIR / "alembic"))
    return cfg


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    cfg = get_alembic_config()

    match args.cmd:
        case "upgrade":
            command.upgrade(cfg, args.target)
        case "downgrade":
            command.downgrade(cfg, args.target)
        case "stamp":
            command.stamp(cfg, args.target)
        case "current":
            command.current(cfg)
        case "history":
            command.history(cfg)
        case _:
            raise ValueError(f"Unknown command: {args.cmd}")


if __name__ == "__main__":
    main()
