#!/usr/bin/env python3
"""
Canopy CLI - Command-line interface for the catalog category tree.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Browse and maintain categories
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories seed
    python -m cli categories tree --max-depth 2
    python -m cli categories move 7 --parent-id 3
    python -m cli categories find /electronics
"""

import sys
import argparse
from cli import categories, migrate
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def build_parser():
    """Build the top-level argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="canopy",
        description="Canopy - Catalog category tree maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    return parser


def main():
    """Main CLI entry point with subcommands."""
    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
        setup_logging(config)

        # categories works through services; migrate needs raw connections
        if args.command == "migrate":
            args.func(args, DatabaseManager(config))
        else:
            args.func(args, Services(config))
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
