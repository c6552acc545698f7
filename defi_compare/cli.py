"""Command-line interface for the DeFi position comparison."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from .config import load_config
from .errors import DefiCompareError
from .logging_setup import configure_logging
from .services import CompareService, aggregate_by_protocol, build_compare_report

logger = logging.getLogger(__name__)

SOURCES = ("zerion", "onekey")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="defi-compare",
        description="Compare a wallet's DeFi positions across data providers",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    fetch_parser = sub.add_parser("fetch", help="Canonical positions from one source")
    fetch_parser.add_argument("address")
    fetch_parser.add_argument("--source", choices=SOURCES, default="zerion")

    compare_parser = sub.add_parser("compare", help="Compare two sources for one address")
    compare_parser.add_argument("address")
    compare_parser.add_argument("--source-a", choices=SOURCES, default="zerion")
    compare_parser.add_argument("--source-b", choices=SOURCES, default="onekey")
    compare_parser.add_argument(
        "--no-align",
        dest="align",
        action="store_false",
        default=None,
        help="Query source B on its primary networks instead of source A's chains",
    )
    compare_parser.add_argument("--format", choices=["json", "text"], default="json")
    compare_parser.add_argument(
        "--by-protocol",
        action="store_true",
        help="Include per-protocol totals",
    )

    addresses_parser = sub.add_parser(
        "compare-addresses", help="Compare two addresses on one source"
    )
    addresses_parser.add_argument("address_a")
    addresses_parser.add_argument("address_b")
    addresses_parser.add_argument("--source", choices=SOURCES, default="zerion")

    raw_parser = sub.add_parser("raw", help="Un-normalized provider positions (debug)")
    raw_parser.add_argument("address")
    raw_parser.add_argument("--source", choices=SOURCES, default="zerion")

    return parser


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command; returns the process exit code."""
    configure_logging(args.log_level)

    try:
        config = load_config(args.config)
        service = CompareService(config)

        if args.command == "fetch":
            data = await service.get_address_data(args.address, args.source)
            _print_json({"success": True, "data": data.to_dict()})
        elif args.command == "compare":
            result = await service.compare_sources(
                args.address, args.source_a, args.source_b, align=args.align
            )
            if args.format == "text":
                print(build_compare_report(result, by_protocol=args.by_protocol))
            else:
                data = result.to_dict()
                if args.by_protocol:
                    data["byProtocol"] = {
                        key: totals.to_dict()
                        for key, totals in aggregate_by_protocol(result).items()
                    }
                _print_json({"success": True, "data": data})
        elif args.command == "compare-addresses":
            result = await service.compare_addresses(
                args.address_a, args.address_b, args.source
            )
            _print_json({"success": True, "data": result.to_dict()})
        elif args.command == "raw":
            raw = await service.get_raw_positions(args.address, args.source)
            _print_json({"success": True, "data": raw})
        else:
            build_parser().print_help()
            return 1
    except (DefiCompareError, ValueError, FileNotFoundError) as e:
        logger.error("%s failed: %s", args.command, e)
        _print_json({"success": False, "message": str(e)})
        return 1

    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
