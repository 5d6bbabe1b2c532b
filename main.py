# main.py

"""Entry point for the catalog_recon command-line tool."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.models.errors import CatalogError

logger = logging.getLogger("catalog_recon.main")


def _add_format_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="catalog_recon",
        description=(
            "Reconcile vendor listings against the canonical product "
            "catalog and keep the lowest price per vendor."
        ),
    )
    commands = parser.add_subparsers(dest="command", required=True)

    reconcile = commands.add_parser(
        "reconcile", help="Match a JSON batch of listings to the catalog.",
    )
    reconcile.add_argument("file", help="JSON array of listings.")
    reconcile.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=None,
        help="Merge when the match score is above this (default: 0.70).",
    )
    reconcile.add_argument(
        "--save",
        action="store_true",
        default=False,
        help="Also save the results under results/.",
    )
    _add_format_option(reconcile)

    aggregate = commands.add_parser(
        "aggregate", help="Keep the lowest price per name and vendor.",
    )
    aggregate.add_argument("file", help="JSON array of price observations.")
    _add_format_option(aggregate)

    products = commands.add_parser(
        "products", help="List canonical products.",
    )
    products.add_argument(
        "-s", "--search", default=None, help="Substring to search for.",
    )

    listings = commands.add_parser(
        "listings", help="Show stored listing links.",
    )
    listings.add_argument("--product-id", type=int, default=None)
    listings.add_argument("--vendor-id", type=int, default=None)

    update = commands.add_parser(
        "update-listing", help="Replace price, image and link on a listing.",
    )
    update.add_argument("product_id", type=int)
    update.add_argument("vendor_id", type=int)
    update.add_argument("--price", type=float, required=True)
    update.add_argument("--image", default="")
    update.add_argument("--link", default="")

    remove = commands.add_parser(
        "remove-listing", help="Delete a listing link.",
    )
    remove.add_argument("product_id", type=int)
    remove.add_argument("vendor_id", type=int)

    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Run the selected subcommand and return its exit code."""
    from src.cli import runner

    if args.command == "reconcile":
        return asyncio.run(runner.run_reconcile(
            args.file, args.threshold, args.output_format, args.save,
        ))
    if args.command == "aggregate":
        return asyncio.run(
            runner.run_aggregate(args.file, args.output_format)
        )
    if args.command == "products":
        return runner.run_products(args.search)
    if args.command == "listings":
        return runner.run_listings(args.product_id, args.vendor_id)
    if args.command == "update-listing":
        return runner.run_update_listing(
            args.product_id,
            args.vendor_id,
            args.price,
            args.image,
            args.link,
        )
    return runner.run_remove_listing(args.product_id, args.vendor_id)


def main() -> None:
    """Parse arguments and route to the matching CLI command."""
    log_file = setup_logging()
    logger.info("catalog_recon starting, log file: %s", log_file)

    args = _build_parser().parse_args()
    try:
        exit_code = _dispatch(args)
    except CatalogError:
        logger.critical("Command %s failed", args.command, exc_info=True)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
