# src/cli/runner.py

"""Headless CLI commands for reconciliation, price aggregation and lookups."""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.filters.listing_validator import ListingValidator
from src.models.errors import CatalogError, ValidationFailure
from src.models.price_outcome import (
    PriceNotFound,
    PriceUpdated,
    PriceUpdateFailed,
    UpdateOutcome,
)
from src.models.product import CanonicalProduct, ListingLink, MatchResult
from src.services.price_aggregator import PriceAggregator
from src.services.reconciler import CatalogReconciler
from src.storage.catalog_db import CatalogDB
from src.storage.listing_files import (
    load_listings,
    load_price_observations,
    save_report,
)

logger = logging.getLogger("catalog_recon.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _dump_json(rows: list[dict[str, object]]) -> None:
    json.dump(rows, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _outcome_to_dict(outcome: UpdateOutcome) -> dict[str, object]:
    """Serialise an aggregation outcome to a plain dict."""
    row: dict[str, object] = {
        "key": str(outcome.key),
        "listed_name": outcome.listed_name,
    }
    if isinstance(outcome, PriceUpdated):
        row.update(
            status="updated",
            price=outcome.price,
            rows_affected=outcome.rows_affected,
        )
    elif isinstance(outcome, PriceNotFound):
        row["status"] = "not_found"
    else:
        row.update(status="failed", error=str(outcome.error))
    return row


def _print_matches(results: list[MatchResult]) -> None:
    """Render reconcile results as a Rich table on stdout."""
    table = Table(
        title="Reconcile Results",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Listed name", max_width=50)
    table.add_column("Vendor", justify="right")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Product", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Action", style="magenta")

    for idx, r in enumerate(results, 1):
        table.add_row(
            str(idx),
            r.normalized_name[:50],
            str(r.vendor_id),
            f"{r.price:,.2f}",
            str(r.product_id),
            f"{r.match_score:.2f}",
            "created" if r.created else "merged",
        )

    Console().print(table)


def _print_outcomes(outcomes: list[UpdateOutcome]) -> None:
    """Render price aggregation outcomes as a Rich table on stdout."""
    table = Table(
        title="Lowest Price Updates",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Group", max_width=50)
    table.add_column("Status")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Notes", style="dim")

    for o in outcomes:
        if isinstance(o, PriceUpdated):
            table.add_row(
                str(o.key),
                "[green]updated[/green]",
                f"{o.price:,.2f}",
                f"{o.rows_affected} row(s)",
            )
        elif isinstance(o, PriceNotFound):
            table.add_row(
                str(o.key), "[yellow]not found[/yellow]", "—", "",
            )
        else:
            table.add_row(
                str(o.key), "[red]failed[/red]", "—", str(o.error),
            )

    Console().print(table)


def _print_products(products: list[CanonicalProduct]) -> None:
    table = Table(title="Canonical Products", title_style="bold cyan")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name")
    for p in products:
        table.add_row(str(p.id), p.name)
    Console().print(table)


def _print_listings(listings: list[ListingLink]) -> None:
    table = Table(title="Listing Links", title_style="bold cyan")
    table.add_column("Product", justify="right")
    table.add_column("Vendor", justify="right")
    table.add_column("Listed name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Score", justify="right")
    table.add_column("Link", overflow="fold", style="dim")
    for link in listings:
        table.add_row(
            str(link.product_id),
            str(link.vendor_id),
            link.listed_name,
            f"{link.price:,.2f}",
            f"{link.match_score:.2f}",
            link.link,
        )
    Console().print(table)


async def run_reconcile(
    filepath: str,
    threshold: float | None,
    output_format: str,
    save: bool,
) -> int:
    """Reconcile a JSON batch of listings; return an exit code."""
    path = Path(filepath)
    try:
        listings = load_listings(path)
    except (OSError, ValueError) as exc:
        _err.print(f"[red]Cannot read {path}: {exc}[/red]")
        return 1

    reconciler = CatalogReconciler(threshold=threshold)
    _err.print(
        f"[bold]Reconciling:[/bold] {len(listings)} listings  "
        f"[dim]threshold={reconciler.threshold:.2f}[/dim]"
    )

    try:
        report = await reconciler.reconcile(listings)
    except CatalogError as exc:
        logger.error("Reconcile of %s aborted: %s", path, exc, exc_info=True)
        _err.print(f"[red]Reconcile aborted: {exc}[/red]")
        return 1

    for skip in report.skipped:
        _err.print(
            f"[yellow]Skipped #{skip.index} "
            f"{skip.listed_name!r}: {skip.reason}[/yellow]"
        )
    _err.print(
        f"[green]✓ {len(report.results)} listings "
        f"({report.merged_count} merged, "
        f"{report.created_count} created)[/green]"
    )

    if save:
        saved = save_report(report.results, path.stem)
        _err.print(f"[dim]Saved report → {saved}[/dim]")

    if output_format == "table":
        _print_matches(report.results)
    else:
        _dump_json([asdict(r) for r in report.results])
    return 0


async def run_aggregate(filepath: str, output_format: str) -> int:
    """Apply lowest prices from a JSON batch; return an exit code.

    Returns 1 when any group failed; not-found groups are reported
    but do not fail the run.
    """
    path = Path(filepath)
    try:
        observations = load_price_observations(path)
    except (OSError, ValueError) as exc:
        _err.print(f"[red]Cannot read {path}: {exc}[/red]")
        return 1

    aggregator = PriceAggregator()
    outcomes = await aggregator.aggregate_minimum_prices(observations)

    if output_format == "table":
        _print_outcomes(outcomes)
    else:
        _dump_json([_outcome_to_dict(o) for o in outcomes])

    failed = [o for o in outcomes if isinstance(o, PriceUpdateFailed)]
    return 1 if failed else 0


def run_products(search: str | None) -> int:
    """List canonical products, optionally filtered by substring."""
    db = CatalogDB()
    products = (
        db.search_products(search)
        if search
        else db.get_canonical_products()
    )
    if not products:
        _err.print("[yellow]No products found.[/yellow]")
        return 1
    _print_products(products)
    return 0


def run_listings(
    product_id: int | None, vendor_id: int | None,
) -> int:
    """Show all listing links, or the one for a product/vendor pair."""
    db = CatalogDB()
    if product_id is not None and vendor_id is not None:
        found = db.get_listing(product_id, vendor_id)
        if found is None:
            _err.print(
                f"[yellow]No listing for product {product_id} "
                f"and vendor {vendor_id}.[/yellow]"
            )
            return 1
        listings = [found]
    else:
        listings = db.get_all_listings()

    if not listings:
        _err.print("[yellow]No listings stored.[/yellow]")
        return 1
    _print_listings(listings)
    return 0


def run_update_listing(
    product_id: int,
    vendor_id: int,
    price: float,
    image: str,
    link: str,
) -> int:
    """Replace price, image and link on one product/vendor listing."""
    try:
        ListingValidator.check_price(f"{product_id}/{vendor_id}", price)
    except ValidationFailure as exc:
        _err.print(f"[red]Listing not updated: {exc.reason}[/red]")
        return 1

    db = CatalogDB()
    if not db.update_listing(product_id, vendor_id, price, image, link):
        _err.print(
            f"[yellow]No listing for product {product_id} "
            f"and vendor {vendor_id}.[/yellow]"
        )
        return 1
    _err.print("[green]✓ Listing updated[/green]")
    return 0


def run_remove_listing(product_id: int, vendor_id: int) -> int:
    """Delete a product/vendor listing."""
    db = CatalogDB()
    removed = db.remove_listing(product_id, vendor_id)
    if not removed:
        _err.print(
            f"[yellow]No listing for product {product_id} "
            f"and vendor {vendor_id}.[/yellow]"
        )
        return 1
    _err.print(f"[green]✓ Removed {removed} listing(s)[/green]")
    return 0
