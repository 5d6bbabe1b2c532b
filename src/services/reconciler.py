# src/services/reconciler.py

"""Reconciles incoming vendor listings against the canonical catalog."""

import asyncio
import logging
from dataclasses import dataclass, field

from src.config.settings import Settings
from src.filters.listing_validator import ListingValidator
from src.matching.matcher import find_best_matches
from src.models.product import (
    IncomingListing,
    ListingLink,
    MatchResult,
    SkippedListing,
)
from src.storage.catalog_db import CatalogDB

logger = logging.getLogger("catalog_recon.reconciler")


@dataclass
class ReconcileReport:
    """Outcome of one reconcile batch.

    ``results`` follows the order of the valid input listings;
    ``skipped`` records the listings validation excluded.
    """

    results: list[MatchResult] = field(
        default_factory=lambda: list[MatchResult]()
    )
    skipped: list[SkippedListing] = field(
        default_factory=lambda: list[SkippedListing]()
    )

    @property
    def created_count(self) -> int:
        return sum(1 for r in self.results if r.created)

    @property
    def merged_count(self) -> int:
        return len(self.results) - self.created_count


class CatalogReconciler:
    """Applies the merge-vs-create policy and persists listing links.

    A listing merges into its best catalog match only when the match
    score is strictly greater than *threshold*; a score equal to the
    threshold creates a new product.
    """

    def __init__(
        self,
        db: CatalogDB | None = None,
        threshold: float | None = None,
    ) -> None:
        self._db = db or CatalogDB()
        self.threshold = (
            Settings.MATCH_THRESHOLD if threshold is None else threshold
        )

    def should_merge(self, match: MatchResult) -> bool:
        """True when *match* is good enough to reuse its catalog product."""
        return (
            match.matched_product_id is not None
            and match.match_score > self.threshold
        )

    def _persist(self, match: MatchResult) -> None:
        """Resolve the product id for *match* and write its link row."""
        if self.should_merge(match):
            match.product_id = match.matched_product_id
        else:
            match.product_id = self._db.insert_canonical_product(
                match.normalized_name
            )
            match.created = True

        self._db.insert_listing_link(ListingLink(
            product_id=match.product_id,
            vendor_id=match.vendor_id,
            price=match.price,
            image=match.image,
            link=match.link,
            match_score=match.match_score,
            listed_name=match.normalized_name,
        ))
        logger.debug(
            "%s '%s' (vendor=%d) -> product %d (score=%.2f)",
            "Created" if match.created else "Merged",
            match.normalized_name,
            match.vendor_id,
            match.product_id,
            match.match_score,
        )

    async def reconcile(
        self, incoming: list[IncomingListing],
    ) -> ReconcileReport:
        """Match a batch against the catalog and persist the outcome.

        The catalog is loaded once. Listings are then persisted in input
        order; the first storage error aborts the rest of the batch and
        propagates. Rows written before the failure are kept, so callers
        retrying a failed batch must tolerate duplicates.
        """
        valid, skipped = ListingValidator.validate(incoming)
        report = ReconcileReport(skipped=skipped)
        if not valid:
            return report

        catalog = await asyncio.to_thread(
            self._db.get_canonical_products
        )
        matches = find_best_matches(valid, catalog)

        for match in matches:
            try:
                await asyncio.to_thread(self._persist, match)
            except Exception:
                logger.error(
                    "Reconcile aborted at '%s' (vendor=%d) after %d of "
                    "%d listings",
                    match.normalized_name,
                    match.vendor_id,
                    len(report.results),
                    len(matches),
                    exc_info=True,
                )
                raise
            report.results.append(match)

        logger.info(
            "Reconciled %d listings: %d merged, %d created, %d skipped",
            len(report.results),
            report.merged_count,
            report.created_count,
            len(report.skipped),
        )
        return report
