# src/filters/listing_validator.py

"""Listing validation: drop malformed listings before matching."""

import logging
import math
from typing import TypeVar

from src.matching.normalizer import normalize
from src.models.errors import ValidationFailure
from src.models.price_outcome import PriceObservation
from src.models.product import IncomingListing, SkippedListing

logger = logging.getLogger("catalog_recon.filters")

ListingT = TypeVar("ListingT", IncomingListing, PriceObservation)


class ListingValidator:
    """Validate listings and report the ones that cannot be processed."""

    @staticmethod
    def check(listing: IncomingListing | PriceObservation) -> None:
        """Raise :class:`ValidationFailure` if *listing* is malformed."""
        name = listing.listed_name
        if not isinstance(name, str) or not name.strip():
            raise ValidationFailure(str(name), "missing listed name")
        if not normalize(name):
            raise ValidationFailure(
                name, "listed name is only marketing qualifiers"
            )

        vendor_id = listing.vendor_id
        if isinstance(vendor_id, bool) or not isinstance(vendor_id, int):
            raise ValidationFailure(name, "missing or invalid vendor id")

        ListingValidator.check_price(name, listing.price)

    @staticmethod
    def check_price(listed_name: str, price: object) -> None:
        """Raise :class:`ValidationFailure` unless *price* is a positive number."""
        if (
            isinstance(price, bool)
            or not isinstance(price, (int, float))
            or not math.isfinite(price)
        ):
            raise ValidationFailure(listed_name, "price is not a number")
        if price <= 0:
            raise ValidationFailure(listed_name, "zero or negative price")

    @staticmethod
    def validate(
        listings: list[ListingT],
    ) -> tuple[list[ListingT], list[SkippedListing]]:
        """Split listings into valid ones and reported skips.

        Skips keep the index of the listing in the input batch.
        """
        valid: list[ListingT] = []
        skipped: list[SkippedListing] = []

        for index, listing in enumerate(listings):
            try:
                ListingValidator.check(listing)
            except ValidationFailure as exc:
                logger.debug(
                    "Skipped listing #%d (vendor=%s): %s",
                    index,
                    listing.vendor_id,
                    exc,
                )
                skipped.append(SkippedListing(
                    index=index,
                    listed_name=exc.listed_name,
                    reason=exc.reason,
                ))
                continue
            valid.append(listing)

        if skipped:
            logger.info(
                "Validation skipped %d invalid listings",
                len(skipped),
            )

        return valid, skipped
