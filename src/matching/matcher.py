# src/matching/matcher.py

"""Best-match search of incoming listings against the canonical catalog."""

import logging

from src.config.settings import Settings
from src.matching.normalizer import normalize
from src.matching.scorer import bigram_profile, score_profiles
from src.models.product import (
    CanonicalProduct,
    IncomingListing,
    MatchResult,
)

logger = logging.getLogger("catalog_recon.matching")


def find_best_matches(
    incoming: list[IncomingListing],
    catalog: list[CanonicalProduct],
) -> list[MatchResult]:
    """Find the best-scoring catalog entry for each incoming listing.

    Results keep the input order. The highest score wins and the
    first-seen entry wins exact ties; a score of zero never counts as a
    match. Winning scores are rounded to ``Settings.SCORE_PRECISION``.
    """
    # Catalog names are already normalised; profile them once per call
    catalog_profiles = [
        (product.id, bigram_profile(product.name))
        for product in catalog
    ]

    results: list[MatchResult] = []
    for listing in incoming:
        name = normalize(listing.listed_name)
        profile = bigram_profile(name)

        best_id: int | None = None
        best_score = 0.0
        for product_id, product_profile in catalog_profiles:
            current = score_profiles(profile, product_profile)
            if current > best_score:
                best_id = product_id
                best_score = current

        results.append(MatchResult(
            listed_name=listing.listed_name,
            normalized_name=name,
            vendor_id=listing.vendor_id,
            price=listing.price,
            image=listing.image,
            link=listing.link,
            matched_product_id=best_id,
            match_score=round(best_score, Settings.SCORE_PRECISION),
        ))

    logger.debug(
        "Matched %d listings against %d catalog products",
        len(results),
        len(catalog),
    )
    return results
