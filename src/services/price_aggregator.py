# src/services/price_aggregator.py

"""Collapses variant listings to the lowest price per name and vendor."""

import asyncio
import logging
from dataclasses import dataclass

from src.config.settings import Settings
from src.filters.listing_validator import ListingValidator
from src.matching.normalizer import group_key, normalize
from src.models.errors import ValidationFailure
from src.models.price_outcome import (
    GroupKey,
    PriceNotFound,
    PriceObservation,
    PriceUpdated,
    PriceUpdateFailed,
    UpdateOutcome,
)
from src.storage.catalog_db import CatalogDB

logger = logging.getLogger("catalog_recon.prices")


@dataclass
class CheapestPrice:
    """Lowest-priced observation seen so far for one group."""

    listed_name: str
    price: float


def group_minimum_prices(
    observations: list[PriceObservation],
) -> dict[GroupKey, CheapestPrice]:
    """Keep the cheapest observation per group, in first-seen order.

    On equal prices the first observation is kept.
    """
    groups: dict[GroupKey, CheapestPrice] = {}
    for obs in observations:
        key = group_key(obs.listed_name, obs.vendor_id)
        current = groups.get(key)
        if current is None or obs.price < current.price:
            groups[key] = CheapestPrice(obs.listed_name, obs.price)
    return groups


class PriceAggregator:
    """Writes the minimum observed price onto stored listing links.

    Groups are updated concurrently and settle independently: a missing
    row or a storage error in one group never stops the others.
    """

    def __init__(
        self,
        db: CatalogDB | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self._db = db or CatalogDB()
        self._max_concurrency = (
            max_concurrency or Settings.DB_POOL_SIZE
        )

    async def aggregate_minimum_prices(
        self, observations: list[PriceObservation],
    ) -> list[UpdateOutcome]:
        """Update each group's stored price to its minimum.

        Returns one outcome per group in first-seen order, followed by a
        :class:`PriceUpdateFailed` for every invalid observation.
        """
        valid, skipped = ListingValidator.validate(observations)
        groups = group_minimum_prices(valid)
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def update_one(key: GroupKey, cheapest: CheapestPrice) -> int:
            async with semaphore:
                return await asyncio.to_thread(
                    self._db.update_listing_price,
                    key.normalized_name,
                    key.vendor_id,
                    cheapest.price,
                )

        settled = await asyncio.gather(
            *(update_one(k, c) for k, c in groups.items()),
            return_exceptions=True,
        )

        outcomes: list[UpdateOutcome] = []
        for (key, cheapest), result in zip(groups.items(), settled):
            if isinstance(result, Exception):
                logger.error(
                    "Price update failed for %s: %s",
                    key,
                    result,
                    exc_info=result,
                )
                outcomes.append(PriceUpdateFailed(
                    key=key,
                    listed_name=cheapest.listed_name,
                    error=result,
                ))
            elif isinstance(result, BaseException):
                raise result
            elif result == 0:
                logger.info(
                    "No stored listing for %s, price not updated", key,
                )
                outcomes.append(PriceNotFound(
                    key=key, listed_name=cheapest.listed_name,
                ))
            else:
                logger.debug(
                    "Updated price for %s to %.2f (%d rows)",
                    key,
                    cheapest.price,
                    result,
                )
                outcomes.append(PriceUpdated(
                    key=key,
                    listed_name=cheapest.listed_name,
                    price=cheapest.price,
                    rows_affected=result,
                ))

        for skip in skipped:
            obs = observations[skip.index]
            outcomes.append(PriceUpdateFailed(
                key=GroupKey(
                    normalize(obs.listed_name)
                    if isinstance(obs.listed_name, str)
                    else "",
                    obs.vendor_id,
                ),
                listed_name=skip.listed_name,
                error=ValidationFailure(skip.listed_name, skip.reason),
            ))

        logger.info(
            "Aggregated %d observations into %d groups "
            "(%d updated, %d not found, %d failed)",
            len(observations),
            len(groups),
            sum(isinstance(o, PriceUpdated) for o in outcomes),
            sum(isinstance(o, PriceNotFound) for o in outcomes),
            sum(isinstance(o, PriceUpdateFailed) for o in outcomes),
        )
        return outcomes
