# src/models/product.py

"""Catalog data models shared by the matcher, storage and services."""

from dataclasses import dataclass


@dataclass
class CanonicalProduct:
    """A deduplicated, vendor-agnostic product. ``name`` is normalised."""

    id: int
    name: str


@dataclass
class IncomingListing:
    """A raw vendor listing waiting to be reconciled against the catalog."""

    listed_name: str
    vendor_id: int
    price: float
    image: str = ""
    link: str = ""


@dataclass
class ListingLink:
    """One vendor's offering of one canonical product, as persisted."""

    product_id: int
    vendor_id: int
    price: float
    listed_name: str
    match_score: float = 0.0
    image: str = ""
    link: str = ""
    id: int | None = None


@dataclass
class MatchResult:
    """Best catalog match for one incoming listing.

    ``product_id`` and ``created`` stay unset until the reconciler has
    resolved the merge-vs-create decision for this listing.
    """

    listed_name: str
    normalized_name: str
    vendor_id: int
    price: float
    image: str = ""
    link: str = ""
    matched_product_id: int | None = None
    match_score: float = 0.0
    product_id: int | None = None
    created: bool = False


@dataclass
class SkippedListing:
    """An input listing excluded from a batch by validation."""

    index: int
    listed_name: str
    reason: str
