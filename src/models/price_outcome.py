# src/models/price_outcome.py

"""Price aggregation inputs, keys and per-group outcomes."""

from dataclasses import dataclass
from typing import NamedTuple


@dataclass
class PriceObservation:
    """A single observed vendor price for a (possibly variant) listing."""

    listed_name: str
    vendor_id: int
    price: float


class GroupKey(NamedTuple):
    """Aggregation key: normalised listed name plus vendor id."""

    normalized_name: str
    vendor_id: int

    def __str__(self) -> str:
        return f"{self.normalized_name}-{self.vendor_id}"


@dataclass
class PriceUpdated:
    """The group's stored listing rows now carry the minimum price."""

    key: GroupKey
    listed_name: str
    price: float
    rows_affected: int


@dataclass
class PriceNotFound:
    """No stored listing matched the group's name and vendor."""

    key: GroupKey
    listed_name: str


@dataclass
class PriceUpdateFailed:
    """The group (or a single invalid observation) could not be applied."""

    key: GroupKey
    listed_name: str
    error: Exception


UpdateOutcome = PriceUpdated | PriceNotFound | PriceUpdateFailed
