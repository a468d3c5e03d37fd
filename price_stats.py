"""
Price statistics for a named item across vendors

Given an item name (substring match) and optional category/type, computes
min/max/average/median of the listings' reference prices, the most common
price units and availability counts.

Reference price = price_min, else price_max, else 0. Non-positive values
carry no price information and are excluded from the statistics.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from errors import InvalidQueryError, ItemNotFoundError
from models import ItemListing

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "piece"
TOP_UNITS = 5


@dataclass
class PriceSummary:
    min: float
    max: float
    average: float
    median: float

    def to_dict(self) -> Dict:
        return {
            "min": self.min,
            "max": self.max,
            "average": round(self.average, 2),
            "median": self.median,
        }


@dataclass
class PriceStats:
    """Price statistics for one item"""
    item_name: str
    category: str
    type: str
    vendor_count: int
    price_stats: Optional[PriceSummary]  # None when no listing carries a positive price
    common_units: List[Dict]
    availability_stats: Dict[str, int]

    def to_dict(self) -> Dict:
        return {
            "item_name": self.item_name,
            "category": self.category,
            "type": self.type,
            "vendor_count": self.vendor_count,
            "price_stats": self.price_stats.to_dict() if self.price_stats else None,
            "common_units": self.common_units,
            "availability_stats": self.availability_stats,
        }


def calculate_median(numbers: List[float]) -> float:
    """
    Median of a non-empty list: middle value, or mean of the two middle values.

    Raises:
        ValueError: If numbers is empty
    """
    if not numbers:
        raise ValueError("median of empty sequence")

    ordered = sorted(numbers)
    middle = len(ordered) // 2

    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def summarize_prices(prices: List[float]) -> Optional[PriceSummary]:
    """min/max/average/median over positive prices; None if there are none"""
    positive = [p for p in prices if p > 0]
    if not positive:
        return None

    return PriceSummary(
        min=min(positive),
        max=max(positive),
        average=sum(positive) / len(positive),
        median=calculate_median(positive),
    )


def common_units(listings: List[ItemListing], top: int = TOP_UNITS) -> List[Dict]:
    """Most frequent price units, ties in first-seen order"""
    counts = Counter(listing.unit or DEFAULT_UNIT for listing in listings)
    return [{"unit": unit, "count": count} for unit, count in counts.most_common(top)]


def availability_counts(listings: List[ItemListing]) -> Dict[str, int]:
    in_stock = sum(1 for listing in listings if listing.in_stock)
    return {
        "in_stock": in_stock,
        "out_of_stock": len(listings) - in_stock,
        "seasonal": sum(1 for listing in listings if listing.seasonal),
    }


def compute_price_stats(
    session: Session,
    name: Optional[str],
    category: Optional[str] = None,
    item_type: Optional[str] = None
) -> PriceStats:
    """
    Compute price statistics for listings matching an item name.

    Args:
        session: SQLAlchemy database session
        name: Item name, matched as a case-insensitive substring (required)
        category: Exact category filter
        item_type: Exact type filter ('ingredient' or 'material')

    Returns:
        PriceStats; price_stats is None when no listing has a positive price

    Raises:
        InvalidQueryError: If name is missing or blank
        ItemNotFoundError: If no listing matches
    """
    if not name or not name.strip():
        raise InvalidQueryError("Item name is required")
    name = name.strip()

    query = session.query(ItemListing).filter(ItemListing.name.icontains(name, autoescape=True))
    if category:
        query = query.filter(ItemListing.category == category)
    if item_type:
        query = query.filter(ItemListing.type == item_type)

    listings = query.order_by(ItemListing.id).all()

    if not listings:
        raise ItemNotFoundError(f"No items found matching '{name}'")

    summary = summarize_prices([listing.reference_price for listing in listings])
    if summary is None:
        logger.info(f"Price stats for '{name}': {len(listings)} listings, none with a price")

    return PriceStats(
        item_name=name,
        category=category or "all",
        type=item_type or "all",
        vendor_count=len(listings),
        price_stats=summary,
        common_units=common_units(listings),
        availability_stats=availability_counts(listings),
    )
