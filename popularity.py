"""
Popularity Aggregator

Ranks distinct items by coverage: how many different vendors offer them.
Items stocked by many vendors give the most comparison-shopping value, so
the ranking is by distinct vendor count rather than raw listing count.

Aggregation runs in the database:
- group key: (lower(name), category, type)
- count: number of listings in the group
- avg_price: mean per-listing price, where a listing's price is the
  midpoint of its range when both bounds exist, else whichever bound exists;
  listings without any price are ignored (SQL AVG skips NULL)
- vendor_count: number of distinct vendors in the group
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import and_, case, distinct, func
from sqlalchemy.orm import Session

from config import DEFAULT_POPULAR_LIMIT
from models import ItemListing

logger = logging.getLogger(__name__)


@dataclass
class PopularItem:
    """Coverage summary for one distinct item"""
    name: str
    category: str
    type: str
    count: int
    avg_price: Optional[float]
    vendor_count: int

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "category": self.category,
            "type": self.type,
            "count": self.count,
            "avg_price": self.avg_price,
            "vendor_count": self.vendor_count,
        }


def listing_price_expression():
    """Per-listing price: range midpoint, else the single known bound, else NULL"""
    return case(
        (
            and_(ItemListing.price_min.isnot(None), ItemListing.price_max.isnot(None)),
            (ItemListing.price_min + ItemListing.price_max) / 2.0,
        ),
        else_=func.coalesce(ItemListing.price_min, ItemListing.price_max),
    )


def get_popular_items(
    session: Session,
    item_type: Optional[str] = None,
    limit: int = DEFAULT_POPULAR_LIMIT
) -> List[PopularItem]:
    """
    Most widely stocked items, ranked by distinct vendor count.

    Args:
        session: SQLAlchemy database session
        item_type: Restrict to 'ingredient' or 'material'
        limit: Maximum number of items returned

    Returns:
        PopularItem list, vendor_count descending (ties: listing count
        descending, then name)
    """
    name_key = func.lower(ItemListing.name)

    name_col = name_key.label("name")
    count_col = func.count(ItemListing.id).label("listing_count")
    avg_price_col = func.avg(listing_price_expression()).label("avg_price")
    vendor_count_col = func.count(distinct(ItemListing.vendor_id)).label("vendor_count")

    query = session.query(
        name_col,
        ItemListing.category,
        ItemListing.type,
        count_col,
        avg_price_col,
        vendor_count_col,
    )
    if item_type:
        query = query.filter(ItemListing.type == item_type)

    rows = (
        query.group_by(name_key, ItemListing.category, ItemListing.type)
        .order_by(vendor_count_col.desc(), count_col.desc(), name_col)
        .limit(limit)
        .all()
    )

    items = [
        PopularItem(
            name=row.name,
            category=row.category,
            type=row.type,
            count=int(row.listing_count),
            avg_price=round(float(row.avg_price), 2) if row.avg_price is not None else None,
            vendor_count=int(row.vendor_count),
        )
        for row in rows
    ]

    logger.info(f"Popular items: {len(items)} returned (type={item_type or 'all'}, limit={limit})")
    return items


def get_category_counts(
    session: Session,
    item_type: Optional[str] = None,
    vendor_id: Optional[int] = None
) -> List[Dict]:
    """Listing count per category, largest first."""
    count_col = func.count(ItemListing.id).label("listing_count")

    query = session.query(ItemListing.category, count_col)
    if item_type:
        query = query.filter(ItemListing.type == item_type)
    if vendor_id is not None:
        query = query.filter(ItemListing.vendor_id == vendor_id)

    rows = (
        query.group_by(ItemListing.category)
        .order_by(count_col.desc(), ItemListing.category)
        .all()
    )
    return [{"category": row.category, "count": int(row.listing_count)} for row in rows]
