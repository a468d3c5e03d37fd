"""
Listing Query Builder

Turns ListingFilters into SQLAlchemy criteria against the item_listings table.

Matching rules:
- name: case-insensitive substring of the listing name OR of any of its tags
- category / type / price_unit: exact equality
- in_stock_only: availability.in_stock must be true
- min_price / max_price: inclusive-OR across the stored bounds. A listing
  satisfies min_price when EITHER price_min >= min_price OR
  price_max >= min_price (and symmetrically for max_price with <=). A
  listing with a single known bound can therefore match a range query.
"""

from typing import Dict, List

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query

from models import ItemListing, ListingTag
from schemas import ListingFilters


def _contains_ci(column, text: str):
    """Case-insensitive literal substring match (LIKE wildcards escaped)"""
    return column.icontains(text, autoescape=True)


def build_listing_criteria(filters: ListingFilters) -> List:
    """
    Build the WHERE criteria for a filter set.

    Args:
        filters: Listing filters; every field is optional

    Returns:
        List of SQLAlchemy boolean clauses (empty list = match everything)
    """
    criteria = []

    if filters.name:
        criteria.append(or_(
            _contains_ci(ItemListing.name, filters.name),
            ItemListing.tag_rows.any(_contains_ci(ListingTag.tag, filters.name)),
        ))

    if filters.category:
        criteria.append(ItemListing.category == filters.category)

    if filters.type:
        criteria.append(ItemListing.type == filters.type)

    if filters.in_stock_only:
        criteria.append(ItemListing.in_stock.is_(True))

    if filters.min_price is not None:
        criteria.append(or_(
            ItemListing.price_min >= filters.min_price,
            ItemListing.price_max >= filters.min_price,
        ))

    if filters.max_price is not None:
        criteria.append(or_(
            ItemListing.price_min <= filters.max_price,
            ItemListing.price_max <= filters.max_price,
        ))

    if filters.price_unit:
        criteria.append(ItemListing.unit == filters.price_unit)

    return criteria


def apply_listing_filters(query: Query, filters: ListingFilters) -> Query:
    """Apply filter criteria to a query selecting ItemListing."""
    criteria = build_listing_criteria(filters)
    if criteria:
        query = query.filter(and_(*criteria))
    return query


def describe_filters(filters: ListingFilters) -> Dict:
    """Compact, log-friendly view of the active filters"""
    return filters.model_dump(exclude_none=True, exclude_defaults=True)
