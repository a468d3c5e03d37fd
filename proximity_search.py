"""
Proximity Search - paginated listing browse, optionally around a point

Uses the same filters as comparison search, plus an optional radius around
(lat, lng) in meters measured to the vendor's stored coordinates.

Geo flow:
1. SQL prefilter on a lat/lng bounding box around the point
2. Exact haversine check against the radius
3. Page through the matches in the caller's sort order

Without a point the page is taken directly in SQL (OFFSET/LIMIT + COUNT).
Listings whose vendor is missing never appear.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from config import DEFAULT_PAGE_SIZE
from geo import haversine_km
from listing_query import apply_listing_filters, describe_filters
from models import ItemListing, Vendor
from schemas import GeoQuery, ListingFilters

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": ItemListing.name,
    "price": func.coalesce(ItemListing.price_min, ItemListing.price_max),
    "category": ItemListing.category,
    "average_rating": ItemListing.average_rating,
    "created_at": ItemListing.created_at,
    "updated_at": ItemListing.updated_at,
}


@dataclass
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_prev_page: bool

    def to_dict(self) -> Dict:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_items": self.total_items,
            "has_next_page": self.has_next_page,
            "has_prev_page": self.has_prev_page,
        }


@dataclass
class ProximityPage:
    items: List[Dict]
    pagination: Pagination

    def to_dict(self) -> Dict:
        return {"items": self.items, "pagination": self.pagination.to_dict()}


def build_pagination(page: int, limit: int, total_items: int) -> Pagination:
    """Pagination block for 1-indexed pages"""
    return Pagination(
        current_page=page,
        total_pages=math.ceil(total_items / limit) if limit else 0,
        total_items=total_items,
        has_next_page=page * limit < total_items,
        has_prev_page=page > 1,
    )


def listing_summary(listing: ItemListing, vendor: Vendor, distance_km: Optional[float] = None) -> Dict:
    """Listing as returned by browse results"""
    summary = {
        "id": listing.id,
        "name": listing.name,
        "category": listing.category,
        "type": listing.type,
        "description": listing.description or "",
        "price": listing.price,
        "formatted_price": listing.formatted_price,
        "availability": listing.availability,
        "tags": list(listing.tags),
        "average_rating": round(float(listing.average_rating or 0), 2),
        "total_ratings": int(listing.total_ratings or 0),
        "added_by": listing.created_by,
        "vendor": {
            "id": vendor.id,
            "name": vendor.name,
            "address": vendor.to_snapshot()["address"],
        },
        "created_at": listing.created_at.isoformat() if listing.created_at else None,
        "updated_at": listing.updated_at.isoformat() if listing.updated_at else None,
    }
    if distance_km is not None:
        summary["distance"] = round(distance_km, 2)
    return summary


def search_nearby(
    session: Session,
    filters: ListingFilters,
    geo: Optional[GeoQuery] = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE
) -> ProximityPage:
    """
    Paginated listing search, optionally restricted to a radius.

    Args:
        session: SQLAlchemy database session
        filters: Listing filters
        geo: Point and radius (meters); None browses everywhere
        sort_by: One of SORT_COLUMNS
        sort_order: 'asc' or 'desc'
        page: 1-indexed page number
        limit: Page size

    Returns:
        ProximityPage with items and pagination
    """
    sort_column = SORT_COLUMNS[sort_by]
    ordering = sort_column.desc() if sort_order == "desc" else sort_column.asc()

    query = (
        session.query(ItemListing, Vendor)
        .join(Vendor, Vendor.id == ItemListing.vendor_id)
        .options(selectinload(ItemListing.tag_rows))
    )
    query = apply_listing_filters(query, filters).order_by(ordering, ItemListing.id)

    offset = (page - 1) * limit

    if geo is None:
        total_items = query.count()
        rows = query.offset(offset).limit(limit).all()
        items = [listing_summary(listing, vendor) for listing, vendor in rows]
    else:
        origin = geo.location
        min_lat, max_lat, min_lon, max_lon = origin.bounding_box(geo.radius_km)

        query = query.filter(
            Vendor.latitude.isnot(None),
            Vendor.longitude.isnot(None),
            Vendor.latitude.between(min_lat, max_lat),
        )
        # Boxes crossing the antimeridian skip the longitude prefilter
        if min_lon >= -180 and max_lon <= 180:
            query = query.filter(Vendor.longitude.between(min_lon, max_lon))

        matches = []
        for listing, vendor in query.all():
            distance_km = haversine_km(origin.latitude, origin.longitude, vendor.latitude, vendor.longitude)
            if distance_km * 1000 <= geo.max_distance:
                matches.append((listing, vendor, distance_km))

        total_items = len(matches)
        items = [
            listing_summary(listing, vendor, distance_km)
            for listing, vendor, distance_km in matches[offset:offset + limit]
        ]

    pagination = build_pagination(page, limit, total_items)

    logger.info(
        f"Proximity search: page {page}/{pagination.total_pages}, {total_items} total "
        f"(geo={'yes' if geo else 'no'}, filters={describe_filters(filters)})"
    )

    return ProximityPage(items=items, pagination=pagination)
