"""
Comparison Grouper & Ranker

Builds side-by-side price comparisons across vendors:
1. Fetch filtered listings with their vendor joined; skip listings whose
   vendor no longer exists
2. Annotate each listing with the distance to the user (km, 2 decimals)
3. Rank the flat listing set by the requested strategy
4. Bucket listings by canonical key (lowercased name, category, type)
5. Order buckets by how many vendor entries they hold

Grouping keeps the relative order from step 3, so the ranking also holds
inside every group. Groups are rebuilt on each request and never stored.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from geo import GeoLocation
from listing_query import apply_listing_filters, describe_filters
from models import ItemListing, Vendor
from schemas import ListingFilters, SortBy

logger = logging.getLogger(__name__)

CanonicalKey = Tuple[str, str, str]


@dataclass
class ComparisonEntry:
    """One vendor's listing inside a comparison group"""
    listing_id: int
    name: str
    category: str
    type: str
    vendor: Dict
    price: Dict
    availability: Dict
    description: str
    tags: List[str]
    average_rating: float
    ratings_count: int
    added_by: Optional[int]
    updated_at: Optional[datetime]
    distance: Optional[float] = None

    @property
    def reference_price(self) -> float:
        """price.min, else price.max, else 0"""
        return self.price.get("min") or self.price.get("max") or 0

    @property
    def vendor_rating(self) -> float:
        return self.vendor.get("rating") or 0

    @property
    def canonical_key(self) -> CanonicalKey:
        return (self.name.lower(), self.category, self.type)

    def to_dict(self) -> Dict:
        return {
            "item_id": self.listing_id,
            "vendor": self.vendor,
            "price": self.price,
            "availability": self.availability,
            "description": self.description,
            "tags": self.tags,
            "average_rating": round(self.average_rating, 2),
            "ratings_count": self.ratings_count,
            "added_by": self.added_by,
            "distance": self.distance,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class ComparisonGroup:
    """Listings from different vendors judged to be the same item"""
    item_name: str
    category: str
    type: str
    vendors: List[ComparisonEntry] = field(default_factory=list)

    @property
    def vendor_count(self) -> int:
        return len(self.vendors)

    def to_dict(self) -> Dict:
        return {
            "item_name": self.item_name,
            "category": self.category,
            "type": self.type,
            "vendors": [entry.to_dict() for entry in self.vendors],
        }


@dataclass
class ComparisonResult:
    """Final comparison response"""
    groups: List[ComparisonGroup]
    total_items: int
    total_unique_items: int
    search_criteria: Dict

    def to_dict(self) -> Dict:
        return {
            "results": [group.to_dict() for group in self.groups],
            "total_items": self.total_items,
            "total_unique_items": self.total_unique_items,
            "search_criteria": self.search_criteria,
        }


def fetch_listings_with_vendors(
    session: Session,
    filters: ListingFilters
) -> List[Tuple[ItemListing, Vendor]]:
    """
    Run the filtered listing query with each listing's vendor joined.

    Listings whose vendor has been deleted are dropped here, so every
    returned pair has a vendor.
    """
    query = (
        session.query(ItemListing, Vendor)
        .outerjoin(Vendor, Vendor.id == ItemListing.vendor_id)
        .options(selectinload(ItemListing.tag_rows))
    )
    query = apply_listing_filters(query, filters).order_by(ItemListing.id)

    rows = query.all()
    paired = [(listing, vendor) for listing, vendor in rows if vendor is not None]

    skipped = len(rows) - len(paired)
    if skipped:
        logger.debug(f"Skipped {skipped} listing(s) whose vendor no longer exists")

    return paired


def build_entry(
    listing: ItemListing,
    vendor: Vendor,
    user_location: Optional[GeoLocation] = None
) -> ComparisonEntry:
    """Snapshot a listing/vendor pair, with distance when a user location is known."""
    distance = None
    if user_location is not None:
        vendor_location = GeoLocation.from_coordinates(vendor.coordinates)
        if vendor_location is not None:
            distance = round(user_location.distance_to(vendor_location), 2)

    return ComparisonEntry(
        listing_id=listing.id,
        name=listing.name,
        category=listing.category,
        type=listing.type,
        vendor=vendor.to_snapshot(),
        price=listing.price,
        availability=listing.availability,
        description=listing.description or "",
        tags=list(listing.tags),
        average_rating=float(listing.average_rating or 0),
        ratings_count=int(listing.total_ratings or 0),
        added_by=listing.created_by,
        updated_at=listing.updated_at,
        distance=distance,
    )


def sort_entries(entries: List[ComparisonEntry], sort_by: SortBy = SortBy.PRICE) -> List[ComparisonEntry]:
    """
    Rank entries by strategy. The sort is stable: ties keep their input order.

    - price: reference price ascending
    - distance: ascending, entries without a distance last
    - rating: vendor rating descending
    - vendorRating: listing average rating descending
    """
    if sort_by == SortBy.DISTANCE:
        return sorted(entries, key=lambda e: (e.distance is None, e.distance or 0.0))
    if sort_by == SortBy.RATING:
        return sorted(entries, key=lambda e: e.vendor_rating, reverse=True)
    if sort_by == SortBy.VENDOR_RATING:
        return sorted(entries, key=lambda e: e.average_rating or 0, reverse=True)
    return sorted(entries, key=lambda e: e.reference_price)


def group_entries(entries: List[ComparisonEntry]) -> List[ComparisonGroup]:
    """
    Bucket entries by canonical key, then order buckets by vendor count.

    Entries keep their relative order within a bucket; buckets with equal
    vendor counts keep first-seen order.
    """
    groups: Dict[CanonicalKey, ComparisonGroup] = {}
    first_seen: Dict[CanonicalKey, int] = {}

    for entry in entries:
        key = entry.canonical_key
        if key not in groups:
            groups[key] = ComparisonGroup(
                item_name=entry.name,
                category=entry.category,
                type=entry.type,
            )
            first_seen[key] = len(first_seen)
        groups[key].vendors.append(entry)

    ordered_keys = sorted(groups, key=lambda k: (-groups[k].vendor_count, first_seen[k]))
    return [groups[k] for k in ordered_keys]


def compare_prices(
    session: Session,
    filters: ListingFilters,
    sort_by: SortBy = SortBy.PRICE,
    user_location: Optional[GeoLocation] = None
) -> ComparisonResult:
    """
    Search listings and build ranked comparison groups.

    Args:
        session: SQLAlchemy database session
        filters: Listing filters
        sort_by: Ranking strategy applied before grouping
        user_location: Where the user is; enables distance annotation

    Returns:
        ComparisonResult with ordered groups and totals
    """
    rows = fetch_listings_with_vendors(session, filters)
    entries = [build_entry(listing, vendor, user_location) for listing, vendor in rows]
    entries = sort_entries(entries, sort_by)
    groups = group_entries(entries)

    criteria = describe_filters(filters)
    criteria["sort_by"] = sort_by.value
    if user_location is not None:
        criteria["user_location"] = [user_location.longitude, user_location.latitude]

    logger.info(
        f"Comparison search: {len(entries)} listings in {len(groups)} groups "
        f"(sort={sort_by.value}, filters={describe_filters(filters)})"
    )

    return ComparisonResult(
        groups=groups,
        total_items=len(entries),
        total_unique_items=len(groups),
        search_criteria=criteria,
    )
