"""
Price Comparison Engine - entry point for all read operations

Operations:
- search: cross-vendor comparison groups for filtered listings
- stats: price statistics for a named item
- popular: items ranked by vendor coverage
- proximity_search: paginated browse, optionally within a radius
- category_counts: listing count per category

Every operation is read-only and rebuilt from the store on each call.
Database failures are logged with the operation and its query shape and
re-raised as StoreQueryError; nothing is retried here.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from comparison import ComparisonResult, compare_prices
from config import DEFAULT_PAGE_SIZE, DEFAULT_POPULAR_LIMIT
from errors import InvalidQueryError, StoreQueryError
from geo import GeoLocation
from popularity import PopularItem, get_category_counts, get_popular_items
from price_stats import PriceStats, compute_price_stats
from proximity_search import ProximityPage, SORT_COLUMNS, search_nearby
from schemas import GeoQuery, ListingFilters, SortBy

logger = logging.getLogger(__name__)


class PriceComparisonEngine:
    """Read-only price comparison over the vendor and listing store"""

    def __init__(self, db_session: Session):
        """
        Initialize the engine.

        Args:
            db_session: SQLAlchemy database session, owned by the caller
        """
        self.db_session = db_session

    @contextmanager
    def _store_read(self, operation: str, query_shape: Dict) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"✗ {operation} failed: {e} (query={query_shape})")
            self.db_session.rollback()
            raise StoreQueryError(f"Store query failed during {operation}") from e

    def search(
        self,
        filters: Optional[ListingFilters] = None,
        sort_by: Union[SortBy, str] = SortBy.PRICE,
        user_location: Optional[GeoLocation] = None
    ) -> ComparisonResult:
        """
        Compare prices across vendors.

        Args:
            filters: Listing filters (None = all listings)
            sort_by: 'price', 'distance', 'rating' or 'vendorRating'
            user_location: Enables distance annotation and distance ranking

        Returns:
            ComparisonResult with groups ordered by vendor count

        Raises:
            InvalidQueryError: If sort_by is unknown
            StoreQueryError: If the store read fails
        """
        filters = filters or ListingFilters()
        try:
            sort_by = SortBy(sort_by)
        except ValueError:
            raise InvalidQueryError(f"Unknown sort strategy: {sort_by!r}")

        with self._store_read("comparison search", filters.model_dump(exclude_none=True)):
            return compare_prices(self.db_session, filters, sort_by, user_location)

    def stats(
        self,
        name: Optional[str],
        category: Optional[str] = None,
        item_type: Optional[str] = None
    ) -> PriceStats:
        """
        Price statistics for listings whose name contains `name`.

        Raises:
            InvalidQueryError: If name is missing
            ItemNotFoundError: If nothing matches
            StoreQueryError: If the store read fails
        """
        shape = {"name": name, "category": category, "type": item_type}
        with self._store_read("price stats", shape):
            return compute_price_stats(self.db_session, name, category, item_type)

    def popular(
        self,
        item_type: Optional[str] = None,
        limit: int = DEFAULT_POPULAR_LIMIT
    ) -> List[PopularItem]:
        """Items ranked by distinct vendor count."""
        if limit < 1:
            raise InvalidQueryError("limit must be at least 1")

        with self._store_read("popular items", {"type": item_type, "limit": limit}):
            return get_popular_items(self.db_session, item_type, limit)

    def proximity_search(
        self,
        filters: Optional[ListingFilters] = None,
        geo: Optional[GeoQuery] = None,
        sort_by: str = "name",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> ProximityPage:
        """
        Paginated listing browse, optionally within geo.max_distance meters.

        Raises:
            InvalidQueryError: On unknown sort field/order or bad page/limit
            StoreQueryError: If the store read fails
        """
        filters = filters or ListingFilters()
        if sort_by not in SORT_COLUMNS:
            raise InvalidQueryError(f"Unknown sort field: {sort_by!r}")
        if sort_order not in ("asc", "desc"):
            raise InvalidQueryError(f"Unknown sort order: {sort_order!r}")
        if page < 1 or limit < 1:
            raise InvalidQueryError("page and limit must be at least 1")

        shape = {
            "filters": filters.model_dump(exclude_none=True),
            "geo": geo.model_dump() if geo else None,
            "sort": f"{sort_by} {sort_order}",
            "page": page,
            "limit": limit,
        }
        with self._store_read("proximity search", shape):
            return search_nearby(self.db_session, filters, geo, sort_by, sort_order, page, limit)

    def category_counts(
        self,
        item_type: Optional[str] = None,
        vendor_id: Optional[int] = None
    ) -> List[Dict]:
        """Listing count per category."""
        with self._store_read("category counts", {"type": item_type, "vendor_id": vendor_id}):
            return get_category_counts(self.db_session, item_type, vendor_id)
