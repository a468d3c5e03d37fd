"""
Request schemas for the price comparison engine

Each request is an explicit pydantic model. Unknown keys are rejected so
typos in query parameters surface as errors instead of silently widening
a search. Query-string style camelCase names (inStockOnly, minPrice...) are
accepted as aliases of the snake_case fields.
"""

from enum import Enum
from typing import Any, Dict, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from config import DEFAULT_POPULAR_LIMIT, DEFAULT_PAGE_SIZE, DEFAULT_PROXIMITY_RADIUS_M, MAX_PAGE_SIZE
from errors import InvalidQueryError
from geo import GeoLocation, parse_user_location

RequestT = TypeVar("RequestT", bound=BaseModel)


class SortBy(str, Enum):
    """Ranking strategy for comparison search"""
    PRICE = "price"
    DISTANCE = "distance"
    RATING = "rating"
    VENDOR_RATING = "vendorRating"


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ListingFilters(_Request):
    """Filters shared by comparison search and proximity search"""
    name: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    in_stock_only: bool = Field(False, alias="inStockOnly")
    min_price: Optional[float] = Field(None, alias="minPrice")
    max_price: Optional[float] = Field(None, alias="maxPrice")
    price_unit: Optional[str] = Field(None, alias="priceUnit")

    @field_validator("name", "category", "type", "price_unit")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    def to_filters(self) -> "ListingFilters":
        """Plain ListingFilters view of a request that extends it"""
        return ListingFilters.model_validate(self.model_dump(include=set(ListingFilters.model_fields)))


class ComparisonSearchRequest(ListingFilters):
    sort_by: SortBy = Field(SortBy.PRICE, alias="sortBy")
    user_location: Optional[str] = Field(None, alias="userLocation")

    @field_validator("user_location")
    @classmethod
    def _check_location(cls, value: Optional[str]) -> Optional[str]:
        parse_user_location(value)
        return value

    @property
    def location(self) -> Optional[GeoLocation]:
        return parse_user_location(self.user_location)


class StatsRequest(_Request):
    name: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None


class PopularRequest(_Request):
    type: Optional[str] = None
    limit: int = Field(DEFAULT_POPULAR_LIMIT, ge=1, le=MAX_PAGE_SIZE)


class CategoryCountsRequest(_Request):
    type: Optional[str] = None
    vendor_id: Optional[int] = Field(None, alias="vendorId")


class GeoQuery(_Request):
    """Radius filter around a point; max_distance is in meters"""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    max_distance: float = Field(DEFAULT_PROXIMITY_RADIUS_M, gt=0, alias="maxDistance")

    @property
    def location(self) -> GeoLocation:
        return GeoLocation(latitude=self.lat, longitude=self.lng)

    @property
    def radius_km(self) -> float:
        return self.max_distance / 1000.0


ProximitySortField = Literal["name", "price", "category", "average_rating", "created_at", "updated_at"]


class ProximitySearchRequest(ListingFilters):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    max_distance: float = Field(DEFAULT_PROXIMITY_RADIUS_M, gt=0, alias="maxDistance")
    sort_by: ProximitySortField = Field("name", alias="sortBy")
    sort_order: Literal["asc", "desc"] = Field("asc", alias="sortOrder")
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @model_validator(mode="after")
    def _lat_lng_together(self):
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be given together")
        return self

    @property
    def geo(self) -> Optional[GeoQuery]:
        if self.lat is None:
            return None
        return GeoQuery(lat=self.lat, lng=self.lng, max_distance=self.max_distance)


def parse_request(model: Type[RequestT], params: Dict[str, Any]) -> RequestT:
    """
    Validate raw request parameters against a request model.

    Raises:
        InvalidQueryError: On unknown keys or malformed values
    """
    try:
        return model.model_validate(params)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidQueryError(f"Invalid {model.__name__}: {problems}") from e
