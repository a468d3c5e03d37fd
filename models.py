"""
SQLAlchemy ORM Models for the Vendor Price Comparison Engine

Tables:
- vendors: Local vendors (grocery stores, markets, craft stores...) with location
- item_listings: A vendor's offering of an ingredient or material with a price range
- listing_tags: Lowercased search tags attached to a listing
- item_ratings: Per-user ratings of a listing (accuracy, freshness, value)

item_listings.vendor_id is a plain reference rather than a database-enforced
foreign key: vendors can disappear while their listings remain, and readers
must skip those orphaned listings.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, ForeignKey,
    Index, CheckConstraint, UniqueConstraint, event
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import declarative_base, relationship, validates

from config import DEFAULT_CURRENCY
from errors import InvalidListingError

Base = declarative_base()


VENDOR_TYPES = [
    'grocery', 'farmers-market', 'craft-store', 'hardware',
    'specialty-food', 'bakery', 'butcher', 'other',
]

ITEM_TYPES = ['ingredient', 'material']

ITEM_CATEGORIES = [
    # Recipe ingredients
    'vegetable', 'fruit', 'meat', 'seafood', 'dairy', 'grain', 'spice', 'herb',
    'condiment', 'oil', 'vinegar', 'baking', 'beverage', 'snack', 'frozen',
    'canned', 'dry-goods', 'specialty-food',

    # DIY materials
    'fabric', 'yarn', 'thread', 'button', 'zipper', 'trim', 'paper', 'cardboard',
    'wood', 'metal', 'plastic', 'glass', 'ceramic', 'stone', 'adhesive', 'paint',
    'brush', 'tool', 'hardware', 'electronic', 'craft-supply', 'jewelry-supply',
    'scrapbook', 'art-supply', 'sewing-supply', 'knitting', 'embroidery',

    'other',
]

PRICE_UNITS = [
    'each', 'lb', 'kg', 'oz', 'g', 'yard', 'meter', 'foot', 'inch',
    'liter', 'ml', 'gallon', 'pack', 'bundle', 'set',
]

CURRENCY_SYMBOLS = {'BDT': '৳', 'USD': '$', 'EUR': '€', 'GBP': '£'}

MAX_NAME_LENGTH = 100
MAX_TAG_LENGTH = 30


class Vendor(Base):
    """Local vendor with address and coordinates"""
    __tablename__ = 'vendors'
    __table_args__ = (
        CheckConstraint('rating >= 0 AND rating <= 5', name='ck_vendor_rating'),
        Index('idx_vendor_city_state', 'city', 'state'),
        Index('idx_vendor_type', 'type'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default='other')
    street = Column(String(255))
    city = Column(String(100))
    state = Column(String(100))
    country = Column(String(100))
    zip_code = Column(String(20))
    longitude = Column(Float)  # Stored as [lon, lat] pair in the directory
    latitude = Column(Float)
    rating = Column(Float, default=0.0, nullable=False)
    follower_count = Column(Integer, default=0, nullable=False)
    created_by = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def coordinates(self) -> Optional[List[float]]:
        """[longitude, latitude], or None when the vendor was never geocoded"""
        if self.longitude is None or self.latitude is None:
            return None
        return [self.longitude, self.latitude]

    @property
    def full_address(self) -> str:
        parts = [self.street, self.city, f"{self.state or ''} {self.zip_code or ''}".strip(), self.country]
        return ", ".join(p for p in parts if p)

    def to_snapshot(self) -> Dict:
        """Vendor summary embedded in comparison entries"""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "address": {
                "street": self.street,
                "city": self.city,
                "state": self.state,
                "country": self.country,
                "zip_code": self.zip_code,
                "coordinates": self.coordinates,
            },
            "rating": float(self.rating or 0),
            "follower_count": int(self.follower_count or 0),
        }

    def __repr__(self):
        return f"<Vendor {self.name}>"


class ListingTag(Base):
    """Search tag attached to a listing"""
    __tablename__ = 'listing_tags'
    __table_args__ = (
        UniqueConstraint('listing_id', 'tag', name='unique_listing_tag'),
        Index('idx_tag', 'tag'),
    )

    id = Column(Integer, primary_key=True)
    listing_id = Column(Integer, ForeignKey('item_listings.id', ondelete='CASCADE'), nullable=False)
    tag = Column(String(MAX_TAG_LENGTH), nullable=False)

    listing = relationship("ItemListing", back_populates="tag_rows")

    @validates('tag')
    def _normalize_tag(self, key, value):
        tag = (value or "").strip().lower()
        if not tag or len(tag) > MAX_TAG_LENGTH:
            raise InvalidListingError(f"Tag must be 1-{MAX_TAG_LENGTH} characters: {value!r}")
        return tag

    def __repr__(self):
        return f"<ListingTag {self.tag}>"


class ItemRating(Base):
    """A user's rating of a listing"""
    __tablename__ = 'item_ratings'
    __table_args__ = (
        UniqueConstraint('listing_id', 'user_id', name='unique_listing_user_rating'),
        CheckConstraint('accuracy BETWEEN 1 AND 5', name='ck_rating_accuracy'),
        CheckConstraint('freshness BETWEEN 1 AND 5', name='ck_rating_freshness'),
        CheckConstraint('value BETWEEN 1 AND 5', name='ck_rating_value'),
    )

    id = Column(Integer, primary_key=True)
    listing_id = Column(Integer, ForeignKey('item_listings.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, nullable=False)
    accuracy = Column(Integer, nullable=False)
    freshness = Column(Integer, nullable=False)
    value = Column(Integer, nullable=False)
    comment = Column(String(300), default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    listing = relationship("ItemListing", back_populates="ratings")

    @property
    def score(self) -> Optional[float]:
        """Mean of the three aspects, None if any aspect is missing"""
        if not (self.accuracy and self.freshness and self.value):
            return None
        return (self.accuracy + self.freshness + self.value) / 3

    def __repr__(self):
        return f"<ItemRating listing={self.listing_id} user={self.user_id}>"


class ItemListing(Base):
    """A vendor's listing of an ingredient or material"""
    __tablename__ = 'item_listings'
    __table_args__ = (
        CheckConstraint('average_rating >= 0 AND average_rating <= 5', name='ck_listing_average_rating'),
        CheckConstraint('price_min IS NULL OR price_min >= 0', name='ck_price_min_positive'),
        CheckConstraint('price_max IS NULL OR price_max >= 0', name='ck_price_max_positive'),
        Index('idx_listing_vendor_category', 'vendor_id', 'category'),
        Index('idx_listing_type_category', 'type', 'category'),
        Index('idx_listing_in_stock', 'in_stock'),
        Index('idx_listing_created_by', 'created_by'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(MAX_NAME_LENGTH), nullable=False)
    category = Column(String(50), nullable=False)
    type = Column(String(20), nullable=False, default='ingredient')
    description = Column(String(500), default="")

    # Price range; either bound may be missing
    price_min = Column(Float)
    price_max = Column(Float)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    unit = Column(String(20))

    in_stock = Column(Boolean, nullable=False, default=True)
    seasonal = Column(Boolean, nullable=False, default=False)
    availability_notes = Column(String(200), default="")

    vendor_id = Column(Integer, nullable=False, index=True)
    created_by = Column(Integer)

    average_rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tag_rows = relationship("ListingTag", back_populates="listing", cascade="all, delete-orphan")
    ratings = relationship("ItemRating", back_populates="listing", cascade="all, delete-orphan")

    tags = association_proxy("tag_rows", "tag", creator=lambda tag: ListingTag(tag=tag))

    @validates('name')
    def _normalize_name(self, key, value):
        name = (value or "").strip()
        if not name:
            raise InvalidListingError("Item name cannot be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidListingError(f"Item name cannot exceed {MAX_NAME_LENGTH} characters")
        return name

    @validates('type')
    def _check_type(self, key, value):
        if value not in ITEM_TYPES:
            raise InvalidListingError(f"Unknown item type: {value!r}")
        return value

    @validates('category')
    def _check_category(self, key, value):
        if value not in ITEM_CATEGORIES:
            raise InvalidListingError(f"Unknown item category: {value!r}")
        return value

    @validates('unit')
    def _check_unit(self, key, value):
        if value is not None and value not in PRICE_UNITS:
            raise InvalidListingError(f"Unknown price unit: {value!r}")
        return value

    def check_price_range(self) -> None:
        """Raise if both bounds are known and min exceeds max"""
        if self.price_min is not None and self.price_max is not None and self.price_min > self.price_max:
            raise InvalidListingError(
                f"Price min ({self.price_min}) exceeds max ({self.price_max}) for '{self.name}'"
            )

    @property
    def price(self) -> Dict:
        return {
            "min": self.price_min,
            "max": self.price_max,
            "currency": self.currency or DEFAULT_CURRENCY,
            "unit": self.unit,
        }

    @property
    def availability(self) -> Dict:
        return {
            "in_stock": bool(self.in_stock),
            "seasonal": bool(self.seasonal),
            "notes": self.availability_notes or "",
        }

    @property
    def reference_price(self) -> float:
        """Single comparable price: min bound, else max bound, else 0"""
        return self.price_min or self.price_max or 0

    @property
    def formatted_price(self) -> str:
        if not self.price_min and not self.price_max:
            return "Price not available"

        currency = self.currency or DEFAULT_CURRENCY
        symbol = CURRENCY_SYMBOLS.get(currency, currency)

        if self.price_min and self.price_max and self.price_min != self.price_max:
            return f"{symbol}{self.price_min:.2f} - {symbol}{self.price_max:.2f}"
        return f"{symbol}{(self.price_min or self.price_max):.2f}"

    def calculate_average_rating(self) -> None:
        """Recompute average_rating and total_ratings from the current ratings"""
        if not self.ratings:
            self.average_rating = 0.0
            self.total_ratings = 0
            return

        total_score = sum(r.score for r in self.ratings if r.score is not None)
        self.average_rating = total_score / len(self.ratings)
        self.total_ratings = len(self.ratings)

    def add_rating(
        self,
        user_id: int,
        accuracy: int,
        freshness: int,
        value: int,
        comment: str = ""
    ) -> ItemRating:
        """
        Add a user's rating, replacing any earlier rating by the same user.

        Raises:
            InvalidListingError: If any aspect is outside 1-5
        """
        if any(not isinstance(r, int) or r < 1 or r > 5 for r in (accuracy, freshness, value)):
            raise InvalidListingError("Ratings must be between 1 and 5")

        existing = next((r for r in self.ratings if r.user_id == user_id), None)
        if existing:
            existing.accuracy = accuracy
            existing.freshness = freshness
            existing.value = value
            existing.comment = comment or ""
            rating = existing
        else:
            rating = ItemRating(
                user_id=user_id,
                accuracy=accuracy,
                freshness=freshness,
                value=value,
                comment=comment or ""
            )
            self.ratings.append(rating)

        self.calculate_average_rating()
        return rating

    def __repr__(self):
        return f"<ItemListing {self.name} @ vendor {self.vendor_id}: {self.formatted_price}>"


@event.listens_for(ItemListing, "before_insert")
@event.listens_for(ItemListing, "before_update")
def _validate_listing(mapper, connection, target):
    target.check_price_range()
