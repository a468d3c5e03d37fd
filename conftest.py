"""Shared pytest fixtures: a fresh in-memory listing store per test."""

import pytest

from database import DatabaseManager
from models import ItemListing, Vendor


@pytest.fixture
def db_manager():
    manager = DatabaseManager("sqlite:///:memory:")
    manager.init_db()
    yield manager
    manager.close()


@pytest.fixture
def session(db_manager):
    session = db_manager.get_session()
    yield session
    session.close()


@pytest.fixture
def make_vendor(session):
    """Create and commit a vendor. Coordinates are given as (lon, lat)."""
    def _make(name="Vendor", vendor_type="grocery", coordinates=None, **fields):
        if coordinates is not None:
            fields["longitude"], fields["latitude"] = coordinates
        vendor = Vendor(name=name, type=vendor_type, **fields)
        session.add(vendor)
        session.commit()
        return vendor
    return _make


@pytest.fixture
def make_listing(session):
    """Create and commit a listing for a vendor (or a bare vendor id)."""
    def _make(vendor, name="Flour", category="baking", item_type="ingredient", **fields):
        vendor_id = vendor.id if isinstance(vendor, Vendor) else vendor
        listing = ItemListing(
            name=name,
            category=category,
            type=item_type,
            vendor_id=vendor_id,
            **fields
        )
        session.add(listing)
        session.commit()
        return listing
    return _make
