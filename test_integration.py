"""
End-to-end check over the sample vendors and listings

Seeds the in-memory store the same way `python database.py --seed` does and
runs every engine operation against it.
"""

import pytest

from comparison_engine import PriceComparisonEngine
from geo import parse_user_location
from models import ItemListing, Vendor
from sample_data import SAMPLE_LISTINGS, SAMPLE_VENDORS, SampleDataManager
from schemas import ComparisonSearchRequest, GeoQuery, ListingFilters, SortBy, parse_request


@pytest.fixture
def engine(session):
    SampleDataManager.seed_default_data(session)
    return PriceComparisonEngine(session)


def test_seed_is_idempotent(session):
    first = SampleDataManager.seed_default_data(session)
    second = SampleDataManager.seed_default_data(session)

    assert first == {"vendors": len(SAMPLE_VENDORS), "listings": len(SAMPLE_LISTINGS)}
    assert second == {"vendors": 0, "listings": 0}
    assert session.query(Vendor).count() == 5
    assert session.query(ItemListing).count() == 11


def test_full_comparison(engine):
    result = engine.search()

    assert result.total_items == 11
    assert result.total_unique_items == 7
    assert result.total_items == sum(group.vendor_count for group in result.groups)

    flour = result.groups[0]
    assert flour.item_name == "Flour"
    assert flour.vendor_count == 3
    assert [e.vendor["name"] for e in flour.vendors] == [
        "Karwan Bazar Fresh Market",
        "Gulshan Grocers",
        "Dhanmondi Bake House",
    ]


def test_tag_search_finds_listing(engine):
    result = engine.search(ListingFilters(name="holud"))

    assert result.total_items == 2
    assert result.groups[0].item_name == "Turmeric"


def test_request_to_ranked_groups(engine):
    request = parse_request(ComparisonSearchRequest, {
        "name": "hilsa",
        "sortBy": "distance",
        "userLocation": "90.4125,23.8103",
    })

    result = engine.search(request.to_filters(), request.sort_by, request.location)

    hilsa = result.groups[0]
    assert [e.vendor["name"] for e in hilsa.vendors] == ["Gulshan Grocers", "Karwan Bazar Fresh Market"]
    assert all(e.distance is not None for e in hilsa.vendors)


def test_rating_rankings(engine):
    by_vendor = engine.search(ListingFilters(name="turmeric"), SortBy.RATING)

    assert by_vendor.groups[0].vendors[0].vendor["name"] == "Chittagong Spice House"


def test_stats_and_popular(engine):
    stats = engine.stats("hilsa")
    assert stats.vendor_count == 2
    assert stats.price_stats.min == 1100
    assert stats.price_stats.median == 1150
    assert stats.availability_stats == {"in_stock": 1, "out_of_stock": 1, "seasonal": 2}

    popular = engine.popular(limit=3)
    assert [item.name for item in popular] == ["flour", "hilsa", "turmeric"]
    assert popular[0].avg_price == 63.17


def test_proximity_browse(engine):
    location = parse_user_location("90.4125,23.8103")
    geo = GeoQuery(lat=location.latitude, lng=location.longitude, maxDistance=10000)

    page = engine.proximity_search(geo=geo, sort_by="price", limit=100)

    vendors = {item["vendor"]["name"] for item in page.items}
    assert "Chittagong Spice House" not in vendors
    assert "Gulshan Grocers" in vendors
    prices = [item["price"]["min"] or item["price"]["max"] for item in page.items]
    assert prices == sorted(prices)


def test_category_counts(engine):
    counts = engine.category_counts()

    assert counts[0] == {"category": "baking", "count": 3}
    assert sum(c["count"] for c in counts) == 11
