"""Tests for comparison grouping and ranking."""

import pytest

from comparison import ComparisonEntry, compare_prices, group_entries, sort_entries
from geo import GeoLocation
from schemas import ListingFilters, SortBy

USER = GeoLocation(latitude=23.8103, longitude=90.4125)  # Dhaka


def entry(listing_id, name="Flour", price=None, distance=None, vendor_rating=0, average_rating=0.0,
          category="baking", item_type="ingredient"):
    return ComparisonEntry(
        listing_id=listing_id,
        name=name,
        category=category,
        type=item_type,
        vendor={"id": listing_id, "name": f"Vendor {listing_id}", "rating": vendor_rating},
        price=price or {},
        availability={"in_stock": True, "seasonal": False, "notes": ""},
        description="",
        tags=[],
        average_rating=average_rating,
        ratings_count=0,
        added_by=None,
        updated_at=None,
        distance=distance,
    )


def ids(entries):
    return [e.listing_id for e in entries]


class TestSortEntries:

    def test_price_uses_min_then_max_then_zero(self):
        entries = [
            entry(1, price={"min": 30}),
            entry(2, price={"max": 10}),
            entry(3, price={}),
            entry(4, price={"min": 20, "max": 50}),
        ]
        assert ids(sort_entries(entries, SortBy.PRICE)) == [3, 2, 4, 1]

    def test_price_zero_min_falls_back_to_max(self):
        entries = [entry(1, price={"min": 0, "max": 40}), entry(2, price={"min": 25})]
        assert ids(sort_entries(entries, SortBy.PRICE)) == [2, 1]

    def test_distance_puts_missing_distances_last(self):
        entries = [
            entry(1, distance=None),
            entry(2, distance=5.5),
            entry(3, distance=None),
            entry(4, distance=0.8),
        ]
        assert ids(sort_entries(entries, SortBy.DISTANCE)) == [4, 2, 1, 3]

    def test_rating_is_vendor_rating_descending(self):
        entries = [entry(1, vendor_rating=3.0), entry(2, vendor_rating=None), entry(3, vendor_rating=4.5)]
        assert ids(sort_entries(entries, SortBy.RATING)) == [3, 1, 2]

    def test_vendor_rating_is_listing_average_descending(self):
        entries = [entry(1, average_rating=2.0), entry(2, average_rating=4.0), entry(3, average_rating=2.0)]
        assert ids(sort_entries(entries, SortBy.VENDOR_RATING)) == [2, 1, 3]

    def test_ties_keep_input_order(self):
        entries = [entry(i, price={"min": 10}) for i in (5, 3, 9)]
        assert ids(sort_entries(entries, SortBy.PRICE)) == [5, 3, 9]


class TestGroupEntries:

    def test_name_case_does_not_split_groups(self):
        groups = group_entries([entry(1, "Flour"), entry(2, "flour"), entry(3, "FLOUR")])
        assert len(groups) == 1
        assert groups[0].item_name == "Flour"
        assert ids(groups[0].vendors) == [1, 2, 3]

    def test_category_and_type_split_groups(self):
        groups = group_entries([
            entry(1, "Salt"),
            entry(2, "Salt", category="spice"),
            entry(3, "Salt", item_type="material"),
        ])
        assert len(groups) == 3

    def test_groups_ordered_by_vendor_count_then_first_seen(self):
        groups = group_entries([
            entry(1, "Sugar"),
            entry(2, "Flour"),
            entry(3, "Butter"),
            entry(4, "Flour"),
            entry(5, "Butter"),
            entry(6, "Flour"),
        ])
        assert [g.item_name for g in groups] == ["Flour", "Butter", "Sugar"]
        assert [g.vendor_count for g in groups] == [3, 2, 1]

    def test_equal_sized_groups_keep_first_seen_order(self):
        groups = group_entries([entry(1, "Sugar"), entry(2, "Flour"), entry(3, "Butter")])
        assert [g.item_name for g in groups] == ["Sugar", "Flour", "Butter"]


class TestComparePrices:

    def test_no_filters_returns_every_listing_grouped(self, session, make_vendor, make_listing):
        a, b, c = make_vendor("A"), make_vendor("B"), make_vendor("C")
        make_listing(a, "Flour", price_min=50)
        make_listing(b, "flour", price_min=45)
        make_listing(c, "Flour", price_max=40)
        make_listing(a, "Sugar", price_min=90)
        make_listing(b, "Yarn", category="yarn", item_type="material")

        result = compare_prices(session, ListingFilters())

        assert result.total_items == 5
        assert result.total_unique_items == 3
        assert result.total_items == sum(g.vendor_count for g in result.groups)
        assert result.groups[0].item_name == "Flour"
        assert result.groups[0].vendor_count == 3

    def test_prices_non_decreasing_within_group(self, session, make_vendor, make_listing):
        vendors = [make_vendor(f"V{i}") for i in range(4)]
        make_listing(vendors[0], "Flour", price_min=70)
        make_listing(vendors[1], "Flour", price_max=55)
        make_listing(vendors[2], "Flour", price_min=60, price_max=65)
        make_listing(vendors[3], "Flour", price_min=52)

        result = compare_prices(session, ListingFilters(name="flour"), SortBy.PRICE)

        prices = [e.reference_price for e in result.groups[0].vendors]
        assert prices == sorted(prices)
        assert prices == [52, 55, 60, 70]

    def test_orphaned_listings_are_skipped(self, session, make_vendor, make_listing):
        vendor = make_vendor("Still Here")
        make_listing(vendor, "Flour", price_min=50)
        make_listing(9999, "Flour", price_min=10)  # vendor 9999 does not exist

        result = compare_prices(session, ListingFilters())

        assert result.total_items == 1
        assert all(e.vendor is not None for g in result.groups for e in g.vendors)
        assert result.groups[0].vendors[0].vendor["name"] == "Still Here"

    def test_vendor_deleted_after_listing_created(self, session, make_vendor, make_listing):
        gone = make_vendor("Closed Down")
        make_listing(gone, "Flour", price_min=10)
        session.delete(gone)
        session.commit()

        result = compare_prices(session, ListingFilters())

        assert result.total_items == 0
        assert result.groups == []

    def test_distance_annotated_and_ranked(self, session, make_vendor, make_listing):
        near = make_vendor("Near", coordinates=(90.4152, 23.7925))     # Gulshan, ~2 km
        far = make_vendor("Far", coordinates=(91.8380, 22.3350))       # Chittagong
        unknown = make_vendor("No Coordinates")
        make_listing(unknown, "Flour", price_min=1)
        make_listing(far, "Flour", price_min=2)
        make_listing(near, "Flour", price_min=3)

        result = compare_prices(session, ListingFilters(), SortBy.DISTANCE, USER)

        vendors = result.groups[0].vendors
        assert [e.vendor["name"] for e in vendors] == ["Near", "Far", "No Coordinates"]
        assert vendors[0].distance == pytest.approx(2.0, abs=0.5)
        assert vendors[0].distance == round(vendors[0].distance, 2)
        assert vendors[2].distance is None

    def test_no_location_means_no_distance(self, session, make_vendor, make_listing):
        vendor = make_vendor("Near", coordinates=(90.4152, 23.7925))
        make_listing(vendor, "Flour", price_min=3)

        result = compare_prices(session, ListingFilters())

        assert result.groups[0].vendors[0].distance is None

    def test_rating_sort_uses_vendor_rating(self, session, make_vendor, make_listing):
        low = make_vendor("Low", rating=2.0)
        high = make_vendor("High", rating=4.9)
        make_listing(low, "Flour", price_min=1)
        make_listing(high, "Flour", price_min=100)

        result = compare_prices(session, ListingFilters(), SortBy.RATING)

        assert [e.vendor["name"] for e in result.groups[0].vendors] == ["High", "Low"]

    def test_search_criteria_are_echoed(self, session, make_vendor, make_listing):
        result = compare_prices(session, ListingFilters(name="flour", min_price=5), SortBy.PRICE, USER)

        assert result.search_criteria["name"] == "flour"
        assert result.search_criteria["min_price"] == 5
        assert result.search_criteria["sort_by"] == "price"
        assert result.search_criteria["user_location"] == [90.4125, 23.8103]

    def test_to_dict_shape(self, session, make_vendor, make_listing):
        vendor = make_vendor("A", coordinates=(90.4, 23.8))
        make_listing(vendor, "Flour", price_min=50, unit="kg", tags=["wheat"])

        data = compare_prices(session, ListingFilters()).to_dict()

        assert data["total_items"] == 1
        group = data["results"][0]
        assert group["item_name"] == "Flour"
        vendor_entry = group["vendors"][0]
        assert vendor_entry["vendor"]["address"]["coordinates"] == [90.4, 23.8]
        assert vendor_entry["price"]["unit"] == "kg"
        assert vendor_entry["tags"] == ["wheat"]
