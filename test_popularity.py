"""Tests for popularity ranking and category counts."""

from popularity import get_category_counts, get_popular_items


def test_popular_aggregates_case_insensitively(session, make_vendor, make_listing):
    a, b = make_vendor("A"), make_vendor("B")
    make_listing(a, "Flour", price_min=2, price_max=2)
    make_listing(b, "flour", price_min=4)
    make_listing(a, "flour", price_min=6)

    items = get_popular_items(session)

    assert len(items) == 1
    flour = items[0]
    assert flour.name == "flour"
    assert flour.count == 3
    assert flour.vendor_count == 2
    assert flour.avg_price == 4


def test_midpoint_used_when_both_bounds_exist(session, make_vendor, make_listing):
    vendor = make_vendor()
    make_listing(vendor, "Butter", category="dairy", price_min=100, price_max=200)
    make_listing(vendor, "Butter", category="dairy", price_max=120)

    (butter,) = get_popular_items(session)

    assert butter.avg_price == 135


def test_ranked_by_distinct_vendor_count(session, make_vendor, make_listing):
    a, b, c = make_vendor("A"), make_vendor("B"), make_vendor("C")
    # Same vendor five times still counts as one vendor
    for _ in range(5):
        make_listing(a, "Sugar", price_min=90)
    for vendor in (a, b, c):
        make_listing(vendor, "Flour", price_min=50)
    for vendor in (a, b):
        make_listing(vendor, "Butter", category="dairy", price_min=180)

    items = get_popular_items(session)

    assert [i.name for i in items] == ["flour", "butter", "sugar"]
    assert [i.vendor_count for i in items] == [3, 2, 1]
    assert items[2].count == 5


def test_ties_broken_by_listing_count_then_name(session, make_vendor, make_listing):
    vendor = make_vendor()
    make_listing(vendor, "Sugar")
    make_listing(vendor, "Cumin", category="spice")
    make_listing(vendor, "Salt", category="spice")
    make_listing(vendor, "Salt", category="spice")

    items = get_popular_items(session)

    assert [i.name for i in items] == ["salt", "cumin", "sugar"]


def test_category_and_type_keep_groups_apart(session, make_vendor, make_listing):
    vendor = make_vendor()
    make_listing(vendor, "Salt", category="spice")
    make_listing(vendor, "Salt", category="condiment")

    assert len(get_popular_items(session)) == 2


def test_limit_and_type_filter(session, make_vendor, make_listing):
    vendor = make_vendor()
    make_listing(vendor, "Flour")
    make_listing(vendor, "Sugar")
    make_listing(vendor, "Yarn", category="yarn", item_type="material")

    assert len(get_popular_items(session, limit=2)) == 2
    materials = get_popular_items(session, item_type="material")
    assert [i.name for i in materials] == ["yarn"]


def test_avg_price_is_none_without_prices(session, make_vendor, make_listing):
    make_listing(make_vendor(), "Flour")

    (flour,) = get_popular_items(session)

    assert flour.avg_price is None
    assert flour.to_dict()["avg_price"] is None


def test_empty_store(session):
    assert get_popular_items(session) == []
    assert get_category_counts(session) == []


def test_category_counts(session, make_vendor, make_listing):
    a, b = make_vendor("A"), make_vendor("B")
    make_listing(a, "Flour", category="baking")
    make_listing(a, "Sugar", category="baking")
    make_listing(b, "Cumin", category="spice")
    make_listing(b, "Yarn", category="yarn", item_type="material")

    assert get_category_counts(session) == [
        {"category": "baking", "count": 2},
        {"category": "spice", "count": 1},
        {"category": "yarn", "count": 1},
    ]
    assert get_category_counts(session, item_type="material") == [{"category": "yarn", "count": 1}]
    assert get_category_counts(session, vendor_id=b.id) == [
        {"category": "spice", "count": 1},
        {"category": "yarn", "count": 1},
    ]
