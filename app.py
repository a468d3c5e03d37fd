"""
Streamlit UI for the Vendor Price Comparison Engine

- Search: compare one item across local vendors, ranked by price, distance or rating
- Stats: min / max / average / median price for an item
- Popular: items stocked by the most vendors
"""

import pandas as pd
import streamlit as st

from comparison_engine import PriceComparisonEngine
from config import GOOGLEMAPS_API_KEY, configure_logging
from database import get_db_manager
from errors import InvalidQueryError, ItemNotFoundError, StoreQueryError
from geo import parse_user_location
from googlemaps_client import GeocodingError, GoogleMapsClient
from models import ITEM_CATEGORIES, ITEM_TYPES, PRICE_UNITS
from schemas import ListingFilters, SortBy

configure_logging()

st.set_page_config(page_title="Vendor Price Comparison", layout="wide")

st.title("Vendor Price Comparison 🛒")
st.caption("Compare ingredient and material prices across local vendors")


# ============================================================================
# DATABASE & GEOCODING INITIALIZATION
# ============================================================================


@st.cache_resource
def init_services():
    """Initialize the listing store and the optional geocoder."""
    db_manager = get_db_manager()
    db_manager.init_db()

    if not db_manager.health_check():
        raise RuntimeError("Database connection failed")

    geocoder = None
    if GOOGLEMAPS_API_KEY:
        geocoder = GoogleMapsClient(GOOGLEMAPS_API_KEY)

    return db_manager, geocoder


try:
    db_manager, geocoder = init_services()
except Exception as e:
    st.error(f"❌ Failed to initialize services: {e}")
    st.stop()


def resolve_location(text: str):
    """'lng,lat' is used as-is; anything else is geocoded when a key is configured."""
    if not text.strip():
        return None
    try:
        return parse_user_location(text)
    except InvalidQueryError:
        if geocoder is None:
            raise
        return geocoder.geocode_address(text)


def group_table(group) -> pd.DataFrame:
    rows = []
    for entry in group.vendors:
        rows.append({
            "Vendor": entry.vendor["name"],
            "Min": entry.price.get("min"),
            "Max": entry.price.get("max"),
            "Unit": entry.price.get("unit") or "",
            "Currency": entry.price.get("currency"),
            "In stock": "✅" if entry.availability["in_stock"] else "❌",
            "Distance (km)": entry.distance,
            "Vendor rating": entry.vendor_rating,
            "Item rating": round(entry.average_rating, 2),
        })
    return pd.DataFrame(rows)


tab_search, tab_stats, tab_popular = st.tabs(["🔍 Compare", "📊 Price stats", "🔥 Popular"])

with tab_search:
    col_1, col_2, col_3 = st.columns([2, 1, 1])
    with col_1:
        name = st.text_input("Item", placeholder="e.g., flour, turmeric, cotton yarn")
    with col_2:
        category = st.selectbox("Category", [""] + ITEM_CATEGORIES)
    with col_3:
        item_type = st.selectbox("Type", [""] + ITEM_TYPES)

    col_4, col_5, col_6, col_7 = st.columns(4)
    with col_4:
        min_price = st.number_input("Min price", min_value=0.0, value=0.0)
    with col_5:
        max_price = st.number_input("Max price", min_value=0.0, value=0.0)
    with col_6:
        price_unit = st.selectbox("Unit", [""] + PRICE_UNITS)
    with col_7:
        sort_by = st.selectbox("Sort by", [s.value for s in SortBy])

    in_stock_only = st.checkbox("In stock only")
    location_text = st.text_input(
        "Your location",
        placeholder="'lng,lat' or an address",
        help="Needed for distance ranking. Addresses require GOOGLEMAPS_API_KEY."
    )

    if st.button("Compare prices", type="primary"):
        try:
            filters = ListingFilters(
                name=name or None,
                category=category or None,
                type=item_type or None,
                in_stock_only=in_stock_only,
                min_price=min_price or None,
                max_price=max_price or None,
                price_unit=price_unit or None,
            )
            user_location = resolve_location(location_text)

            session = db_manager.get_session()
            try:
                result = PriceComparisonEngine(session).search(filters, sort_by, user_location)
            finally:
                session.close()
        except (InvalidQueryError, StoreQueryError, GeocodingError) as e:
            st.error(f"❌ {e}")
            st.stop()

        st.write(f"**{result.total_items}** listings across **{result.total_unique_items}** items")
        for group in result.groups:
            st.subheader(f"{group.item_name} · {group.category} · {group.vendor_count} vendor(s)")
            st.dataframe(group_table(group), use_container_width=True)

with tab_stats:
    stats_name = st.text_input("Item name", key="stats_name")
    if st.button("Show statistics"):
        session = db_manager.get_session()
        try:
            stats = PriceComparisonEngine(session).stats(stats_name)
        except InvalidQueryError as e:
            st.warning(str(e))
            st.stop()
        except ItemNotFoundError as e:
            st.info(str(e))
            st.stop()
        except StoreQueryError as e:
            st.error(f"❌ {e}")
            st.stop()
        finally:
            session.close()

        st.write(f"Listings found: **{stats.vendor_count}**")
        if stats.price_stats:
            cols = st.columns(4)
            cols[0].metric("Min", f"{stats.price_stats.min:.2f}")
            cols[1].metric("Max", f"{stats.price_stats.max:.2f}")
            cols[2].metric("Average", f"{stats.price_stats.average:.2f}")
            cols[3].metric("Median", f"{stats.price_stats.median:.2f}")
        else:
            st.info("None of the matching listings has a price yet.")

        st.markdown("**Common units**")
        st.dataframe(pd.DataFrame(stats.common_units), use_container_width=True)
        st.markdown("**Availability**")
        st.json(stats.availability_stats)

with tab_popular:
    popular_type = st.selectbox("Type", [""] + ITEM_TYPES, key="popular_type")
    popular_limit = st.slider("How many", min_value=1, max_value=50, value=10)

    session = db_manager.get_session()
    try:
        popular = PriceComparisonEngine(session).popular(popular_type or None, popular_limit)
    except StoreQueryError as e:
        st.error(f"❌ {e}")
        st.stop()
    finally:
        session.close()

    if popular:
        st.dataframe(pd.DataFrame([item.to_dict() for item in popular]), use_container_width=True)
    else:
        st.write("No listings yet.")

# Footer
st.markdown("---")
st.caption("Prices are contributed by the community and compared on every request.")
