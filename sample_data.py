"""
Sample vendors and listings for local runs and the integration test

Vendors are around Dhaka; prices in BDT. Loaded with:
    python database.py --seed
"""

import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from models import ItemListing, Vendor

logger = logging.getLogger(__name__)


SAMPLE_VENDORS: List[Dict] = [
    {
        "name": "Karwan Bazar Fresh Market",
        "type": "farmers-market",
        "street": "Karwan Bazar Road",
        "city": "Dhaka", "state": "Dhaka", "country": "Bangladesh",
        "longitude": 90.3935, "latitude": 23.7507,
        "rating": 4.2, "follower_count": 120,
    },
    {
        "name": "Gulshan Grocers",
        "type": "grocery",
        "street": "Road 11, Gulshan 2",
        "city": "Dhaka", "state": "Dhaka", "country": "Bangladesh",
        "longitude": 90.4152, "latitude": 23.7925,
        "rating": 4.6, "follower_count": 310,
    },
    {
        "name": "Dhanmondi Bake House",
        "type": "bakery",
        "street": "Road 27, Dhanmondi",
        "city": "Dhaka", "state": "Dhaka", "country": "Bangladesh",
        "longitude": 90.3742, "latitude": 23.7461,
        "rating": 3.9, "follower_count": 45,
    },
    {
        "name": "New Market Craft Corner",
        "type": "craft-store",
        "street": "New Market",
        "city": "Dhaka", "state": "Dhaka", "country": "Bangladesh",
        "longitude": 90.3848, "latitude": 23.7330,
        "rating": 4.0, "follower_count": 80,
    },
    {
        "name": "Chittagong Spice House",
        "type": "specialty-food",
        "street": "Khatunganj",
        "city": "Chittagong", "state": "Chittagong", "country": "Bangladesh",
        "longitude": 91.8380, "latitude": 22.3350,
        "rating": 4.8, "follower_count": 150,
    },
]

# (vendor index, listing fields)
SAMPLE_LISTINGS: List[tuple] = [
    (0, {"name": "Flour", "category": "baking", "type": "ingredient",
         "price_min": 55, "price_max": 60, "unit": "kg", "tags": ["atta", "wheat"]}),
    (1, {"name": "flour", "category": "baking", "type": "ingredient",
         "price_min": 62, "unit": "kg", "tags": ["wheat"]}),
    (2, {"name": "Flour", "category": "baking", "type": "ingredient",
         "price_max": 70, "unit": "kg", "seasonal": False}),
    (0, {"name": "Turmeric", "category": "spice", "type": "ingredient",
         "price_min": 300, "price_max": 350, "unit": "kg", "tags": ["holud"]}),
    (4, {"name": "Turmeric", "category": "spice", "type": "ingredient",
         "price_min": 280, "unit": "kg", "tags": ["holud", "organic"]}),
    (1, {"name": "Hilsa", "category": "seafood", "type": "ingredient",
         "price_min": 1200, "price_max": 1600, "unit": "kg", "seasonal": True}),
    (0, {"name": "Hilsa", "category": "seafood", "type": "ingredient",
         "price_min": 1100, "unit": "kg", "in_stock": False, "seasonal": True}),
    (2, {"name": "Butter", "category": "dairy", "type": "ingredient",
         "price_min": 180, "unit": "pack"}),
    (3, {"name": "Cotton Yarn", "category": "yarn", "type": "material",
         "price_min": 90, "price_max": 120, "unit": "bundle", "tags": ["knitting"]}),
    (3, {"name": "Acrylic Paint", "category": "paint", "type": "material",
         "price_min": 250, "unit": "set"}),
    (1, {"name": "Mustard Oil", "category": "oil", "type": "ingredient",
         "price_min": 320, "price_max": 340, "unit": "liter"}),
]


class SampleDataManager:
    """Seeds the sample vendors and listings"""

    @staticmethod
    def seed_default_data(session: Session) -> Dict[str, int]:
        """
        Insert sample vendors and listings if no vendors exist yet.

        Returns:
            Counts of inserted vendors and listings
        """
        if session.query(Vendor).count() > 0:
            logger.info("Sample data skipped: vendors already present")
            return {"vendors": 0, "listings": 0}

        vendors = [Vendor(**fields) for fields in SAMPLE_VENDORS]
        session.add_all(vendors)
        session.flush()

        for vendor_index, fields in SAMPLE_LISTINGS:
            session.add(ItemListing(vendor_id=vendors[vendor_index].id, created_by=1, **fields))

        session.commit()
        logger.info(f"✓ Seeded {len(vendors)} vendors and {len(SAMPLE_LISTINGS)} listings")
        return {"vendors": len(vendors), "listings": len(SAMPLE_LISTINGS)}
