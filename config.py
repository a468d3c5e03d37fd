"""
Runtime configuration for the Price Comparison Engine

Values come from the environment (optionally a .env file):
- DATABASE_URL: SQLAlchemy connection string for the listing store
- DEFAULT_CURRENCY: currency code applied to listings without one
- DEFAULT_PROXIMITY_RADIUS_M: radius for proximity search when none is given
- LOG_LEVEL: root logging level
- GOOGLEMAPS_API_KEY: optional, enables address geocoding in the UI
"""

import logging
import os

from dotenv import load_dotenv

# Load settings from .env file
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///price_comparison.db")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "BDT")
DEFAULT_PROXIMITY_RADIUS_M = int(os.getenv("DEFAULT_PROXIMITY_RADIUS_M", "10000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
GOOGLEMAPS_API_KEY = os.getenv("GOOGLEMAPS_API_KEY")
PORT = int(os.getenv("PORT", "8000"))

# Query limits
DEFAULT_POPULAR_LIMIT = 10
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once for scripts, the API and the UI."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
