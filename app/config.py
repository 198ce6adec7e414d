"""Configuration management for the trip planner."""
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Tokyo, used when a search has no explicit location bias.
DEFAULT_CENTER = {"lat": 35.6762, "lng": 139.6503}

# Tokyo Station, used when a station pin has no cached position.
FALLBACK_STATION_POSITION = {"lat": 35.6812, "lng": 139.7671}


def get_google_maps_api_key() -> str:
    """Get Google Maps API key from environment."""
    return os.getenv("GOOGLE_MAPS_API_KEY", "")


def get_database_url() -> str:
    """Get the SQLAlchemy URL of the local key-value store."""
    return os.getenv("DATABASE_URL", "sqlite:///./japan_planner.db")


def get_places_timeout() -> float:
    return float(os.getenv("PLACES_TIMEOUT_SECONDS", "5.0"))


def get_prices_timeout() -> float:
    return float(os.getenv("PRICES_TIMEOUT_SECONDS", "6.0"))


def get_default_currency() -> str:
    return os.getenv("DEFAULT_CURRENCY", "JPY")


def get_cors_origins() -> List[str]:
    return os.getenv("CORS_ORIGINS", "*").split(",")
