import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import DEFAULT_CENTER, get_google_maps_api_key, get_places_timeout, get_prices_timeout
from app.models.place import Position, PriceEstimate
from app.services.price_estimator import CURRENCY_SYMBOL, generate_estimated_prices
from app.services.review_parser import build_price_info, extract_additional_info

logger = logging.getLogger(__name__)

PLACES_API_URL = "https://maps.googleapis.com/maps/api/place"
SEARCH_RADIUS_METERS = 50000
DETAILS_FIELDS = (
    "name,formatted_address,geometry,place_id,types,photos,rating,price_level,"
    "reviews,website,formatted_phone_number,editorial_summary,opening_hours"
)
EMPTY_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}


class PlacesApiError(Exception):
    pass


class GooglePlacesClient:
    """
    Google Places text search and details.

    Responses are reshaped into camelCase point-of-interest dicts but not
    validated; callers decide what to do with incomplete entries.
    """

    def __init__(self, http_client: httpx.AsyncClient, api_key: Optional[str] = None,
                 timeout: Optional[float] = None, prices_timeout: Optional[float] = None):
        self.http_client = http_client
        self.api_key = api_key if api_key is not None else get_google_maps_api_key()
        self.timeout = timeout or get_places_timeout()
        self.prices_timeout = prices_timeout or get_prices_timeout()
        if not self.api_key:
            logger.warning("GOOGLE_MAPS_API_KEY is not set; place lookups will fail")

    async def _get(self, endpoint: str, params: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        try:
            response = await self.http_client.get(
                f"{PLACES_API_URL}/{endpoint}/json",
                params={**params, "key": self.api_key},
                timeout=timeout,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise PlacesApiError(f"Places {endpoint} request failed: {e}") from e
        except ValueError as e:
            raise PlacesApiError(f"Places {endpoint} returned invalid JSON") from e

    def _photo_urls(self, photos: Optional[List[Dict[str, Any]]]) -> Optional[List[str]]:
        if not photos:
            return None
        return [
            f"{PLACES_API_URL}/photo?maxwidth=400&photoreference={photo.get('photo_reference')}&key={self.api_key}"
            for photo in photos
        ]

    @staticmethod
    def _position(place: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        location = (place.get("geometry") or {}).get("location")
        if not location:
            return None
        return {"lat": location.get("lat"), "lng": location.get("lng")}

    async def search(self, query: Optional[str] = None, location: Optional[Position] = None,
                     page_token: Optional[str] = None) -> Dict[str, Any]:
        """Returns ``{"places": [...], "nextPageToken": ...}``."""
        if page_token:
            params = {"pagetoken": page_token}
        elif query:
            center = location.to_storage() if location else DEFAULT_CENTER
            params = {
                "query": f"{query} japan",
                "location": f"{center['lat']},{center['lng']}",
                "radius": str(SEARCH_RADIUS_METERS),
            }
        else:
            raise ValueError("Either a query or a page token is required")

        data = await self._get("textsearch", params, self.timeout)
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise PlacesApiError(f"Google API error: {status}, {data.get('error_message')}")

        places = []
        for place in data.get("results", []):
            price = None
            if place.get("price_level") is not None:
                price = {"level": place["price_level"], "currency": CURRENCY_SYMBOL}
            places.append({
                "id": place.get("place_id"),
                "name": place.get("name"),
                "address": place.get("formatted_address") or "",
                "position": self._position(place),
                "placeId": place.get("place_id"),
                "types": place.get("types") or [],
                "price": price,
                "rating": place.get("rating"),
                "photos": self._photo_urls(place.get("photos")),
            })

        return {"places": places, "nextPageToken": data.get("next_page_token")}

    async def details(self, place_id: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Place details, or ``{}`` when Google has nothing for ``place_id``."""
        data = await self._get(
            "details",
            {"placeid": place_id, "fields": DETAILS_FIELDS},
            timeout or self.timeout,
        )
        status = data.get("status")
        if status in EMPTY_STATUSES:
            return {}
        if status != "OK":
            raise PlacesApiError(f"Google API error: {status}, {data.get('error_message')}")

        result = data.get("result")
        if not result:
            logger.info(f"No details found for place ID: {place_id}")
            return {}

        types = result.get("types") or []
        reviews = result.get("reviews") or []
        price = build_price_info(result.get("price_level"), types, reviews)
        additional_info = extract_additional_info(reviews, result.get("editorial_summary"))

        return {
            "id": result.get("place_id"),
            "name": result.get("name"),
            "address": result.get("formatted_address") or "",
            "position": self._position(result),
            "placeId": result.get("place_id"),
            "types": types,
            "price": price.to_storage(),
            "rating": result.get("rating"),
            "openingHours": (result.get("opening_hours") or {}).get("weekday_text"),
            "website": result.get("website"),
            "phoneNumber": result.get("formatted_phone_number"),
            "photos": self._photo_urls(result.get("photos")),
            "additionalInfo": additional_info.to_storage() if additional_info else None,
        }

    async def get_price_estimate(self, place_id: Optional[str], name: Optional[str] = None,
                                 place_type: Optional[str] = None) -> PriceEstimate:
        """
        Price estimate for a place.

        Uses the details price when it carries an entrance fee or a value;
        otherwise falls back to the local estimates by name and type.
        """
        details = {}
        if place_id:
            try:
                details = await self.details(place_id, timeout=self.prices_timeout)
            except PlacesApiError as e:
                logger.warning(f"Price lookup could not load details for {place_id}: {e}")

        price = details.get("price") or {}
        if price.get("entranceFee") or price.get("value"):
            return PriceEstimate(
                entrance_fee=price.get("entranceFee"),
                average_meal_cost=price.get("value"),
                currency=price.get("currency") or CURRENCY_SYMBOL,
                price_range=price.get("range"),
                source="Google Places",
                description=price.get("description"),
            )

        return generate_estimated_prices(place_type, details.get("types"), name or details.get("name"))
