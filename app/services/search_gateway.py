import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.models.place import PointOfInterest, Position, PriceEstimate, PriceInfo, SearchResult, SearchState
from app.services.classification import primary_type
from app.services.places_client import GooglePlacesClient, PlacesApiError

logger = logging.getLogger(__name__)


def is_valid_poi(entry: Any) -> bool:
    if not isinstance(entry, dict):
        return False
    position = entry.get("position")
    return bool(
        entry.get("name")
        and isinstance(position, dict)
        and position.get("lat") is not None
        and position.get("lng") is not None
        and entry.get("placeId")
    )


def validate_places(entries: Optional[List[Dict[str, Any]]]) -> List[PointOfInterest]:
    """Drops every entry that cannot be shown on the map."""
    places = []
    for entry in entries or []:
        if not is_valid_poi(entry):
            logger.debug(f"Dropping malformed place: {entry}")
            continue
        try:
            places.append(PointOfInterest.model_validate(entry))
        except ValidationError as e:
            logger.debug(f"Dropping unreadable place {entry.get('placeId')}: {e}")
    return places


def merge_price_estimate(price: Optional[PriceInfo], estimate: PriceEstimate) -> PriceInfo:
    """Overlays the estimate onto ``price``; fields the estimate lacks are kept."""
    updates: Dict[str, Any] = {}
    if estimate.entrance_fee is not None:
        updates["entrance_fee"] = estimate.entrance_fee
    if estimate.average_meal_cost is not None:
        updates["value"] = estimate.average_meal_cost
    if estimate.room_rate is not None:
        updates["value"] = estimate.room_rate
    if estimate.price_range is not None:
        updates["range"] = estimate.price_range
    for field in ("currency", "description", "source"):
        if getattr(estimate, field):
            updates[field] = getattr(estimate, field)
    return (price or PriceInfo()).model_copy(update=updates)


class SearchGateway:
    """
    Search state on top of the places client.

    Each request takes a sequence number. Only the latest request may write
    results, so a slow superseded search never replaces newer ones.
    """

    def __init__(self, client: GooglePlacesClient):
        self.client = client
        self.search_term = ""
        self.results: List[PointOfInterest] = []
        self.next_page_token: Optional[str] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self._request_seq = 0

    def state(self) -> SearchState:
        return SearchState(
            search_term=self.search_term,
            places=self.results,
            next_page_token=self.next_page_token,
            is_loading=self.is_loading,
            error=self.error,
        )

    def _begin_request(self) -> int:
        self._request_seq += 1
        self.is_loading = True
        self.error = None
        return self._request_seq

    def _is_latest(self, request_id: int) -> bool:
        return request_id == self._request_seq

    async def search(self, term: str, location: Optional[Position] = None) -> SearchResult:
        term = (term or "").strip()
        if not term:
            self.clear()
            return SearchResult()

        self.search_term = term
        request_id = self._begin_request()
        try:
            response = await self.client.search(term, location=location)
        except PlacesApiError as e:
            logger.error(f"Search for '{term}' failed: {e}", exc_info=True)
            if self._is_latest(request_id):
                self.results = []
                self.next_page_token = None
                self.error = "Failed to search places. Please try again."
                self.is_loading = False
            return SearchResult()

        result = SearchResult(
            places=validate_places(response.get("places")),
            next_page_token=response.get("nextPageToken"),
        )
        if not self._is_latest(request_id):
            logger.info(f"Discarding results of superseded search '{term}'")
            return result

        self.results = result.places
        self.next_page_token = result.next_page_token
        self.is_loading = False
        return result

    async def fetch_next_page(self) -> SearchResult:
        if not self.next_page_token or self.is_loading:
            return SearchResult()

        request_id = self._begin_request()
        try:
            response = await self.client.search(page_token=self.next_page_token)
        except PlacesApiError as e:
            logger.error(f"Loading more results failed: {e}", exc_info=True)
            if self._is_latest(request_id):
                self.error = "Failed to load more results. Please try again."
                self.is_loading = False
            return SearchResult()

        result = SearchResult(
            places=validate_places(response.get("places")),
            next_page_token=response.get("nextPageToken"),
        )
        if not self._is_latest(request_id):
            return result

        self.results = self.results + result.places
        self.next_page_token = result.next_page_token
        self.is_loading = False
        return result

    async def get_details(self, place_id: str) -> Optional[PointOfInterest]:
        """
        Full details of a place with the price estimate merged in.

        Returns None when Google has nothing for ``place_id`` or the lookup
        fails. A failing price lookup only drops the estimate.
        """
        try:
            data = await self.client.details(place_id)
        except PlacesApiError as e:
            logger.error(f"Failed to get details for {place_id}: {e}", exc_info=True)
            self.error = "Failed to get place details"
            return None

        if not data:
            return None
        try:
            details = PointOfInterest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Details for {place_id} are incomplete: {e}")
            return None

        try:
            estimate = await self.client.get_price_estimate(details.place_id, details.name, primary_type(details.types))
        except PlacesApiError as e:
            logger.warning(f"Error fetching price information: {e}")
            return details

        if estimate.is_empty():
            return details
        return details.model_copy(update={"price": merge_price_estimate(details.price, estimate)})

    async def get_price_estimate(self, place_id: Optional[str], name: Optional[str] = None,
                                 place_type: Optional[str] = None) -> PriceEstimate:
        return await self.client.get_price_estimate(place_id, name, place_type)

    def clear(self):
        # Invalidates any request still in flight.
        self._request_seq += 1
        self.search_term = ""
        self.results = []
        self.next_page_token = None
        self.is_loading = False
        self.error = None
