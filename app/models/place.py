from pydantic import ConfigDict
from typing import List, Optional

from app.models.base import CamelModel


class Position(CamelModel):
    lat: float
    lng: float


class PriceRange(CamelModel):
    min: Optional[float] = None
    max: Optional[float] = None


class PriceInfo(CamelModel):
    level: Optional[int] = None
    value: Optional[float] = None
    currency: Optional[str] = None
    range: Optional[PriceRange] = None
    description: Optional[str] = None
    formatted_price: Optional[str] = None
    ticket_info: Optional[str] = None
    entrance_fee: Optional[float] = None
    source: Optional[str] = None


class PopularTimes(CamelModel):
    day: str
    busy: List[int] = []


class AdditionalInfo(CamelModel):
    accessibility: Optional[str] = None
    best_time_to_visit: Optional[str] = None
    estimated_duration: Optional[str] = None
    popular_times: Optional[List[PopularTimes]] = None


class PointOfInterest(CamelModel):
    """Snapshot of a place. Never mutated in place; edits go through ``model_copy``."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    address: str = ""
    position: Position
    place_id: str
    types: List[str] = []
    price: Optional[PriceInfo] = None
    rating: Optional[float] = None
    opening_hours: Optional[List[str]] = None
    photos: Optional[List[str]] = None
    website: Optional[str] = None
    phone_number: Optional[str] = None
    additional_info: Optional[AdditionalInfo] = None


class PriceEstimate(CamelModel):
    """Payload of the price-estimate collaborator. Every field is optional."""

    entrance_fee: Optional[float] = None
    average_meal_cost: Optional[float] = None
    room_rate: Optional[float] = None
    currency: Optional[str] = None
    price_range: Optional[PriceRange] = None
    source: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class SearchResult(CamelModel):
    places: List[PointOfInterest] = []
    next_page_token: Optional[str] = None


class SearchState(CamelModel):
    search_term: str = ""
    places: List[PointOfInterest] = []
    next_page_token: Optional[str] = None
    is_loading: bool = False
    error: Optional[str] = None
