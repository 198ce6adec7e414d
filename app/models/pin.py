from typing import List, Literal, Optional

from app.models.base import CamelModel
from app.models.place import AdditionalInfo, PointOfInterest, Position, PriceInfo

TravelMode = Literal["transit", "walking", "driving"]


class MapPin(PointOfInterest):
    is_selected: bool = False
    notes: Optional[str] = None
    is_station: Optional[bool] = None


class PinUpdate(CamelModel):
    """Editable pin fields. Anything left unset keeps its stored value."""

    name: Optional[str] = None
    address: Optional[str] = None
    position: Optional[Position] = None
    types: Optional[List[str]] = None
    price: Optional[PriceInfo] = None
    rating: Optional[float] = None
    opening_hours: Optional[List[str]] = None
    website: Optional[str] = None
    phone_number: Optional[str] = None
    additional_info: Optional[AdditionalInfo] = None
    notes: Optional[str] = None
    is_selected: Optional[bool] = None


class RouteInfo(CamelModel):
    origin: Position
    destination: Position
    mode: TravelMode
    url: str


class SavedLocation(MapPin):
    """A saved pin as listed to the user, with its display price."""

    price_label: Optional[str] = None


class SelectionState(CamelModel):
    selected_ids: List[str] = []
    route: Optional[RouteInfo] = None
