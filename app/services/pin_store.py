import json
import logging
import uuid
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.config import FALLBACK_STATION_POSITION
from app.database.storage import PINS_KEY, JsonDocument, StorageBackend, StorageError
from app.models.pin import MapPin, PinUpdate, RouteInfo, TravelMode
from app.models.place import PointOfInterest, Position
from app.services.classification import group_label
from app.services.stations import (
    is_station_id,
    is_station_position_key,
    parse_station_id,
    station_position_key,
)

logger = logging.getLogger(__name__)

MAX_SELECTED_PINS = 2

INVALID_PIN_ERROR = "Invalid location data"
DUPLICATE_PIN_ERROR = "This location is already saved"

DIRECTIONS_URL = "https://www.google.com/maps/dir/?api=1&origin={o.lat},{o.lng}&destination={d.lat},{d.lng}&travelmode={mode}"


def build_directions_url(origin: Position, destination: Position, mode: TravelMode) -> str:
    return DIRECTIONS_URL.format(o=origin, d=destination, mode=mode)


def _is_valid_stored_pin(entry) -> bool:
    if not isinstance(entry, dict):
        return False
    position = entry.get("position")
    return bool(
        entry.get("id")
        and entry.get("name")
        and isinstance(position, dict)
        and position.get("lat") is not None
        and position.get("lng") is not None
    )


class PinStore:
    """
    The user's saved locations.

    The whole pin list lives in one storage document that is rewritten after
    every change (and removed when the list is empty). Storage faults are
    logged; memory stays authoritative. At most two pins are selected; the
    selection order is kept so the oldest one is evicted first.
    """

    def __init__(self, storage: StorageBackend, session_storage: StorageBackend):
        self._document = JsonDocument(storage, PINS_KEY)
        self._session = session_storage
        self.pins: List[MapPin] = []
        self.selected_ids: List[str] = []
        self.route: Optional[RouteInfo] = None
        self.error: Optional[str] = None
        self._load()

    # --- persistence ---

    def _load(self):
        try:
            stored = self._document.load()
        except (StorageError, ValueError) as e:
            logger.error(f"Error loading pins from storage: {e}", exc_info=True)
            self.error = "Failed to load saved locations"
            return

        if not isinstance(stored, list):
            return

        for entry in stored:
            if not _is_valid_stored_pin(entry):
                continue
            try:
                self.pins.append(MapPin.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable stored pin {entry.get('id')}: {e}")

        # Restore the selection, keeping the bound if the stored data broke it.
        selected = [pin.id for pin in self.pins if pin.is_selected]
        for stale_id in selected[:-MAX_SELECTED_PINS]:
            self._set_selected(stale_id, False)
        self.selected_ids = selected[-MAX_SELECTED_PINS:]

    def _save(self):
        try:
            if not self.pins:
                self._document.clear()
                return
            self._document.save([pin.to_storage() for pin in self.pins])
        except StorageError as e:
            logger.error(f"Failed to save pins to storage: {e}", exc_info=True)

    # --- queries ---

    def get_pin(self, pin_id: str) -> Optional[MapPin]:
        return next((pin for pin in self.pins if pin.id == pin_id), None)

    def find_by_place_id(self, place_id: str) -> Optional[MapPin]:
        return next((pin for pin in self.pins if pin.place_id == place_id), None)

    @property
    def saved_pins(self) -> List[MapPin]:
        return [pin for pin in self.pins if not pin.is_station]

    def get_selected_pins(self) -> List[MapPin]:
        return [pin for pin_id in self.selected_ids if (pin := self.get_pin(pin_id))]

    def selected_pair(self) -> Optional[Tuple[MapPin, MapPin]]:
        selected = self.get_selected_pins()
        if len(selected) != MAX_SELECTED_PINS:
            return None
        return selected[0], selected[1]

    def grouped_pins(self) -> Dict[str, List[MapPin]]:
        groups: Dict[str, List[MapPin]] = {}
        for pin in self.saved_pins:
            groups.setdefault(group_label(pin.types), []).append(pin)
        return groups

    # --- mutations ---

    def _replace(self, updated: MapPin):
        self.pins = [updated if pin.id == updated.id else pin for pin in self.pins]

    def _set_selected(self, pin_id: str, selected: bool):
        pin = self.get_pin(pin_id)
        if pin and pin.is_selected != selected:
            self._replace(pin.model_copy(update={"is_selected": selected}))

    def add_pin(self, poi: PointOfInterest) -> bool:
        if not poi.name or not poi.position or not poi.place_id:
            logger.error(f"Invalid POI data: {poi}")
            self.error = INVALID_PIN_ERROR
            return False

        if self.find_by_place_id(poi.place_id):
            self.error = DUPLICATE_PIN_ERROR
            return False

        data = poi.model_dump()
        data.update(id=str(uuid.uuid4()), is_selected=False)
        self.pins.append(MapPin.model_validate(data))
        self.error = None
        self._save()
        return True

    def remove_pin(self, pin_id: str):
        if not self.get_pin(pin_id):
            logger.debug(f"remove_pin: unknown pin {pin_id}")
            return

        self.pins = [pin for pin in self.pins if pin.id != pin_id]
        if pin_id in self.selected_ids:
            self.selected_ids.remove(pin_id)
            self.route = None
        self._save()

    def toggle_pin_selection(self, pin_id: str) -> bool:
        """
        Selects or deselects a pin. A third selection evicts the oldest one.

        Unknown ``station-...`` ids are turned into a temporary station pin,
        placed from the session position cache. Returns False when the id
        cannot be resolved.
        """
        pin = self.get_pin(pin_id)

        if pin is None:
            if not is_station_id(pin_id):
                logger.error(f"Pin not found: {pin_id}")
                return False
            station_pin = self._build_station_pin(pin_id)
            if station_pin is None:
                return False
            self._evict_if_full()
            self.pins.append(station_pin)
            self.selected_ids.append(station_pin.id)
            self._save()
            return True

        if pin.is_selected:
            self._set_selected(pin_id, False)
            if pin_id in self.selected_ids:
                self.selected_ids.remove(pin_id)
            self.route = None
            self._save()
            return True

        self._evict_if_full()
        self._set_selected(pin_id, True)
        self.selected_ids.append(pin_id)
        self._save()
        return True

    def _evict_if_full(self):
        while len(self.selected_ids) >= MAX_SELECTED_PINS:
            oldest = self.selected_ids.pop(0)
            self._set_selected(oldest, False)
            self.route = None

    def _build_station_pin(self, pin_id: str) -> Optional[MapPin]:
        ref = parse_station_id(pin_id)
        if ref is None:
            logger.error(f"Invalid station ID format: {pin_id}")
            self.error = "Invalid station reference"
            return None

        position = Position.model_validate(FALLBACK_STATION_POSITION)
        try:
            stored = self._session.get_item(station_position_key(pin_id))
            if stored:
                position = Position.model_validate(json.loads(stored))
        except (StorageError, ValueError) as e:
            logger.error(f"Failed to retrieve station position: {e}")

        return MapPin(
            id=pin_id,
            name=f"{ref.station_name} Station ({ref.line_name})",
            address=f"Train Station on {ref.line_name}",
            position=position,
            place_id=pin_id,
            types=["transit_station", "train_station"],
            is_selected=True,
            is_station=True,
        )

    def remember_station_position(self, pin_id: str, position: Position):
        """Caches where a station is so a later toggle can place its pin."""
        try:
            self._session.set_item(station_position_key(pin_id), json.dumps(position.to_storage()))
        except StorageError as e:
            logger.error(f"Failed to store station position: {e}")

    def clear_selection(self):
        for pin_id in list(self.selected_ids):
            self._set_selected(pin_id, False)
        # Also catches pins flagged selected outside the tracked order.
        for pin in list(self.pins):
            if pin.is_selected:
                self._set_selected(pin.id, False)
        self.selected_ids = []
        self.route = None
        self._save()

    def cleanup_temporary_pins(self):
        removed = {pin.id for pin in self.pins if pin.is_station}
        if removed:
            self.pins = [pin for pin in self.pins if not pin.is_station]
            if removed.intersection(self.selected_ids):
                self.selected_ids = [pin_id for pin_id in self.selected_ids if pin_id not in removed]
                self.route = None
            self._save()

        try:
            for key in self._session.keys():
                if is_station_position_key(key):
                    self._session.remove_item(key)
        except StorageError as e:
            logger.error(f"Failed to purge station positions: {e}")

    def update_pin(self, pin_id: str, updates: PinUpdate) -> Optional[MapPin]:
        pin = self.get_pin(pin_id)
        if not pin:
            logger.debug(f"update_pin: unknown pin {pin_id}")
            return None

        changes = updates.model_dump(exclude_unset=True)
        selection = changes.pop("is_selected", None)
        try:
            updated = MapPin.model_validate({**pin.model_dump(), **changes})
        except ValidationError as e:
            logger.error(f"Invalid pin update for {pin_id}: {e}")
            self.error = INVALID_PIN_ERROR
            return None
        if not updated.name:
            logger.error(f"Invalid pin update for {pin_id}: empty name")
            self.error = INVALID_PIN_ERROR
            return None
        self.error = None
        self._replace(updated)

        if selection is not None and selection != pin.is_selected:
            if selection:
                self._evict_if_full()
                self._set_selected(pin_id, True)
                self.selected_ids.append(pin_id)
            else:
                self._set_selected(pin_id, False)
                if pin_id in self.selected_ids:
                    self.selected_ids.remove(pin_id)
                self.route = None

        self._save()
        return self.get_pin(pin_id)

    def clear_pins(self):
        self.pins = []
        self.selected_ids = []
        self.route = None
        self._save()

    def plan_route(self, mode: TravelMode = "transit") -> Optional[RouteInfo]:
        """Builds the external directions link between the two selected pins."""
        pair = self.selected_pair()
        if pair is None:
            logger.error("Need exactly 2 pins selected to plan a route")
            return None
        origin, destination = pair
        self.route = RouteInfo(
            origin=origin.position,
            destination=destination.position,
            mode=mode,
            url=build_directions_url(origin.position, destination.position, mode),
        )
        return self.route
