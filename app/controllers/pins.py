from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Dict, List

from app.dependencies import get_pin_store
from app.models.pin import MapPin, PinUpdate, RouteInfo, SavedLocation, SelectionState, TravelMode
from app.models.place import PointOfInterest, Position
from app.services.pin_store import DUPLICATE_PIN_ERROR, PinStore
from app.services.stations import is_station_id
from app.utils.formatting import format_price

router = APIRouter()


def to_saved_location(pin: MapPin) -> SavedLocation:
    return SavedLocation(**pin.model_dump(), price_label=format_price(pin))


def selection_state(store: PinStore) -> SelectionState:
    return SelectionState(selected_ids=list(store.selected_ids), route=store.route)


@router.get("/", response_model=List[MapPin])
async def list_pins(store: PinStore = Depends(get_pin_store)):
    return store.pins


@router.post("/", response_model=MapPin, status_code=status.HTTP_201_CREATED)
async def add_pin(poi: PointOfInterest, store: PinStore = Depends(get_pin_store)):
    if not store.add_pin(poi):
        if store.error == DUPLICATE_PIN_ERROR:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=store.error)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=store.error)
    return store.find_by_place_id(poi.place_id)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_pins(store: PinStore = Depends(get_pin_store)):
    store.clear_pins()


@router.get("/saved", response_model=List[SavedLocation])
async def get_saved_pins(store: PinStore = Depends(get_pin_store)):
    return [to_saved_location(pin) for pin in store.saved_pins]


@router.get("/grouped", response_model=Dict[str, List[SavedLocation]])
async def get_grouped_pins(store: PinStore = Depends(get_pin_store)):
    return {
        label: [to_saved_location(pin) for pin in pins]
        for label, pins in store.grouped_pins().items()
    }


@router.get("/selection", response_model=SelectionState)
async def get_selection(store: PinStore = Depends(get_pin_store)):
    return selection_state(store)


@router.post("/selection/clear", response_model=SelectionState)
async def clear_selection(store: PinStore = Depends(get_pin_store)):
    store.clear_selection()
    return selection_state(store)


@router.post("/cleanup", status_code=status.HTTP_204_NO_CONTENT)
async def cleanup_temporary_pins(store: PinStore = Depends(get_pin_store)):
    store.cleanup_temporary_pins()


@router.get("/route", response_model=RouteInfo)
async def plan_route(mode: TravelMode = Query("transit"), store: PinStore = Depends(get_pin_store)):
    route = store.plan_route(mode)
    if not route:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Select exactly two locations to get directions.",
        )
    return route


@router.put("/stations/{pin_id}/position", status_code=status.HTTP_204_NO_CONTENT)
async def remember_station_position(pin_id: str, position: Position, store: PinStore = Depends(get_pin_store)):
    if not is_station_id(pin_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Not a station pin id.")
    store.remember_station_position(pin_id, position)


@router.get("/{pin_id}", response_model=MapPin)
async def get_pin(pin_id: str, store: PinStore = Depends(get_pin_store)):
    pin = store.get_pin(pin_id)
    if not pin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pin not found.")
    return pin


@router.patch("/{pin_id}", response_model=MapPin)
async def update_pin(pin_id: str, updates: PinUpdate, store: PinStore = Depends(get_pin_store)):
    if not store.get_pin(pin_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pin not found.")
    pin = store.update_pin(pin_id, updates)
    if not pin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=store.error)
    return pin


@router.delete("/{pin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_pin(pin_id: str, store: PinStore = Depends(get_pin_store)):
    if not store.get_pin(pin_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pin not found.")
    store.remove_pin(pin_id)


@router.post("/{pin_id}/toggle", response_model=SelectionState)
async def toggle_pin_selection(pin_id: str, store: PinStore = Depends(get_pin_store)):
    if not store.toggle_pin_selection(pin_id):
        if is_station_id(pin_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=store.error)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pin not found.")
    return selection_state(store)
