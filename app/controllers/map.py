from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.config import DEFAULT_CENTER
from app.dependencies import get_pin_store
from app.services.pin_store import PinStore
from app.services.stations import MAP_VIEWS, lines_for_view, station_markers

router = APIRouter()


@router.get("/markers")
async def get_markers(view: str = Query("japan"), store: PinStore = Depends(get_pin_store)):
    """Everything the map draws for ``view``: pins, station markers and line polylines."""
    if view not in MAP_VIEWS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown map view '{view}'. Expected one of: {', '.join(MAP_VIEWS)}",
        )

    return {
        "view": view,
        "center": DEFAULT_CENTER,
        "pins": [pin.to_storage() for pin in store.pins],
        "stations": [marker.to_dict() for marker in station_markers(view)],
        "lines": [
            {
                "name": line.name,
                "color": line.color,
                "description": line.description,
                "path": [{"lat": station.lat, "lng": station.lng} for station in line.stations],
            }
            for line in lines_for_view(view)
        ],
    }
