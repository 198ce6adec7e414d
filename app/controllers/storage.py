from fastapi import APIRouter, Depends, status

from app.database.storage import StorageBackend
from app.dependencies import get_pin_store, get_storage, get_trip_planner
from app.services.maintenance import StorageReport, reset_all_data, storage_report
from app.services.pin_store import PinStore
from app.services.trip_planner import TripPlanner

router = APIRouter()


@router.get("/check", response_model=StorageReport)
async def check_storage(storage: StorageBackend = Depends(get_storage), store: PinStore = Depends(get_pin_store)):
    return storage_report(storage, store)


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_storage(
        store: PinStore = Depends(get_pin_store),
        planner: TripPlanner = Depends(get_trip_planner),
):
    reset_all_data(store, planner)
