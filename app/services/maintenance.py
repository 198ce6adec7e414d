import json
import logging
from typing import List

from app.database.storage import PINS_KEY, TRIPS_KEY, StorageBackend, StorageError
from app.models.base import CamelModel
from app.services.pin_store import PinStore
from app.services.trip_planner import TripPlanner

logger = logging.getLogger(__name__)


class StorageReport(CamelModel):
    stored_pins: int = 0
    displayed_pins: int = 0
    has_missing_pins: bool = False


def check_and_fix_data_issues(storage: StorageBackend) -> List[str]:
    """
    Removes stored documents that no longer parse as a JSON array.

    Runs before the stores load. Returns the keys that were removed.
    """
    removed = []
    for key in (PINS_KEY, TRIPS_KEY):
        try:
            raw = storage.get_item(key)
            if raw is None:
                continue
            try:
                corrupt = not isinstance(json.loads(raw), list)
            except ValueError:
                corrupt = True
            if corrupt:
                logger.error(f"Corrupt data detected under '{key}', resetting it")
                storage.remove_item(key)
                removed.append(key)
        except StorageError as e:
            logger.error(f"Error checking data issues for '{key}': {e}", exc_info=True)
    return removed


def reset_all_data(pin_store: PinStore, trip_planner: TripPlanner):
    pin_store.clear_pins()
    pin_store.cleanup_temporary_pins()
    trip_planner.reset_trip_planner()
    logger.info("All application data has been reset")


def storage_report(storage: StorageBackend, pin_store: PinStore) -> StorageReport:
    """Compares the non-station pins in storage with the ones the store shows."""
    displayed = len(pin_store.saved_pins)
    try:
        raw = storage.get_item(PINS_KEY)
        stored = json.loads(raw) if raw else []
    except (StorageError, ValueError) as e:
        logger.error(f"Error checking stored pins: {e}", exc_info=True)
        return StorageReport(displayed_pins=displayed)

    if not isinstance(stored, list):
        stored = []
    stored_count = len([pin for pin in stored if isinstance(pin, dict) and not pin.get("isStation")])
    return StorageReport(
        stored_pins=stored_count,
        displayed_pins=displayed,
        has_missing_pins=stored_count > displayed,
    )
