"""
Store wiring.

One instance of each store lives on ``app.state`` for the life of the
process; routers reach them through these dependencies, which tests
replace with ``app.dependency_overrides``.
"""
import httpx
from fastapi import FastAPI, Request

from app.database.storage import StorageBackend
from app.services.pin_store import PinStore
from app.services.places_client import GooglePlacesClient
from app.services.search_gateway import SearchGateway
from app.services.trip_planner import TripPlanner


def build_state(app: FastAPI, storage: StorageBackend, session_storage: StorageBackend,
                http_client: httpx.AsyncClient):
    app.state.storage = storage
    app.state.http_client = http_client
    app.state.pin_store = PinStore(storage, session_storage)
    app.state.trip_planner = TripPlanner(storage)
    app.state.search_gateway = SearchGateway(GooglePlacesClient(http_client))


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage


def get_pin_store(request: Request) -> PinStore:
    return request.app.state.pin_store


def get_trip_planner(request: Request) -> TripPlanner:
    return request.app.state.trip_planner


def get_search_gateway(request: Request) -> SearchGateway:
    return request.app.state.search_gateway
