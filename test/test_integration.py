import json
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database.models import Base
from app.database.storage import ACTIVE_TRIP_KEY, PINS_KEY, TRIPS_KEY, MemoryStorage, SqlStorage
from app.models.place import PointOfInterest, Position
from app.models.trip import CustomExpenseCreate, ScheduleOptions
from app.services.maintenance import check_and_fix_data_issues
from app.services.pin_store import PinStore
from app.services.places_client import GooglePlacesClient, PlacesApiError
from app.services.search_gateway import SearchGateway
from app.services.trip_planner import TripPlanner, derive_budget

API_KEY = "test-key"

# --- Mock Google Places responses ---

TEXTSEARCH_PAGE_1 = {
    "status": "OK",
    "results": [
        {
            "place_id": "ichiran-shibuya",
            "name": "Ichiran Shibuya",
            "formatted_address": "1-22-7 Jinnan, Shibuya City, Tokyo",
            "geometry": {"location": {"lat": 35.6614, "lng": 139.7005}},
            "types": ["restaurant", "food", "point_of_interest"],
            "price_level": 1,
            "rating": 4.3,
            "photos": [{"photo_reference": "photo-ref-1"}],
        },
        {
            "place_id": "no-geometry",
            "name": "Somewhere without coordinates",
            "types": ["point_of_interest"],
        },
    ],
    "next_page_token": "page-2",
}

TEXTSEARCH_PAGE_2 = {
    "status": "OK",
    "results": [
        {
            "place_id": "afuri-harajuku",
            "name": "AFURI Harajuku",
            "formatted_address": "Harajuku, Tokyo",
            "geometry": {"location": {"lat": 35.6715, "lng": 139.7060}},
            "types": ["restaurant"],
        },
    ],
}

GHIBLI_DETAILS = {
    "status": "OK",
    "result": {
        "place_id": "ghibli",
        "name": "Ghibli Museum",
        "formatted_address": "1-1-83 Shimorenjaku, Mitaka, Tokyo",
        "geometry": {"location": {"lat": 35.6962, "lng": 139.5704}},
        "types": ["museum", "point_of_interest"],
        "price_level": 2,
        "rating": 4.5,
        "reviews": [
            {"text": "The entrance fee is 1000 yen. We spent about 2 hours inside."},
            {"text": "Lovely place"},
        ],
        "opening_hours": {"weekday_text": ["Monday: 10:00 AM – 6:00 PM"]},
        "website": "https://www.ghibli-museum.jp",
        "formatted_phone_number": "0570-055777",
        "photos": [{"photo_reference": "photo-ref-2"}],
    },
}

PLAIN_DETAILS = {
    "status": "OK",
    "result": {
        "place_id": "quiet-shrine",
        "name": "Quiet Shrine",
        "geometry": {"location": {"lat": 35.0, "lng": 135.7}},
        "types": ["place_of_worship"],
    },
}


def places_handler(request: httpx.Request) -> httpx.Response:
    params = request.url.params
    if request.url.path.endswith("/textsearch/json"):
        if params.get("pagetoken") == "page-2":
            return httpx.Response(200, json=TEXTSEARCH_PAGE_2)
        if params.get("query") == "denied japan":
            return httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."})
        if params.get("query") == "outage japan":
            return httpx.Response(503, text="Service Unavailable")
        return httpx.Response(200, json=TEXTSEARCH_PAGE_1)

    if request.url.path.endswith("/details/json"):
        place_id = params.get("placeid")
        if place_id == "ghibli":
            return httpx.Response(200, json=GHIBLI_DETAILS)
        if place_id == "quiet-shrine":
            return httpx.Response(200, json=PLAIN_DETAILS)
        if place_id == "slow":
            raise httpx.ReadTimeout("timed out", request=request)
        if place_id == "garbage":
            return httpx.Response(200, text="<html>not json</html>")
        if place_id == "over-quota":
            return httpx.Response(200, json={"status": "OVER_QUERY_LIMIT"})
        return httpx.Response(200, json={"status": "NOT_FOUND"})

    return httpx.Response(404)


# --- Fixtures ---

@pytest_asyncio.fixture(scope="function")
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(places_handler)) as client:
        yield client


@pytest.fixture
def places_client(http_client: httpx.AsyncClient) -> GooglePlacesClient:
    return GooglePlacesClient(http_client, api_key=API_KEY, timeout=1.0, prices_timeout=1.0)


@pytest.fixture
def sql_storage():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield SqlStorage(sessionmaker(bind=engine, expire_on_commit=False))
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def make_poi(place_id, name, types, lat=35.0, lng=139.0, price=None):
    return PointOfInterest(
        id=place_id, name=name, position={"lat": lat, "lng": lng}, place_id=place_id, types=types, price=price,
    )


###############################################################
# 1. Google Places client over a mocked transport
###############################################################

@pytest.mark.asyncio
async def test_itc_001_search_sends_location_biased_query(http_client, places_client, mocker):
    """Text search appends "japan" and biases results around Tokyo when no location is given."""
    spy = mocker.spy(http_client, "get")
    result = await places_client.search("ramen")

    params = spy.call_args.kwargs["params"]
    assert params["query"] == "ramen japan"
    assert params["location"] == "35.6762,139.6503"
    assert params["radius"] == "50000"
    assert params["key"] == API_KEY

    first, second = result["places"]
    assert first["placeId"] == "ichiran-shibuya"
    assert first["position"] == {"lat": 35.6614, "lng": 139.7005}
    assert first["price"] == {"level": 1, "currency": "¥"}
    assert "photoreference=photo-ref-1" in first["photos"][0]
    assert second["position"] is None
    assert second["price"] is None
    assert result["nextPageToken"] == "page-2"


@pytest.mark.asyncio
async def test_itc_002_search_with_explicit_location(http_client, places_client, mocker):
    spy = mocker.spy(http_client, "get")
    await places_client.search("temple", location=Position(lat=35.0116, lng=135.7681))
    assert spy.call_args.kwargs["params"]["location"] == "35.0116,135.7681"


@pytest.mark.asyncio
async def test_itc_003_search_next_page_uses_only_the_token(http_client, places_client, mocker):
    spy = mocker.spy(http_client, "get")
    result = await places_client.search(page_token="page-2")

    params = spy.call_args.kwargs["params"]
    assert params["pagetoken"] == "page-2"
    assert "query" not in params
    assert [place["placeId"] for place in result["places"]] == ["afuri-harajuku"]
    assert result["nextPageToken"] is None


@pytest.mark.asyncio
async def test_itc_004_search_error_status_raises(places_client):
    with pytest.raises(PlacesApiError, match="REQUEST_DENIED"):
        await places_client.search("denied")


@pytest.mark.asyncio
async def test_itc_005_search_http_failure_raises(places_client):
    with pytest.raises(PlacesApiError):
        await places_client.search("outage")


@pytest.mark.asyncio
async def test_itc_006_details_builds_price_and_visit_info(places_client):
    details = await places_client.details("ghibli")

    assert details["placeId"] == "ghibli"
    assert details["address"] == "1-1-83 Shimorenjaku, Mitaka, Tokyo"
    assert details["openingHours"] == ["Monday: 10:00 AM – 6:00 PM"]
    assert details["phoneNumber"] == "0570-055777"

    price = details["price"]
    assert price["level"] == 2
    assert price["formattedPrice"] == "Moderate"
    assert price["entranceFee"] == 1000
    assert price["value"] == 1000
    assert price["ticketInfo"] == "The entrance fee is 1000 yen"
    assert price["source"] == "Google Places"
    assert details["additionalInfo"] == {"estimatedDuration": "2 hours"}


@pytest.mark.asyncio
async def test_itc_007_details_empty_statuses_return_nothing(places_client):
    assert await places_client.details("unknown-place") == {}


@pytest.mark.asyncio
async def test_itc_008_details_failures_raise(places_client):
    with pytest.raises(PlacesApiError):
        await places_client.details("over-quota")
    with pytest.raises(PlacesApiError):
        await places_client.details("slow")
    with pytest.raises(PlacesApiError):
        await places_client.details("garbage")


@pytest.mark.asyncio
async def test_itc_009_price_estimate_prefers_details_price(places_client):
    estimate = await places_client.get_price_estimate("ghibli", "Ghibli Museum", "museum")
    assert estimate.entrance_fee == 1000
    assert estimate.source == "Google Places"


@pytest.mark.asyncio
async def test_itc_010_price_estimate_falls_back_to_local_estimates(places_client):
    plain = await places_client.get_price_estimate("quiet-shrine", None, None)
    assert plain.source == "Estimated"
    assert plain.entrance_fee == 1500

    timed_out = await places_client.get_price_estimate("slow", "Tokyo DisneySea", None)
    assert timed_out.entrance_fee == 9400

    by_name = await places_client.get_price_estimate(None, "teamLab Planets", None)
    assert by_name.entrance_fee == 3200


###############################################################
# 2. Search gateway on the real client
###############################################################

@pytest.mark.asyncio
async def test_itc_011_search_then_paginate(places_client):
    gateway = SearchGateway(places_client)

    await gateway.search("ramen")
    assert [place.place_id for place in gateway.results] == ["ichiran-shibuya"]
    assert gateway.next_page_token == "page-2"

    await gateway.fetch_next_page()
    assert [place.place_id for place in gateway.results] == ["ichiran-shibuya", "afuri-harajuku"]
    assert gateway.next_page_token is None
    assert gateway.error is None


@pytest.mark.asyncio
async def test_itc_012_search_failure_is_reported_on_the_state(places_client):
    gateway = SearchGateway(places_client)
    await gateway.search("denied")

    state = gateway.state()
    assert state.places == []
    assert state.error == "Failed to search places. Please try again."
    assert state.is_loading is False


@pytest.mark.asyncio
async def test_itc_013_details_with_price_estimate(places_client):
    gateway = SearchGateway(places_client)
    poi = await gateway.get_details("ghibli")

    assert poi.name == "Ghibli Museum"
    assert poi.price.entrance_fee == 1000
    assert poi.price.level == 2
    assert poi.additional_info.estimated_duration == "2 hours"

    assert await gateway.get_details("unknown-place") is None
    assert gateway.error is None

    assert await gateway.get_details("over-quota") is None
    assert gateway.error == "Failed to get place details"


###############################################################
# 3. Stores persisted in the SQL key-value table
###############################################################

def test_itc_014_pins_survive_a_restart(sql_storage):
    store = PinStore(sql_storage, MemoryStorage())
    store.add_pin(make_poi("tower", "Tokyo Tower", ["tourist_attraction"], 35.6586, 139.7454))
    store.add_pin(make_poi("skytree", "Tokyo Skytree", ["tourist_attraction"], 35.7101, 139.8107))
    store.toggle_pin_selection(store.pins[1].id)

    restarted = PinStore(sql_storage, MemoryStorage())
    assert restarted.pins == store.pins
    assert restarted.selected_ids == [store.pins[1].id]

    stored = json.loads(sql_storage.get_item(PINS_KEY))
    assert stored[0]["placeId"] == "tower"
    assert stored[1]["isSelected"] is True


def test_itc_015_trip_plans_survive_a_restart(sql_storage):
    planner = TripPlanner(sql_storage)
    trip = planner.create_trip("Kansai", "2024-11-01", "2024-11-03")
    planner.add_multi_day_accommodation(
        make_poi("ryokan", "Kyoto Ryokan", ["lodging"]), "2024-11-01", "2024-11-02", 40000,
    )
    planner.add_location_to_day(trip.days[2].id, make_poi("usj", "Universal Studios Japan", ["amusement_park"]),
                                ScheduleOptions(budget=8600))
    planner.add_custom_expense(trip.days[0].id, CustomExpenseCreate(name="ICOCA", amount=2000,
                                                                     category="transportation"))

    restarted = TripPlanner(sql_storage)
    reloaded = restarted.trip_plan
    assert reloaded == trip
    assert [day.budget.accommodation for day in reloaded.days] == [20000, 20000, 0]
    for day in reloaded.days:
        assert day.budget.as_dict() == derive_budget(reloaded, day).as_dict()
    assert json.loads(sql_storage.get_item(ACTIVE_TRIP_KEY)) == trip.id


def test_itc_016_startup_check_repairs_corrupt_rows(sql_storage):
    sql_storage.set_item(PINS_KEY, json.dumps({"not": "a list"}))
    sql_storage.set_item(TRIPS_KEY, "[{broken")

    assert sorted(check_and_fix_data_issues(sql_storage)) == sorted([PINS_KEY, TRIPS_KEY])
    assert sql_storage.keys() == []

    store = PinStore(sql_storage, MemoryStorage())
    assert store.pins == []
    assert store.error is None
