from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from app.dependencies import get_search_gateway
from app.models.place import PointOfInterest, Position, PriceEstimate, SearchState
from app.services.search_gateway import SearchGateway

router = APIRouter()


@router.get("/search", response_model=SearchState)
async def search_places(
        query: str = Query(..., min_length=1),
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        gateway: SearchGateway = Depends(get_search_gateway),
):
    location = Position(lat=lat, lng=lng) if lat is not None and lng is not None else None
    await gateway.search(query, location)
    return gateway.state()


@router.post("/search/next", response_model=SearchState)
async def fetch_next_page(gateway: SearchGateway = Depends(get_search_gateway)):
    await gateway.fetch_next_page()
    return gateway.state()


@router.delete("/search", status_code=status.HTTP_204_NO_CONTENT)
async def clear_search(gateway: SearchGateway = Depends(get_search_gateway)):
    gateway.clear()


@router.get("/details/{place_id}", response_model=PointOfInterest)
async def get_place_details(place_id: str, gateway: SearchGateway = Depends(get_search_gateway)):
    details = await gateway.get_details(place_id)
    if not details:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No details found for this place.")
    return details


@router.get("/prices", response_model=PriceEstimate, response_model_exclude_none=True)
async def get_price_estimate(
        place_id: Optional[str] = Query(None, alias="placeId"),
        name: Optional[str] = None,
        place_type: Optional[str] = Query(None, alias="type"),
        gateway: SearchGateway = Depends(get_search_gateway),
):
    if not place_id and not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Place ID or name is required")
    return await gateway.get_price_estimate(place_id, name, place_type)
