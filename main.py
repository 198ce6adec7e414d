# file: main.py
import logging

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_cors_origins
from app.controllers.map import router as map_router
from app.controllers.pins import router as pins_router
from app.controllers.places import router as places_router
from app.controllers.storage import router as storage_router
from app.controllers.trips import router as trips_router
from app.database.connection import SessionLocal, init_db
from app.database.storage import MemoryStorage, SqlStorage
from app.dependencies import build_state
from app.services.maintenance import check_and_fix_data_issues

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Japan Trip Planner API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pins_router, prefix="/api/pins", tags=["pins"])
app.include_router(trips_router, prefix="/api/trips", tags=["trips"])
app.include_router(places_router, prefix="/api/places", tags=["places"])
app.include_router(map_router, prefix="/api/map", tags=["map"])
app.include_router(storage_router, prefix="/api/storage", tags=["storage"])


@app.get("/")
async def root():
    return {"message": "Japan Trip Planner API is running"}


@app.on_event("startup")
async def startup_event():
    init_db()
    storage = SqlStorage(SessionLocal)
    removed = check_and_fix_data_issues(storage)
    if removed:
        logger.warning(f"Reset corrupt stored data: {', '.join(removed)}")
    # Station positions only live for the current run.
    build_state(app, storage, MemoryStorage(), httpx.AsyncClient())


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.http_client.aclose()
