import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_trip_planner
from app.models.trip import (
    BudgetSummary,
    CustomExpense,
    CustomExpenseCreate,
    CustomExpenseUpdate,
    DayNotesUpdate,
    ExpenseSummary,
    MultiDayAccommodationCreate,
    ScheduledLocation,
    ScheduledLocationCreate,
    ScheduledLocationUpdate,
    ScheduleOptions,
    TripCollection,
    TripCreate,
    TripDay,
    TripDuplicate,
    TripPlan,
    TripUpdate,
)
from app.services.trip_planner import TripPlanner
from app.utils.dates import InvalidDateError

router = APIRouter()
logger = logging.getLogger(__name__)


def require_active_trip(planner: TripPlanner) -> TripPlan:
    trip = planner.trip_plan
    if not trip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active trip plan.")
    return trip


def require_day(planner: TripPlanner, day_id: str) -> TripDay:
    require_active_trip(planner)
    day = planner.get_day(day_id)
    if not day:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Day not found in the active trip.")
    return day


@router.get("/", response_model=TripCollection)
async def get_trips(planner: TripPlanner = Depends(get_trip_planner)):
    return TripCollection(trips=planner.get_all_trips(), active_trip_id=planner.active_trip_id)


@router.post("/", response_model=TripPlan, status_code=status.HTTP_201_CREATED)
async def create_trip(trip: TripCreate, planner: TripPlanner = Depends(get_trip_planner)):
    try:
        return planner.create_trip(trip.name, trip.start_date, trip.end_date)
    except InvalidDateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def reset_trip_planner(planner: TripPlanner = Depends(get_trip_planner)):
    planner.reset_trip_planner()


@router.get("/active", response_model=TripPlan)
async def get_active_trip(planner: TripPlanner = Depends(get_trip_planner)):
    return require_active_trip(planner)


@router.patch("/active", response_model=TripPlan)
async def update_trip_details(details: TripUpdate, planner: TripPlanner = Depends(get_trip_planner)):
    require_active_trip(planner)
    try:
        return planner.update_trip_details(details)
    except InvalidDateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/active/budget", response_model=BudgetSummary)
async def get_budget(planner: TripPlanner = Depends(get_trip_planner)):
    trip = require_active_trip(planner)
    categories = planner.get_total_budget()
    total = sum(categories.as_dict().values())
    remaining = trip.total_budget - total if trip.total_budget is not None else None
    return BudgetSummary(
        currency=trip.currency,
        categories=categories,
        total=total,
        total_budget=trip.total_budget,
        remaining=remaining,
    )


@router.get("/active/expenses", response_model=ExpenseSummary)
async def get_expenses(planner: TripPlanner = Depends(get_trip_planner)):
    require_active_trip(planner)
    return ExpenseSummary(
        by_category=planner.get_custom_expenses_by_category(),
        totals=planner.get_total_expenses_by_category(),
    )


@router.post("/active/accommodations", response_model=ScheduledLocation, status_code=status.HTTP_201_CREATED)
async def add_multi_day_accommodation(stay: MultiDayAccommodationCreate,
                                      planner: TripPlanner = Depends(get_trip_planner)):
    require_active_trip(planner)
    try:
        location = planner.add_multi_day_accommodation(stay.poi, stay.start_date, stay.end_date, stay.total_budget)
    except InvalidDateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not location:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No trip days fall within the requested stay.",
        )
    return location


@router.put("/active/days/{day_id}/notes", response_model=TripDay)
async def update_day_notes(day_id: str, update: DayNotesUpdate, planner: TripPlanner = Depends(get_trip_planner)):
    require_day(planner, day_id)
    return planner.update_day_notes(day_id, update.notes)


@router.post("/active/days/{day_id}/locations", response_model=ScheduledLocation,
             status_code=status.HTTP_201_CREATED)
async def add_location_to_day(day_id: str, location: ScheduledLocationCreate,
                              planner: TripPlanner = Depends(get_trip_planner)):
    require_day(planner, day_id)
    options = ScheduleOptions(
        category=location.category,
        budget=location.budget,
        time_slot=location.time_slot,
        notes=location.notes,
    )
    return planner.add_location_to_day(day_id, location.poi, options)


@router.patch("/active/days/{day_id}/locations/{location_id}", response_model=ScheduledLocation)
async def update_scheduled_location(day_id: str, location_id: str, updates: ScheduledLocationUpdate,
                                    planner: TripPlanner = Depends(get_trip_planner)):
    require_day(planner, day_id)
    location = planner.update_scheduled_location(day_id, location_id, updates)
    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Scheduled location not found.")
    return location


@router.delete("/active/days/{day_id}/locations/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_location_from_day(day_id: str, location_id: str, planner: TripPlanner = Depends(get_trip_planner)):
    day = require_day(planner, day_id)
    if not any(location.id == location_id for location in day.locations):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Scheduled location not found.")
    planner.remove_location_from_day(day_id, location_id)


@router.post("/active/days/{day_id}/expenses", response_model=CustomExpense, status_code=status.HTTP_201_CREATED)
async def add_custom_expense(day_id: str, expense: CustomExpenseCreate,
                             planner: TripPlanner = Depends(get_trip_planner)):
    require_day(planner, day_id)
    return planner.add_custom_expense(day_id, expense)


@router.patch("/active/days/{day_id}/expenses/{expense_id}", response_model=CustomExpense)
async def update_custom_expense(day_id: str, expense_id: str, updates: CustomExpenseUpdate,
                                planner: TripPlanner = Depends(get_trip_planner)):
    require_day(planner, day_id)
    expense = planner.update_custom_expense(day_id, expense_id, updates)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found.")
    return expense


@router.delete("/active/days/{day_id}/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_custom_expense(day_id: str, expense_id: str, planner: TripPlanner = Depends(get_trip_planner)):
    require_day(planner, day_id)
    if not planner.remove_custom_expense(day_id, expense_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found.")


@router.post("/{trip_id}/activate", response_model=TripPlan)
async def switch_trip(trip_id: str, planner: TripPlanner = Depends(get_trip_planner)):
    if not planner.switch_trip(trip_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip plan not found.")
    return planner.trip_plan


@router.post("/{trip_id}/duplicate", response_model=TripPlan, status_code=status.HTTP_201_CREATED)
async def duplicate_trip(trip_id: str, body: Optional[TripDuplicate] = None,
                         planner: TripPlanner = Depends(get_trip_planner)):
    copy = planner.duplicate_trip(trip_id, body.name if body else None)
    if not copy:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip plan not found.")
    logger.info(f"Duplicated trip {trip_id} as {copy.id}")
    return copy


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(trip_id: str, planner: TripPlanner = Depends(get_trip_planner)):
    if not planner.get_trip(trip_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip plan not found.")
    planner.delete_trip(trip_id)
