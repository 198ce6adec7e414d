import logging
import uuid
from typing import Dict, List, Optional

from pydantic import ValidationError

from app.config import get_default_currency
from app.database.storage import ACTIVE_TRIP_KEY, TRIPS_KEY, JsonDocument, StorageBackend, StorageError
from app.models.place import PointOfInterest
from app.models.trip import (
    BUDGET_CATEGORIES,
    Budget,
    BudgetCategory,
    CustomExpense,
    CustomExpenseCreate,
    CustomExpenseUpdate,
    ScheduledLocation,
    ScheduledLocationUpdate,
    ScheduleOptions,
    TripDay,
    TripPlan,
    TripUpdate,
)
from app.services.classification import categorize_place, estimate_budget
from app.utils.dates import InvalidDateError, date_range, format_date, parse_local_date

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def create_empty_day(day_date: str, day_number: int) -> TripDay:
    return TripDay(id=_new_id(), date=day_date, day_number=day_number, notes="")


def build_days(start_date: str, end_date: str, existing: Optional[List[TripDay]] = None) -> List[TripDay]:
    """
    One day per calendar date in [start_date, end_date], numbered from 1.

    Days from ``existing`` whose date is still in range are reused with their
    contents; other dates get a fresh empty day.
    """
    existing_by_date = {day.date: day for day in existing or []}
    days = []
    for number, current in enumerate(date_range(parse_local_date(start_date), parse_local_date(end_date)), start=1):
        day_date = format_date(current)
        day = existing_by_date.get(day_date)
        if day is not None:
            day.day_number = number
        else:
            day = create_empty_day(day_date, number)
        days.append(day)
    return days


def stay_days(plan: TripPlan, host: TripDay, location: ScheduledLocation) -> List[TripDay]:
    """
    Days whose accommodation bucket carries ``location``'s per-day share.

    A multi-day stay lives on its first day but counts on every day up to its
    stay end date; anything else only counts on its own day.
    """
    if not location.stay_multiple_days or not location.stay_end_date:
        return [host]
    return [day for day in plan.days if host.date <= day.date <= location.stay_end_date]


def derive_budget(plan: TripPlan, day: TripDay) -> Budget:
    """Recomputes a day's buckets from the line items of the whole plan."""
    budget = Budget()
    for host in plan.days:
        for location in host.locations:
            if day in stay_days(plan, host, location):
                budget.credit(location.category, location.budget)
    for expense in day.custom_expenses:
        budget.credit(expense.category, expense.amount)
    return budget


class TripPlanner:
    """
    Owns every trip plan and tracks which one is active.

    Day budgets are maintained incrementally: each add/remove/update moves
    exactly the amount involved in and out of the matching bucket, so a day's
    bucket always equals the sum of its line items. Operations on ids that
    no longer exist are ignored.
    """

    def __init__(self, storage: StorageBackend, default_currency: Optional[str] = None):
        self._trips_document = JsonDocument(storage, TRIPS_KEY)
        self._active_document = JsonDocument(storage, ACTIVE_TRIP_KEY)
        self.default_currency = default_currency or get_default_currency()
        self.trips: List[TripPlan] = []
        self.active_trip_id: Optional[str] = None
        self._load()

    # --- persistence ---

    def _load(self):
        try:
            stored_trips = self._trips_document.load()
            active_id = self._active_document.load()
        except (StorageError, ValueError) as e:
            logger.error(f"Error loading trip plans: {e}", exc_info=True)
            return

        for entry in stored_trips if isinstance(stored_trips, list) else []:
            try:
                self.trips.append(TripPlan.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable stored trip: {e}")

        if any(trip.id == active_id for trip in self.trips):
            self.active_trip_id = active_id
        elif self.trips:
            self.active_trip_id = self.trips[0].id

    def _save(self):
        try:
            if self.trips:
                self._trips_document.save([trip.to_storage() for trip in self.trips])
            else:
                self._trips_document.clear()

            if self.active_trip_id:
                self._active_document.save(self.active_trip_id)
            else:
                self._active_document.clear()
        except StorageError as e:
            logger.error(f"Failed to save trip plans: {e}", exc_info=True)

    # --- plan level ---

    @property
    def trip_plan(self) -> Optional[TripPlan]:
        return self.get_trip(self.active_trip_id) if self.active_trip_id else None

    def get_trip(self, trip_id: str) -> Optional[TripPlan]:
        return next((trip for trip in self.trips if trip.id == trip_id), None)

    def get_all_trips(self) -> List[TripPlan]:
        return list(self.trips)

    def create_trip(self, name: str, start_date: str, end_date: str) -> TripPlan:
        start = format_date(parse_local_date(start_date))
        end = format_date(parse_local_date(end_date))
        trip = TripPlan(
            id=_new_id(),
            name=name,
            start_date=start,
            end_date=end,
            days=build_days(start, end),
            currency=self.default_currency,
            notes="",
        )
        logger.info(f"Created trip '{name}' with {len(trip.days)} days from {start} to {end}")

        self.trips.append(trip)
        self.active_trip_id = trip.id
        self._save()
        return trip

    def switch_trip(self, trip_id: str) -> bool:
        if not self.get_trip(trip_id):
            return False
        self.active_trip_id = trip_id
        self._save()
        return True

    def delete_trip(self, trip_id: str):
        if not self.get_trip(trip_id):
            return
        self.trips = [trip for trip in self.trips if trip.id != trip_id]
        if self.active_trip_id == trip_id:
            self.active_trip_id = self.trips[0].id if self.trips else None
        self._save()

    def duplicate_trip(self, trip_id: str, new_name: Optional[str] = None) -> Optional[TripPlan]:
        original = self.get_trip(trip_id)
        if not original:
            return None
        copy = original.model_copy(deep=True)
        copy.id = _new_id()
        copy.name = new_name or f"{original.name} (Copy)"

        self.trips.append(copy)
        self.active_trip_id = copy.id
        self._save()
        return copy

    def update_trip_details(self, details: TripUpdate) -> Optional[TripPlan]:
        """
        Applies field changes to the active plan.

        A new date range rebuilds the days: dates still in range keep their
        day, new dates get an empty one, and dropped dates lose everything
        scheduled on them.
        """
        trip = self.trip_plan
        if not trip:
            return None

        changes = details.model_dump(exclude_unset=True, exclude_none=True)
        start = format_date(parse_local_date(changes.pop("start_date", trip.start_date)))
        end = format_date(parse_local_date(changes.pop("end_date", trip.end_date)))
        if parse_local_date(end) < parse_local_date(start):
            raise InvalidDateError(f"End date {end} is before start date {start}")

        for field, value in changes.items():
            setattr(trip, field, value)

        if start != trip.start_date or end != trip.end_date:
            new_days = build_days(start, end, trip.days)
            kept_ids = {day.id for day in new_days}
            for dropped in [day for day in trip.days if day.id not in kept_ids]:
                self._withdraw_stays(trip, dropped, kept_ids)
            self._clip_stays(trip, kept_ids)
            trip.days = new_days
            trip.start_date = start
            trip.end_date = end

        self._save()
        return trip

    def _withdraw_stays(self, trip: TripPlan, dropped: TripDay, kept_ids: set):
        # A multi-day stay hosted on a dropped day disappears with it, so its
        # share must leave the surviving days of the stay too.
        for location in dropped.locations:
            for day in stay_days(trip, dropped, location):
                if day.id in kept_ids:
                    day.budget.debit(location.category, location.budget)

    def _clip_stays(self, trip: TripPlan, kept_ids: set):
        # A surviving stay ends on its last surviving day.
        for host in trip.days:
            if host.id not in kept_ids:
                continue
            for location in host.locations:
                covered = [day for day in stay_days(trip, host, location) if day.id in kept_ids]
                if location.stay_multiple_days and covered:
                    location.stay_end_date = covered[-1].date

    def reset_trip_planner(self):
        self.trips = []
        self.active_trip_id = None
        self._save()

    # --- day level ---

    def _find_day(self, day_id: str) -> Optional[TripDay]:
        trip = self.trip_plan
        if not trip:
            return None
        day = next((day for day in trip.days if day.id == day_id), None)
        if day is None:
            logger.debug(f"Day {day_id} not found in the active trip")
        return day

    def get_day(self, day_id: str) -> Optional[TripDay]:
        return self._find_day(day_id)

    def add_location_to_day(
            self, day_id: str, poi: PointOfInterest, options: Optional[ScheduleOptions] = None
    ) -> Optional[ScheduledLocation]:
        day = self._find_day(day_id)
        if not day:
            return None

        options = options or ScheduleOptions()
        category = options.category or categorize_place(poi.types)
        budget = options.budget if options.budget is not None else estimate_budget(poi, category)

        location = ScheduledLocation(
            id=_new_id(),
            poi=poi,
            category=category,
            budget=budget,
            time_slot=options.time_slot,
            notes=options.notes,
        )
        day.locations.append(location)
        day.budget.credit(category, budget)
        self._save()
        return location

    def remove_location_from_day(self, day_id: str, location_id: str):
        trip = self.trip_plan
        day = self._find_day(day_id)
        if not day:
            return
        location = next((loc for loc in day.locations if loc.id == location_id), None)
        if not location:
            return

        for covered in stay_days(trip, day, location):
            covered.budget.debit(location.category, location.budget)
        day.locations = [loc for loc in day.locations if loc.id != location_id]
        self._save()

    def add_multi_day_accommodation(
            self, poi: PointOfInterest, start_date: str, end_date: str, total_budget: float = 0
    ) -> Optional[ScheduledLocation]:
        """
        Books one stay across every trip day in [start_date, end_date].

        The location is stored once, on the first covered day; each covered
        day's accommodation bucket gets ``total_budget / covered days``.
        """
        trip = self.trip_plan
        if not trip:
            return None

        start = parse_local_date(start_date)
        end = parse_local_date(end_date)
        covered = [day for day in trip.days if start <= parse_local_date(day.date) <= end]
        if not covered:
            return None

        daily_budget = total_budget / len(covered)
        location = ScheduledLocation(
            id=_new_id(),
            poi=poi,
            category="accommodation",
            budget=daily_budget,
            stay_multiple_days=True,
            stay_end_date=covered[-1].date,
            notes="",
        )
        covered[0].locations.append(location)
        for day in covered:
            day.budget.credit("accommodation", daily_budget)
        self._save()
        return location

    def update_scheduled_location(
            self, day_id: str, location_id: str, updates: ScheduledLocationUpdate
    ) -> Optional[ScheduledLocation]:
        trip = self.trip_plan
        day = self._find_day(day_id)
        if not day:
            return None
        index = next((i for i, loc in enumerate(day.locations) if loc.id == location_id), None)
        if index is None:
            return None

        old = day.locations[index]
        changes = updates.model_dump(exclude_unset=True, exclude_none=True)
        if "poi" in changes:
            changes["poi"] = updates.poi
        if "time_slot" in changes:
            changes["time_slot"] = updates.time_slot
        new = old.model_copy(update=changes)

        covered = stay_days(trip, day, old)
        if new.category != old.category:
            # The whole amount moves to the new bucket.
            for covered_day in covered:
                covered_day.budget.debit(old.category, old.budget)
                covered_day.budget.credit(new.category, new.budget)
        elif new.budget != old.budget:
            for covered_day in covered:
                if new.budget > old.budget:
                    covered_day.budget.credit(old.category, new.budget - old.budget)
                else:
                    covered_day.budget.debit(old.category, old.budget - new.budget)

        day.locations[index] = new
        self._save()
        return new

    def update_day_notes(self, day_id: str, notes: str) -> Optional[TripDay]:
        day = self._find_day(day_id)
        if not day:
            return None
        day.notes = notes
        self._save()
        return day

    # --- custom expenses ---

    def add_custom_expense(self, day_id: str, expense: CustomExpenseCreate) -> Optional[CustomExpense]:
        day = self._find_day(day_id)
        if not day:
            return None

        new_expense = CustomExpense(
            id=_new_id(),
            name=expense.name,
            amount=expense.amount,
            category=expense.category,
            date=expense.date or day.date,
            notes=expense.notes,
            is_paid=expense.is_paid,
        )
        day.custom_expenses.append(new_expense)
        day.budget.credit(new_expense.category, new_expense.amount)
        self._save()
        return new_expense

    def update_custom_expense(
            self, day_id: str, expense_id: str, updates: CustomExpenseUpdate
    ) -> Optional[CustomExpense]:
        day = self._find_day(day_id)
        if not day:
            return None
        index = next((i for i, e in enumerate(day.custom_expenses) if e.id == expense_id), None)
        if index is None:
            return None

        old = day.custom_expenses[index]
        new = old.model_copy(update=updates.model_dump(exclude_unset=True, exclude_none=True))
        if new.amount != old.amount or new.category != old.category:
            day.budget.debit(old.category, old.amount)
            day.budget.credit(new.category, new.amount)

        day.custom_expenses[index] = new
        self._save()
        return new

    def remove_custom_expense(self, day_id: str, expense_id: str) -> bool:
        day = self._find_day(day_id)
        if not day:
            return False
        expense = next((e for e in day.custom_expenses if e.id == expense_id), None)
        if not expense:
            return False

        day.budget.debit(expense.category, expense.amount)
        day.custom_expenses = [e for e in day.custom_expenses if e.id != expense_id]
        self._save()
        return True

    # --- budget views ---

    def get_total_budget(self) -> Budget:
        total = Budget()
        trip = self.trip_plan
        if not trip:
            return total
        for day in trip.days:
            for category in BUDGET_CATEGORIES:
                total.credit(category, getattr(day.budget, category))
        return total

    def get_total_expenses_by_category(self) -> Budget:
        """Re-derives the totals from the line items themselves."""
        total = Budget()
        trip = self.trip_plan
        if not trip:
            return total
        for day in trip.days:
            derived = derive_budget(trip, day)
            for category in BUDGET_CATEGORIES:
                total.credit(category, getattr(derived, category))
        return total

    def get_custom_expenses_by_category(self) -> Dict[BudgetCategory, List[CustomExpense]]:
        grouped: Dict[BudgetCategory, List[CustomExpense]] = {category: [] for category in BUDGET_CATEGORIES}
        trip = self.trip_plan
        if not trip:
            return grouped
        for day in trip.days:
            for expense in day.custom_expenses:
                grouped[expense.category].append(expense)
        return grouped
