from pydantic import Field, field_validator
from typing import Dict, List, Literal, Optional, Tuple

from app.models.base import CamelModel
from app.models.place import PointOfInterest

BudgetCategory = Literal["accommodation", "food", "activities", "transportation", "shopping", "other"]

BUDGET_CATEGORIES: Tuple[BudgetCategory, ...] = (
    "accommodation",
    "food",
    "activities",
    "transportation",
    "shopping",
    "other",
)


class Budget(CamelModel):
    accommodation: float = 0
    food: float = 0
    activities: float = 0
    transportation: float = 0
    shopping: float = 0
    other: float = 0

    def credit(self, category: BudgetCategory, amount: float) -> None:
        setattr(self, category, getattr(self, category) + amount)

    def debit(self, category: BudgetCategory, amount: float) -> None:
        # Buckets never go negative.
        setattr(self, category, max(0, getattr(self, category) - amount))

    def as_dict(self) -> Dict[str, float]:
        return {category: getattr(self, category) for category in BUDGET_CATEGORIES}


class TimeSlot(CamelModel):
    start_time: Optional[str] = None  # "HH:MM"
    end_time: Optional[str] = None


class ScheduledLocation(CamelModel):
    id: str
    poi: PointOfInterest
    time_slot: Optional[TimeSlot] = None
    category: BudgetCategory
    budget: float = 0
    notes: Optional[str] = None
    stay_multiple_days: Optional[bool] = None
    stay_end_date: Optional[str] = None
    is_completed: Optional[bool] = None


class CustomExpense(CamelModel):
    id: str
    name: str
    amount: float = Field(ge=0)
    category: BudgetCategory
    date: str
    notes: Optional[str] = None
    is_paid: Optional[bool] = None


class Weather(CamelModel):
    condition: Optional[str] = None
    temperature: Optional[float] = None
    icon: Optional[str] = None


class TripDay(CamelModel):
    id: str
    date: str
    day_number: int
    locations: List[ScheduledLocation] = []
    custom_expenses: List[CustomExpense] = []
    notes: Optional[str] = ""
    weather: Optional[Weather] = None
    budget: Budget = Field(default_factory=Budget)


class TripPlan(CamelModel):
    id: str
    name: str
    start_date: str
    end_date: str
    days: List[TripDay] = []
    currency: str = "JPY"
    total_budget: Optional[float] = None
    notes: Optional[str] = ""


# --- Request models ---

class TripCreate(CamelModel):
    name: str
    start_date: str
    end_date: str

    @field_validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Trip name cannot be empty')
        return v.strip()


class TripUpdate(CamelModel):
    name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    currency: Optional[str] = None
    total_budget: Optional[float] = None
    notes: Optional[str] = None


class TripDuplicate(CamelModel):
    name: Optional[str] = None


class ScheduleOptions(CamelModel):
    """Overrides accepted when scheduling a place onto a day."""

    category: Optional[BudgetCategory] = None
    budget: Optional[float] = Field(default=None, ge=0)
    time_slot: Optional[TimeSlot] = None
    notes: Optional[str] = None


class ScheduledLocationCreate(ScheduleOptions):
    poi: PointOfInterest


class ScheduledLocationUpdate(CamelModel):
    poi: Optional[PointOfInterest] = None
    time_slot: Optional[TimeSlot] = None
    category: Optional[BudgetCategory] = None
    budget: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    is_completed: Optional[bool] = None


class MultiDayAccommodationCreate(CamelModel):
    poi: PointOfInterest
    start_date: str
    end_date: str
    total_budget: float = Field(default=0, ge=0)


class DayNotesUpdate(CamelModel):
    notes: str


class CustomExpenseCreate(CamelModel):
    name: str
    amount: float = Field(ge=0)
    category: BudgetCategory
    date: Optional[str] = None
    notes: Optional[str] = None
    is_paid: Optional[bool] = None


class CustomExpenseUpdate(CamelModel):
    name: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    category: Optional[BudgetCategory] = None
    date: Optional[str] = None
    notes: Optional[str] = None
    is_paid: Optional[bool] = None


class TripCollection(CamelModel):
    trips: List[TripPlan] = []
    active_trip_id: Optional[str] = None


class BudgetSummary(CamelModel):
    currency: str
    categories: Budget
    total: float
    total_budget: Optional[float] = None
    remaining: Optional[float] = None


class ExpenseSummary(CamelModel):
    by_category: Dict[str, List[CustomExpense]]
    totals: Budget
