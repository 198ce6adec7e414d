# file: services/classification.py
"""
Place-type classification.

``categorize_place`` is the only rule that maps Google place types onto a
budget category. Budget bucketing, saved-location grouping and price labels
all go through it.
"""
from typing import List, Optional, Sequence

from app.models.place import PointOfInterest
from app.models.trip import BudgetCategory

# Checked in this order; the first category with a matching type wins.
CATEGORY_TYPES = [
    ("accommodation", ["lodging", "hotel", "guest_house", "hostel", "ryokan"]),
    ("food", ["restaurant", "cafe", "food", "bakery", "bar", "meal_takeaway", "meal_delivery"]),
    ("activities", ["tourist_attraction", "museum", "art_gallery", "gallery", "zoo", "aquarium",
                    "amusement_park", "temple", "shrine", "place_of_worship", "park", "natural_feature"]),
    ("transportation", ["train_station", "subway_station", "transit_station", "bus_station", "airport"]),
    ("shopping", ["shopping_mall", "store", "shop", "market", "clothing_store", "department_store"]),
]

# Priority for picking the type sent to the price-estimate lookup.
PRICE_TYPE_PRIORITY = [
    "restaurant", "cafe", "bar", "food",
    "tourist_attraction", "museum", "temple",
    "lodging", "hotel",
    "shopping_mall", "store",
]

GROUP_LABELS = {
    "food": "Dining",
    "accommodation": "Accommodation",
    "activities": "Attractions",
    "transportation": "Transportation",
    "shopping": "Shopping",
    "other": "Other",
}


def categorize_place(types: Optional[Sequence[str]]) -> BudgetCategory:
    place_types = set(types or [])
    for category, category_types in CATEGORY_TYPES:
        if place_types.intersection(category_types):
            return category
    return "other"


def primary_type(types: Optional[List[str]]) -> Optional[str]:
    if not types:
        return None
    for candidate in PRICE_TYPE_PRIORITY:
        if candidate in types:
            return candidate
    return types[0]


def group_label(types: Optional[Sequence[str]]) -> str:
    return GROUP_LABELS[categorize_place(types)]


def estimate_budget(poi: PointOfInterest, category: BudgetCategory) -> float:
    """
    Default cost of scheduling ``poi`` under ``category``:
    - accommodation/food: the price value
    - activities: the entrance fee
    - anything else, or when those are missing: the price value, else 0
    """
    price = poi.price
    if not price:
        return 0

    if category in ("accommodation", "food") and price.value:
        return price.value
    if category == "activities" and price.entrance_fee:
        return price.entrance_fee
    if price.value:
        return price.value
    return 0
