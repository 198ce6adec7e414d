# file: services/price_estimator.py
"""
Local price estimates, used when the details response carries no usable price.

Well-known places are matched by name first; everything else gets a
typical figure for its budget category, as decided by
``categorize_place``. All amounts are yen.
"""
from typing import List, Optional

from app.models.place import PriceEstimate, PriceRange
from app.services.classification import categorize_place

CURRENCY_SYMBOL = "¥"

# (name fragments, any of which matches; estimate fields)
KNOWN_PLACES = [
    (("universal studios", "usj"),
     {"entrance_fee": 8600, "description": "Adult 1-Day Studio Pass (prices may vary by season)"}),
    (("fushimi inari",),
     {"entrance_fee": 0, "description": "Free entrance (donations appreciated)"}),
    (("kinkaku", "golden pavilion"),
     {"entrance_fee": 500, "description": "Standard entrance fee"}),
    (("senso-ji", "sensoji"),
     {"entrance_fee": 0, "description": "Free entrance (paid areas within the complex)"}),
    (("ghibli museum",),
     {"entrance_fee": 1000, "description": "Adult admission (requires advance reservation)"}),
    (("teamlab", "team lab"),
     {"entrance_fee": 3200, "description": "Adult admission (weekday price)"}),
    (("ginza",),
     {"average_meal_cost": 3000, "description": "Higher-end shopping and dining area"}),
    (("akihabara",),
     {"average_meal_cost": 1200, "description": "Electronics and anime shopping district"}),
    (("park hyatt tokyo",),
     {"room_rate": 60000, "price_range": (50000, 120000),
      "description": 'Luxury hotel featured in "Lost in Translation"'}),
    (("ryokan",),
     {"room_rate": 25000, "price_range": (15000, 40000),
      "description": "Traditional Japanese inn, typically includes dinner and breakfast"}),
    (("sushi", "sashimi"),
     {"average_meal_cost": 4000, "price_range": (1200, 20000), "description": "Varies greatly by restaurant quality"}),
    (("ramen",),
     {"average_meal_cost": 1000, "description": "Average ramen meal cost"}),
]

# Checked in order against the place's types.
ATTRACTION_FEES = [
    ({"museum"}, 1000, "Estimated museum entrance fee"),
    ({"amusement_park"}, 8000, "Estimated theme park entrance fee"),
    ({"temple", "shrine"}, 500, "Estimated temple/shrine entrance fee"),
    ({"art_gallery"}, 1200, "Estimated art gallery admission"),
    ({"aquarium"}, 2400, "Estimated aquarium admission"),
    ({"zoo"}, 800, "Estimated zoo admission"),
]


def _estimate(**fields) -> PriceEstimate:
    price_range = fields.pop("price_range", None)
    if price_range:
        fields["price_range"] = PriceRange(min=price_range[0], max=price_range[1])
    return PriceEstimate(currency=CURRENCY_SYMBOL, source="Estimated", **fields)


def generate_estimated_prices(place_type: Optional[str], types: Optional[List[str]] = None,
                              name: Optional[str] = None) -> PriceEstimate:
    kinds = set(types or [])
    if place_type:
        kinds.add(place_type)

    if name:
        lowered = name.lower()
        if "disney" in lowered and "sea" in lowered:
            return _estimate(entrance_fee=9400, description="Adult 1-Day Passport for Tokyo DisneySea (varies by season)")
        if "disney" in lowered and "land" in lowered:
            return _estimate(entrance_fee=9400, description="Adult 1-Day Passport for Tokyo Disneyland (varies by season)")
        for fragments, fields in KNOWN_PLACES:
            if any(fragment in lowered for fragment in fragments):
                return _estimate(**dict(fields))

    category = categorize_place(kinds)
    if category == "activities":
        for matching, fee, description in ATTRACTION_FEES:
            if matching.intersection(kinds):
                return _estimate(entrance_fee=fee, description=description)
        return _estimate(entrance_fee=1500, description="Estimated attraction fee")

    if category == "food":
        if "cafe" in kinds:
            return _estimate(average_meal_cost=800, description="Estimated cost for coffee and light meal")
        if "bar" in kinds:
            return _estimate(average_meal_cost=3000, description="Estimated cost for drinks and food")
        return _estimate(average_meal_cost=2000, price_range=(1500, 3000),
                         description="Estimated cost per person for a typical meal")

    if category == "accommodation":
        return _estimate(room_rate=15000, price_range=(10000, 25000), description="Estimated nightly rate")

    return _estimate()
